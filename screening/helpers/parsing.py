import io
import re
from pathlib import Path
from pdfminer.high_level import extract_text as pdf_extract
from docx import Document
from screening.utils.exceptions import ValidationError

SUPPORTED_EXTENSIONS = (".pdf", ".docx", ".txt")

def read_txt(data: bytes) -> str:
    return data.decode("utf-8", errors="ignore")

def read_docx(data: bytes) -> str:
    doc = Document(io.BytesIO(data))
    return "\n".join([p.text for p in doc.paragraphs])

def read_pdf(data: bytes) -> str:
    return pdf_extract(io.BytesIO(data))

def clean_text(x: str) -> str:
    # keep line structure, collapse everything else
    x = x.replace("\u00a0", " ")
    x = re.sub(r"[ \t\r\f\v]+", " ", x)
    x = re.sub(r" ?\n[ \n]*", "\n", x)
    return x.strip()

def extract_resume_text(filename: str, data: bytes) -> str:
    ext = Path(filename or "").suffix.lower()
    readers = {".pdf": read_pdf, ".docx": read_docx, ".txt": read_txt}
    if ext not in readers:
        raise ValidationError(
            f"unsupported file format: only {', '.join(SUPPORTED_EXTENSIONS)} are allowed",
            field="filename",
            value=filename,
        )
    try:
        t = readers[ext](data)
    except Exception as e:
        raise ValidationError(f"could not read {ext} file: {e}", field="file", value=filename, cause=e) from e
    return clean_text(t or "")
