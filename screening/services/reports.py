from typing import List, Tuple

import pandas as pd

from screening.models.schemas import AnalysisModel, VacancyModel

REPORT_COLUMNS = [
    "analysis_id", "resume_id", "score", "matched_skills", "missing_skills",
    "model_name", "hr_recommendation", "created_at",
]


def analyses_frame(analyses: List[AnalysisModel]) -> pd.DataFrame:
    data = [{
        "analysis_id": a.analysis_id,
        "resume_id": a.resume_id,
        "score": round(a.score, 4),
        "matched_skills": ", ".join(a.report.matched_skills),
        "missing_skills": ", ".join(a.report.missing_skills),
        "model_name": a.model_name,
        "hr_recommendation": a.report.hr_recommendation,
        "created_at": a.created_at.isoformat(),
    } for a in analyses]
    df = pd.DataFrame(data, columns=REPORT_COLUMNS)
    if len(df):
        df = df.sort_values("score", ascending=False, kind="stable")
    return df


def render_vacancy_report(vacancy: VacancyModel, analyses: List[AnalysisModel]) -> Tuple[str, str]:
    """CSV of every analysis for one vacancy plus a markdown digest of the top ones."""
    df = analyses_frame(analyses)
    csv_text = df.to_csv(index=False)

    md_lines = [f"# Vacancy {vacancy.title or vacancy.vacancy_id}: candidate fit"]
    description = (vacancy.description or "").strip()
    if description:
        md_lines.append(f"**Description**: {description}\n")
    else:
        md_lines.append("*(No vacancy description available)*\n")

    if len(df):
        md_lines += [
            "| Rank | Resume ID | Score | Matched | Missing |",
            "|---:|---|---:|---|---|",
        ]
        for i, r in enumerate(df.head(10).itertuples(), start=1):
            md_lines.append(
                f"| {i} | {r.resume_id} | {r.score:.3f} | {r.matched_skills} | {r.missing_skills} |"
            )
        md_lines.append("\n---\nHR notes (top-5):")
        for r in df.head(5).itertuples():
            md_lines.append(f"- **{r.resume_id}**: {r.hr_recommendation or 'n/a'}")
    else:
        md_lines.append("> No analyses for this vacancy yet.\n")

    return csv_text, "\n".join(md_lines)
