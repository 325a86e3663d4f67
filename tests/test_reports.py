from datetime import datetime

from screening.models.schemas import AnalysisModel, AnalysisReport, VacancyModel
from screening.services.reports import REPORT_COLUMNS, analyses_frame, render_vacancy_report


def make_analysis(resume_id, score, note=""):
    return AnalysisModel(
        resume_id=resume_id,
        vacancy_id="v1",
        score=score,
        report=AnalysisReport(matched_skills=["Go"], missing_skills=["Rust", "SQL"], hr_recommendation=note),
        created_at=datetime(2024, 5, 1),
    )


VACANCY = VacancyModel(vacancy_id="v1", title="Backend Engineer", description="Go services")


class TestVacancyReport:
    """Test cases for vacancy report exports"""

    def test_frame_sorted_by_score(self):
        df = analyses_frame([make_analysis("r1", 0.2), make_analysis("r2", 0.9), make_analysis("r3", 0.5)])

        assert list(df.columns) == REPORT_COLUMNS
        assert list(df["resume_id"]) == ["r2", "r3", "r1"]
        assert df.iloc[0]["missing_skills"] == "Rust, SQL"

    def test_csv_and_markdown(self):
        csv_text, md_text = render_vacancy_report(
            VACANCY, [make_analysis("r1", 0.25), make_analysis("r2", 0.75, note="Interview")]
        )

        lines = csv_text.strip().splitlines()
        assert lines[0] == ",".join(REPORT_COLUMNS)
        assert len(lines) == 3
        assert "# Vacancy Backend Engineer: candidate fit" in md_text
        assert "**Description**: Go services" in md_text
        assert "| 1 | r2 | 0.750 |" in md_text
        assert "- **r2**: Interview" in md_text
        assert "- **r1**: n/a" in md_text

    def test_markdown_top_ten(self):
        analyses = [make_analysis(f"r{i}", i / 20) for i in range(12)]

        _, md_text = render_vacancy_report(VACANCY, analyses)

        assert "| 10 |" in md_text
        assert "| 11 |" not in md_text
        assert md_text.count("- **") == 5

    def test_empty(self):
        csv_text, md_text = render_vacancy_report(VacancyModel(vacancy_id="v2"), [])

        assert csv_text.strip() == ",".join(REPORT_COLUMNS)
        assert "No analyses for this vacancy yet." in md_text
        assert "# Vacancy v2" in md_text
        assert "No vacancy description available" in md_text
