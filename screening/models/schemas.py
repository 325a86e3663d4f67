from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import List, Optional
from datetime import datetime
import uuid

from screening.models.models import SkillRequirement, as_list, collapse_requirements, utc_now

# -------- Vacancies --------
class VacancyModel(BaseModel):
    vacancy_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    owner_id: Optional[str] = None
    title: str = ""
    description: str = ""
    skills: List[SkillRequirement] = []
    created_at: datetime = Field(default_factory=utc_now)

    @field_validator("skills")
    @classmethod
    def _collapse(cls, v):
        return collapse_requirements(v)

# -------- Analyses --------
class AnalysisReport(BaseModel):
    candidate_summary: str = ""
    matched_skills: List[str] = []
    missing_skills: List[str] = []
    unique_strengths: List[str] = []
    hr_recommendation: str = ""
    candidate_recommendations: List[str] = []

    @field_validator(
        "matched_skills", "missing_skills", "unique_strengths", "candidate_recommendations",
        mode="before",
    )
    @classmethod
    def _lists(cls, v):
        return as_list(v)

class AnalysisModel(BaseModel):
    model_config = ConfigDict(protected_namespaces=())

    analysis_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    resume_id: str
    vacancy_id: str
    owner_id: Optional[str] = None
    score: float = Field(default=0.0, ge=0.0, le=1.0)
    model_name: str = ""
    report: AnalysisReport = Field(default_factory=AnalysisReport)
    created_at: datetime = Field(default_factory=utc_now)
