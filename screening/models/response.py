# models/response.py
from pydantic import BaseModel
from typing import List, Optional

from screening.models.models import SkillRequirement
from screening.models.schemas import AnalysisModel, VacancyModel


class CreateAnalysisRequest(BaseModel):
    resume_id: str
    vacancy_id: str


class AnalysisList(BaseModel):
    vacancy_id: Optional[str] = None
    analyses: List[AnalysisModel]
    count: int


class CreateVacancyRequest(BaseModel):
    title: str
    description: str = ""
    skills: List[SkillRequirement] = []


class UpdateSkillsRequest(BaseModel):
    skills: List[SkillRequirement]


class VacancyList(BaseModel):
    vacancies: List[VacancyModel]
    count: int
