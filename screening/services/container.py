"""
Process-wide service instances, handed to routers through FastAPI dependencies.
"""
from functools import lru_cache
from typing import Optional

from fastapi import Header

from screening.models.models import Actor
from screening.services.analysis import AnalysisService
from screening.services.db import analyses_coll, profiles_coll, resumes_coll, vacancies_coll
from screening.services.profiles import ProfileExtractor, ResumeService
from screening.services.repositories import AnalysisRepository, ResumeRepository, VacancyRepository
from screening.services.vacancies import VacancyService
from screening.utils.exceptions import ValidationError, map_to_http_exception
from screening.utils.logging_config import get_logger
from screening.utils.utils import get_chat_model

logger = get_logger(__name__)


@lru_cache(maxsize=None)
def get_chat():
    llm = get_chat_model()
    if llm is None:
        logger.warning("No text-generation service configured; profiles will fail and reports stay deterministic")
    else:
        logger.info(f"Text-generation service: {llm.service_name} ({llm.model_name})")
    return llm


@lru_cache(maxsize=None)
def get_resume_repository() -> ResumeRepository:
    return ResumeRepository(resumes_coll, profiles_coll)


@lru_cache(maxsize=None)
def get_vacancy_repository() -> VacancyRepository:
    return VacancyRepository(vacancies_coll)


@lru_cache(maxsize=None)
def get_extractor() -> ProfileExtractor:
    # one extractor per process so every caller shares the same per-resume locks
    return ProfileExtractor(get_resume_repository(), get_chat())


@lru_cache(maxsize=None)
def get_resume_service() -> ResumeService:
    return ResumeService(get_resume_repository(), get_extractor())


@lru_cache(maxsize=None)
def get_analysis_service() -> AnalysisService:
    return AnalysisService(
        get_resume_repository(),
        get_vacancy_repository(),
        AnalysisRepository(analyses_coll),
        get_extractor(),
        get_chat(),
    )


@lru_cache(maxsize=None)
def get_vacancy_service() -> VacancyService:
    return VacancyService(get_vacancy_repository())


def get_actor(
    x_user_id: Optional[str] = Header(default=None),
    x_user_role: Optional[str] = Header(default=None),
) -> Actor:
    """Actor identity forwarded by the authenticating gateway."""
    if not x_user_id or not x_user_id.strip():
        raise map_to_http_exception(ValidationError("X-User-Id header is required", field="X-User-Id"))
    return Actor(user_id=x_user_id.strip(), is_admin=(x_user_role or "").lower() == "admin")
