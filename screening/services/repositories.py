"""
Mongo-backed stores used by the profile extractor and analysis orchestrator.

Each store takes its motor collection in the constructor, so tests can pass
an AsyncMock or the services can be wired with in-memory fakes instead.
Lookups that take an ``owner_id`` only see that owner's documents; ``None``
means any owner.
"""
from typing import Any, Dict, List, Optional, Sequence

from pymongo import ReturnDocument

from screening.models.models import ParsedResume, ProfileRecord, SkillRequirement, collapse_requirements
from screening.models.schemas import AnalysisModel, VacancyModel
from screening.services.db import to_dict
from screening.utils.exceptions import ExceptionContext, NotFoundError
from screening.utils.logging_config import get_logger

logger = get_logger(__name__)


def scoped(query: Dict[str, Any], owner_id: Optional[str]) -> Dict[str, Any]:
    if owner_id is not None:
        query["owner_id"] = owner_id
    return query


async def page(coll, query: Dict[str, Any], limit: int, offset: int) -> List[dict]:
    """Newest first, then skip/limit."""
    cursor = coll.find(query).sort("created_at", -1).skip(offset).limit(limit)
    docs = await cursor.to_list(length=None)
    return [to_dict(d) for d in docs]


class ResumeRepository:
    def __init__(self, resumes_coll, profiles_coll):
        self.resumes = resumes_coll
        self.profiles = profiles_coll

    async def find_resume(self, resume_id: str) -> Optional[ParsedResume]:
        with ExceptionContext("find_resume", logger, resume_id=resume_id, collection="resumes"):
            doc = await self.resumes.find_one({"resume_id": resume_id})
        if not doc:
            return None
        return ParsedResume(
            resume_id=resume_id,
            text=doc.get("parsed_text") or "",
            owner_id=doc.get("owner_id"),
            filename=doc.get("filename"),
        )

    async def get_resume(self, resume_id: str, owner_id: Optional[str] = None) -> ParsedResume:
        with ExceptionContext("get_resume", logger, resume_id=resume_id, collection="resumes"):
            doc = await self.resumes.find_one(scoped({"resume_id": resume_id}, owner_id))
        if not doc or doc.get("parsed_text") is None:
            raise NotFoundError(
                f"parsed resume text not found for resume {resume_id}",
                resource="parsed_resume",
                resource_id=resume_id,
            )
        return ParsedResume(
            resume_id=resume_id,
            text=doc["parsed_text"],
            owner_id=doc.get("owner_id"),
            filename=doc.get("filename"),
        )

    async def save_parsed_text(self, parsed: ParsedResume) -> None:
        fields = {"parsed_text": parsed.text}
        if parsed.owner_id is not None:
            fields["owner_id"] = parsed.owner_id
        if parsed.filename is not None:
            fields["filename"] = parsed.filename
        with ExceptionContext("save_parsed_text", logger, resume_id=parsed.resume_id, collection="resumes"):
            await self.resumes.update_one(
                {"resume_id": parsed.resume_id},
                {"$set": fields},
                upsert=True,
            )

    async def upsert_profile(self, record: ProfileRecord) -> None:
        # native datetimes, same as analyses and vacancies
        doc = record.model_dump()
        doc["status"] = record.status.value
        with ExceptionContext("upsert_profile", logger, resume_id=record.resume_id, collection="profiles"):
            await self.profiles.replace_one({"resume_id": record.resume_id}, doc, upsert=True)

    async def get_profile(self, resume_id: str) -> Optional[ProfileRecord]:
        with ExceptionContext("get_profile", logger, resume_id=resume_id, collection="profiles"):
            doc = await self.profiles.find_one({"resume_id": resume_id})
        doc = to_dict(doc)
        return ProfileRecord(**doc) if doc else None


class VacancyRepository:
    def __init__(self, vacancies_coll):
        self.vacancies = vacancies_coll

    async def create(self, vacancy: VacancyModel) -> VacancyModel:
        with ExceptionContext("create_vacancy", logger, vacancy_id=vacancy.vacancy_id, collection="vacancies"):
            await self.vacancies.insert_one(vacancy.model_dump())
        return vacancy

    async def get_vacancy(self, vacancy_id: str, owner_id: Optional[str] = None) -> VacancyModel:
        with ExceptionContext("get_vacancy", logger, vacancy_id=vacancy_id, collection="vacancies"):
            doc = await self.vacancies.find_one(scoped({"vacancy_id": vacancy_id}, owner_id))
        doc = to_dict(doc)
        if not doc:
            raise NotFoundError(f"vacancy {vacancy_id} not found", resource="vacancy", resource_id=vacancy_id)
        return VacancyModel(**doc)

    async def get_requirements(self, vacancy_id: str) -> List[SkillRequirement]:
        return (await self.get_vacancy(vacancy_id)).skills

    async def list_vacancies(self, owner_id: Optional[str] = None, limit: int = 50, offset: int = 0) -> List[VacancyModel]:
        with ExceptionContext("list_vacancies", logger, owner_id=owner_id, collection="vacancies"):
            docs = await page(self.vacancies, scoped({}, owner_id), limit, offset)
        return [VacancyModel(**d) for d in docs]

    async def update_skills(
        self, vacancy_id: str, skills: Sequence[SkillRequirement], owner_id: Optional[str] = None
    ) -> VacancyModel:
        """Replace the requirement list; duplicates collapse before the write."""
        stored = [r.model_dump() for r in collapse_requirements(skills)]
        with ExceptionContext("update_vacancy_skills", logger, vacancy_id=vacancy_id, collection="vacancies"):
            doc = await self.vacancies.find_one_and_update(
                scoped({"vacancy_id": vacancy_id}, owner_id),
                {"$set": {"skills": stored}},
                return_document=ReturnDocument.AFTER,
            )
        doc = to_dict(doc)
        if not doc:
            raise NotFoundError(f"vacancy {vacancy_id} not found", resource="vacancy", resource_id=vacancy_id)
        return VacancyModel(**doc)


class AnalysisRepository:
    def __init__(self, analyses_coll):
        self.analyses = analyses_coll

    async def create(self, analysis: AnalysisModel) -> AnalysisModel:
        with ExceptionContext("create_analysis", logger, analysis_id=analysis.analysis_id, collection="analyses"):
            await self.analyses.insert_one(analysis.model_dump())
        return analysis

    async def get_by_id(self, analysis_id: str) -> Optional[AnalysisModel]:
        with ExceptionContext("get_analysis", logger, analysis_id=analysis_id, collection="analyses"):
            doc = await self.analyses.find_one({"analysis_id": analysis_id})
        doc = to_dict(doc)
        return AnalysisModel(**doc) if doc else None

    async def list_by_vacancy(
        self, vacancy_id: str, owner_id: Optional[str] = None, limit: int = 50, offset: int = 0
    ) -> List[AnalysisModel]:
        with ExceptionContext("list_analyses", logger, vacancy_id=vacancy_id, collection="analyses"):
            docs = await page(self.analyses, scoped({"vacancy_id": vacancy_id}, owner_id), limit, offset)
        return [AnalysisModel(**d) for d in docs]

    async def list_all(self, owner_id: Optional[str] = None, limit: int = 50, offset: int = 0) -> List[AnalysisModel]:
        with ExceptionContext("list_all_analyses", logger, owner_id=owner_id, collection="analyses"):
            docs = await page(self.analyses, scoped({}, owner_id), limit, offset)
        return [AnalysisModel(**d) for d in docs]

    async def delete(self, analysis_id: str) -> bool:
        with ExceptionContext("delete_analysis", logger, analysis_id=analysis_id, collection="analyses"):
            result = await self.analyses.delete_one({"analysis_id": analysis_id})
        return result.deleted_count == 1
