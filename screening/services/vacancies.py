from typing import List, Optional, Sequence

from screening.models.models import Actor, SkillRequirement
from screening.models.schemas import VacancyModel
from screening.utils.exceptions import ValidationError
from screening.utils.logging_config import get_logger

logger = get_logger(__name__)


class VacancyService:
    """Vacancy CRUD for an actor. Non-admins only see and edit their own vacancies."""

    def __init__(self, vacancies):
        self.vacancies = vacancies

    async def create(
        self,
        actor: Actor,
        title: str,
        description: str = "",
        skills: Optional[Sequence[SkillRequirement]] = None,
    ) -> VacancyModel:
        title = (title or "").strip()
        if not title:
            raise ValidationError("title is required", field="title", value=title)
        vacancy = VacancyModel(
            owner_id=actor.user_id,
            title=title,
            description=(description or "").strip(),
            skills=list(skills or []),
        )
        await self.vacancies.create(vacancy)
        logger.info(f"Vacancy {vacancy.vacancy_id} created by {actor.user_id} with {len(vacancy.skills)} skills")
        return vacancy

    async def get(self, actor: Actor, vacancy_id: str) -> VacancyModel:
        return await self.vacancies.get_vacancy(vacancy_id, owner_id=actor.scope)

    async def list_vacancies(self, actor: Actor, limit: int = 50, offset: int = 0) -> List[VacancyModel]:
        return await self.vacancies.list_vacancies(owner_id=actor.scope, limit=limit, offset=offset)

    async def update_skills(
        self, actor: Actor, vacancy_id: str, skills: Sequence[SkillRequirement]
    ) -> VacancyModel:
        vacancy = await self.vacancies.update_skills(vacancy_id, skills, owner_id=actor.scope)
        logger.info(f"Vacancy {vacancy_id} skills replaced by {actor.user_id}: {len(vacancy.skills)} after collapse")
        return vacancy
