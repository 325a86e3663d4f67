from fastapi import APIRouter, Depends, Query

from screening.models.models import Actor
from screening.models.response import CreateVacancyRequest, UpdateSkillsRequest, VacancyList
from screening.models.schemas import VacancyModel
from screening.services.container import get_actor, get_vacancy_service
from screening.services.vacancies import VacancyService
from screening.utils.exceptions import ScreeningBaseException, map_to_http_exception
from screening.utils.logging_config import get_logger

router = APIRouter(tags=["vacancies"])
logger = get_logger(__name__)


@router.post("/vacancies", response_model=VacancyModel, status_code=201)
async def create_vacancy(
    payload: CreateVacancyRequest,
    actor: Actor = Depends(get_actor),
    service: VacancyService = Depends(get_vacancy_service),
):
    """Create a vacancy owned by the caller"""
    try:
        return await service.create(actor, payload.title, payload.description, payload.skills)
    except ScreeningBaseException as e:
        raise map_to_http_exception(e)


@router.get("/vacancies", response_model=VacancyList)
async def list_vacancies(
    limit: int = Query(50, ge=1, le=200, description="Maximum number of results"),
    offset: int = Query(0, ge=0, description="Number of results to skip"),
    actor: Actor = Depends(get_actor),
    service: VacancyService = Depends(get_vacancy_service),
):
    """Caller's vacancies (all of them for admins), newest first"""
    try:
        items = await service.list_vacancies(actor, limit=limit, offset=offset)
    except ScreeningBaseException as e:
        raise map_to_http_exception(e)
    return VacancyList(vacancies=items, count=len(items))


@router.get("/vacancies/{vacancy_id}", response_model=VacancyModel)
async def get_vacancy(
    vacancy_id: str,
    actor: Actor = Depends(get_actor),
    service: VacancyService = Depends(get_vacancy_service),
):
    try:
        return await service.get(actor, vacancy_id)
    except ScreeningBaseException as e:
        raise map_to_http_exception(e)


@router.put("/vacancies/{vacancy_id}/skills", response_model=VacancyModel)
async def update_vacancy_skills(
    vacancy_id: str,
    payload: UpdateSkillsRequest,
    actor: Actor = Depends(get_actor),
    service: VacancyService = Depends(get_vacancy_service),
):
    """Replace the weighted skill list"""
    logger.info(f"Skill update for vacancy {vacancy_id} by {actor.user_id}: {len(payload.skills)} skills")
    try:
        return await service.update_skills(actor, vacancy_id, payload.skills)
    except ScreeningBaseException as e:
        raise map_to_http_exception(e)
