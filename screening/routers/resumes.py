from fastapi import APIRouter, Depends, File, UploadFile

from screening.models.models import Actor, ProfileRecord
from screening.services.container import get_actor, get_resume_service
from screening.services.profiles import ResumeService
from screening.utils.exceptions import ScreeningBaseException, map_to_http_exception
from screening.utils.logging_config import get_logger

router = APIRouter(tags=["resumes"])
logger = get_logger(__name__)


@router.post("/resumes/{resume_id}/upload", response_model=ProfileRecord)
async def upload_resume(
    resume_id: str,
    file: UploadFile = File(...),
    actor: Actor = Depends(get_actor),
    service: ResumeService = Depends(get_resume_service),
):
    """Store the resume text and build its profile"""
    data = await file.read()
    logger.info(f"Resume upload {resume_id}: {file.filename} ({len(data)} bytes)")
    try:
        return await service.ingest(actor, resume_id, file.filename, data)
    except ScreeningBaseException as e:
        raise map_to_http_exception(e)


@router.get("/resumes/{resume_id}/profile", response_model=ProfileRecord)
async def get_profile(
    resume_id: str,
    actor: Actor = Depends(get_actor),
    service: ResumeService = Depends(get_resume_service),
):
    """Current profile record (pending, ok or failed)"""
    try:
        return await service.get_profile(actor, resume_id)
    except ScreeningBaseException as e:
        raise map_to_http_exception(e)


@router.post("/resumes/{resume_id}/profile/rebuild", response_model=ProfileRecord)
async def rebuild_profile(
    resume_id: str,
    actor: Actor = Depends(get_actor),
    service: ResumeService = Depends(get_resume_service),
):
    """Re-run profile extraction from the stored resume text"""
    logger.info(f"Profile rebuild requested for resume {resume_id} by {actor.user_id}")
    try:
        return await service.rebuild_profile(actor, resume_id)
    except ScreeningBaseException as e:
        raise map_to_http_exception(e)
