# routers/analyses.py
from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response
from fastapi.responses import PlainTextResponse

from screening.models.models import Actor
from screening.models.response import AnalysisList, CreateAnalysisRequest
from screening.models.schemas import AnalysisModel
from screening.services.analysis import AnalysisService
from screening.services.container import get_actor, get_analysis_service
from screening.services.reports import render_vacancy_report
from screening.utils.exceptions import ProfileNotReadyError, ScreeningBaseException, map_to_http_exception
from screening.utils.logging_config import get_logger, PerformanceMonitor

router = APIRouter(tags=["analyses"])
logger = get_logger(__name__)


@router.post("/analyses", response_model=AnalysisModel, status_code=201)
async def create_analysis(
    payload: CreateAnalysisRequest,
    request: Request,
    actor: Actor = Depends(get_actor),
    service: AnalysisService = Depends(get_analysis_service),
):
    """Score a resume against a vacancy and store the analysis"""
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.info(
        f"Analysis requested for resume {payload.resume_id} / vacancy {payload.vacancy_id}",
        extra={"request_id": request_id},
    )
    with PerformanceMonitor("create_analysis", logger, threshold_ms=30000):
        try:
            return await service.create_analysis(actor, payload.resume_id, payload.vacancy_id)
        except ProfileNotReadyError as e:
            logger.warning(f"Profile not ready for resume {e.resume_id}: {e.status}", extra={"request_id": request_id})
            raise map_to_http_exception(e)
        except ScreeningBaseException as e:
            raise map_to_http_exception(e)


@router.get("/analyses", response_model=AnalysisList)
async def list_analyses(
    limit: int = Query(50, ge=1, le=200, description="Maximum number of results"),
    offset: int = Query(0, ge=0, description="Number of results to skip"),
    actor: Actor = Depends(get_actor),
    service: AnalysisService = Depends(get_analysis_service),
):
    """Caller's analyses across vacancies (all of them for admins), newest first"""
    try:
        items = await service.list_all(actor, limit=limit, offset=offset)
    except ScreeningBaseException as e:
        raise map_to_http_exception(e)
    return AnalysisList(analyses=items, count=len(items))


@router.get("/analyses/{analysis_id}", response_model=AnalysisModel)
async def get_analysis(
    analysis_id: str,
    actor: Actor = Depends(get_actor),
    service: AnalysisService = Depends(get_analysis_service),
):
    """Get a single analysis (owner or admin)"""
    try:
        return await service.get(actor, analysis_id)
    except ScreeningBaseException as e:
        raise map_to_http_exception(e)


@router.delete("/analyses/{analysis_id}", status_code=204)
async def delete_analysis(
    analysis_id: str,
    actor: Actor = Depends(get_actor),
    service: AnalysisService = Depends(get_analysis_service),
):
    """Delete an analysis (owner or admin)"""
    try:
        await service.delete(actor, analysis_id)
    except ScreeningBaseException as e:
        raise map_to_http_exception(e)
    return Response(status_code=204)


@router.get("/vacancies/{vacancy_id}/analyses", response_model=AnalysisList)
async def list_vacancy_analyses(
    vacancy_id: str,
    limit: int = Query(50, ge=1, le=200, description="Maximum number of results"),
    offset: int = Query(0, ge=0, description="Number of results to skip"),
    actor: Actor = Depends(get_actor),
    service: AnalysisService = Depends(get_analysis_service),
):
    """List analyses for a vacancy, newest first"""
    try:
        items = await service.list_by_vacancy(actor, vacancy_id, limit=limit, offset=offset)
    except ScreeningBaseException as e:
        raise map_to_http_exception(e)
    return AnalysisList(vacancy_id=vacancy_id, analyses=items, count=len(items))


@router.get("/vacancies/{vacancy_id}/analyses/export", response_class=PlainTextResponse)
async def export_vacancy_analyses(
    vacancy_id: str,
    format: str = Query("csv", description="Export format: 'csv' or 'md'"),
    actor: Actor = Depends(get_actor),
    service: AnalysisService = Depends(get_analysis_service),
):
    """Export a vacancy's analyses as CSV or a markdown digest"""
    fmt = format.lower()
    if fmt not in ("csv", "md"):
        raise HTTPException(status_code=400, detail="format must be 'csv' or 'md'")
    try:
        vacancy, analyses = await service.vacancy_report(actor, vacancy_id)
    except ScreeningBaseException as e:
        raise map_to_http_exception(e)

    csv_text, md_text = render_vacancy_report(vacancy, analyses)
    if fmt == "csv":
        return PlainTextResponse(csv_text, media_type="text/csv")
    return PlainTextResponse(md_text, media_type="text/markdown")
