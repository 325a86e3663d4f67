from typing import List, Optional, Tuple, TypedDict

from langgraph.graph import StateGraph, END

from screening.helpers.prompts import ENRICHMENT_SYSTEM_PROMPT, ENRICHMENT_USER_PROMPT
from screening.models.models import (
    Actor, EnrichmentPayload, MatchResult, ProfileRecord, ProfileStatus, ResumeProfile, utc_now,
)
from screening.models.schemas import AnalysisModel, AnalysisReport, VacancyModel
from screening.services.matching import match
from screening.services.profiles import ProfileExtractor, ask_model
from screening.utils.exceptions import NotFoundError, ProfileNotReadyError, ResponseParseError
from screening.utils.logging_config import get_logger, PerformanceMonitor
from screening.utils.utils import parse_llm_json

logger = get_logger(__name__)

ENRICHMENT_FAILED_NOTE = "AI enrichment unavailable, report is based on skill matching only: {error}"


class AnalysisState(TypedDict, total=False):
    actor: Actor
    resume_id: str
    vacancy_id: str
    vacancy: VacancyModel
    record: ProfileRecord
    match_result: MatchResult
    report: AnalysisReport
    model_used: str
    resume_owner: Optional[str]
    analysis: AnalysisModel


def analysis_owner(state: AnalysisState) -> Optional[str]:
    """Non-admins own what they create; an admin run goes to the pair's owner."""
    actor = state["actor"]
    if not actor.is_admin:
        return actor.user_id
    return state["vacancy"].owner_id or state.get("resume_owner") or actor.user_id


def baseline_report(result: MatchResult, profile: ResumeProfile) -> AnalysisReport:
    return AnalysisReport(
        candidate_summary=profile.summary,
        matched_skills=list(result.matched_skills),
        missing_skills=list(result.missing_skills),
    )


def apply_enrichment(report: AnalysisReport, payload: EnrichmentPayload) -> AnalysisReport:
    update = {
        "unique_strengths": payload.unique_strengths,
        "hr_recommendation": payload.hr_recommendation,
        "candidate_recommendations": payload.candidate_recommendations,
    }
    if payload.candidate_summary.strip():
        update["candidate_summary"] = payload.candidate_summary
    return report.model_copy(update=update)


class AnalysisService:
    """Matches a resume profile against a vacancy and stores the analysis.

    The run is a linear graph: load_vacancy -> resolve_profile ->
    match_skills -> enrich_report -> persist_analysis. Matching never fails;
    enrichment failures are recorded as an HR note instead of aborting.
    Non-admin actors must own both the resume and the vacancy; a foreign id
    is reported as not found.
    """

    def __init__(self, resumes, vacancies, analyses, extractor: ProfileExtractor, llm=None):
        self.resumes = resumes
        self.vacancies = vacancies
        self.analyses = analyses
        self.extractor = extractor
        self.llm = llm
        self.model_name = getattr(llm, "model_name", "") if llm is not None else ""
        self.graph = self.build_graph()

    # ---- graph nodes ----

    async def node_load_vacancy(self, state: AnalysisState):
        vacancy = await self.vacancies.get_vacancy(state["vacancy_id"], owner_id=state["actor"].scope)
        return {"vacancy": vacancy}

    async def node_resolve_profile(self, state: AnalysisState):
        resume_id = state["resume_id"]
        resume = await self.resumes.get_resume(resume_id, owner_id=state["actor"].scope)
        record = await self.resumes.get_profile(resume_id)
        if record is None:
            logger.info(f"No profile stored for resume {resume_id}; building one from parsed text")
            record = await self.extractor.build_and_save(resume_id, resume.text)
        if record.status != ProfileStatus.OK:
            raise ProfileNotReadyError(resume_id, record.status.value, reason=record.error_message)
        return {"record": record, "resume_owner": resume.owner_id}

    async def node_match_skills(self, state: AnalysisState):
        with PerformanceMonitor("skill matching", logger, threshold_ms=200):
            result = match(state["vacancy"].skills, state["record"].profile)
        logger.info(
            f"Resume {state['resume_id']} vs vacancy {state['vacancy_id']}: score={result.score:.3f}, "
            f"matched={len(result.matched_skills)}, missing={len(result.missing_skills)}"
        )
        return {
            "match_result": result,
            "report": baseline_report(result, state["record"].profile),
            "model_used": "",
        }

    async def node_enrich_report(self, state: AnalysisState):
        report = state["report"]
        if self.llm is None:
            return {"report": report}
        try:
            with PerformanceMonitor("analysis enrichment", logger, threshold_ms=20000):
                payload = await self.enrich(state["vacancy"], state["record"].profile, state["match_result"])
        except Exception as e:
            error = getattr(e, "message", None) or str(e)
            logger.warning(f"Enrichment failed for resume {state['resume_id']}: {error}")
            note = ENRICHMENT_FAILED_NOTE.format(error=error)
            return {"report": report.model_copy(update={"hr_recommendation": note})}
        return {"report": apply_enrichment(report, payload), "model_used": self.model_name}

    async def node_persist_analysis(self, state: AnalysisState):
        analysis = AnalysisModel(
            resume_id=state["resume_id"],
            vacancy_id=state["vacancy_id"],
            owner_id=analysis_owner(state),
            score=state["match_result"].score,
            model_name=state.get("model_used", ""),
            report=state["report"],
            created_at=utc_now(),
        )
        return {"analysis": await self.analyses.create(analysis)}

    def build_graph(self):
        g = StateGraph(AnalysisState)
        g.add_node("load_vacancy", self.node_load_vacancy)
        g.add_node("resolve_profile", self.node_resolve_profile)
        g.add_node("match_skills", self.node_match_skills)
        g.add_node("enrich_report", self.node_enrich_report)
        g.add_node("persist_analysis", self.node_persist_analysis)
        g.set_entry_point("load_vacancy")
        g.add_edge("load_vacancy", "resolve_profile")
        g.add_edge("resolve_profile", "match_skills")
        g.add_edge("match_skills", "enrich_report")
        g.add_edge("enrich_report", "persist_analysis")
        g.add_edge("persist_analysis", END)
        return g.compile()

    # ---- operations ----

    async def enrich(self, vacancy: VacancyModel, profile: ResumeProfile, result: MatchResult) -> EnrichmentPayload:
        raw = await ask_model(
            self.llm,
            ENRICHMENT_SYSTEM_PROMPT,
            ENRICHMENT_USER_PROMPT.format(
                title=vacancy.title,
                description=vacancy.description,
                summary=profile.summary,
                skills=", ".join(profile.skills),
                experience_count=len(profile.experience),
                education_count=len(profile.education),
                matched=", ".join(result.matched_skills),
                missing=", ".join(result.missing_skills),
            ),
        )
        payload = parse_llm_json(raw, EnrichmentPayload)
        if payload.is_empty():
            raise ResponseParseError("service response has no narrative fields", target="EnrichmentPayload")
        return payload

    async def create_analysis(self, actor: Actor, resume_id: str, vacancy_id: str) -> AnalysisModel:
        logger.info(f"Creating analysis for resume {resume_id} and vacancy {vacancy_id} (actor {actor.user_id})")
        state = await self.graph.ainvoke(
            {"actor": actor, "resume_id": resume_id, "vacancy_id": vacancy_id}
        )
        return state["analysis"]

    async def get(self, actor: Actor, analysis_id: str) -> AnalysisModel:
        analysis = await self.analyses.get_by_id(analysis_id)
        if analysis is None or (not actor.is_admin and analysis.owner_id != actor.user_id):
            raise NotFoundError(f"analysis {analysis_id} not found", resource="analysis", resource_id=analysis_id)
        return analysis

    async def list_all(self, actor: Actor, limit: int = 50, offset: int = 0) -> List[AnalysisModel]:
        return await self.analyses.list_all(owner_id=actor.scope, limit=limit, offset=offset)

    async def delete(self, actor: Actor, analysis_id: str) -> None:
        await self.get(actor, analysis_id)
        await self.analyses.delete(analysis_id)
        logger.info(f"Analysis {analysis_id} deleted by {actor.user_id}")

    async def list_by_vacancy(
        self, actor: Actor, vacancy_id: str, limit: int = 50, offset: int = 0
    ) -> List[AnalysisModel]:
        await self.vacancies.get_vacancy(vacancy_id, owner_id=actor.scope)
        return await self.analyses.list_by_vacancy(vacancy_id, owner_id=actor.scope, limit=limit, offset=offset)

    async def vacancy_report(self, actor: Actor, vacancy_id: str) -> Tuple[VacancyModel, List[AnalysisModel]]:
        vacancy = await self.vacancies.get_vacancy(vacancy_id, owner_id=actor.scope)
        analyses = await self.analyses.list_by_vacancy(vacancy_id, owner_id=actor.scope, limit=1000)
        return vacancy, analyses
