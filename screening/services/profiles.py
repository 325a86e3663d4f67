"""
Resume profile extraction and resume ingestion.

A ProfileRecord goes pending -> ok | failed on every build. Builds for the
same resume id are serialized through a KeyedLock; the stored record is
always the outcome of the last build to finish.
"""
import asyncio
from typing import Optional

from screening.helpers.parsing import extract_resume_text
from screening.helpers.prompts import PROFILE_SYSTEM_PROMPT, PROFILE_USER_PROMPT
from screening.models.models import Actor, ParsedResume, ProfileRecord, ProfileStatus, ResumeProfile, utc_now
from screening.services.locks import KeyedLock
from screening.utils.exceptions import NotFoundError, ResponseParseError
from screening.utils.logging_config import get_logger, PerformanceMonitor
from screening.utils.utils import parse_llm_json

logger = get_logger(__name__)

MAX_RESUME_CHARS = 12000

EMPTY_TEXT_ERROR = "empty resume text"
NOT_CONFIGURED_ERROR = "extraction service not configured"
UNUSABLE_PROFILE_ERROR = "could not extract a usable profile from the service response"


async def ask_model(llm, system_prompt: str, user_prompt: str) -> str:
    """Run the blocking chat call off the event loop."""
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, llm.ask, system_prompt, user_prompt)


class ProfileExtractor:
    def __init__(self, resumes, llm=None, locks: Optional[KeyedLock] = None):
        self.resumes = resumes
        self.llm = llm
        self.model_name = getattr(llm, "model_name", "") if llm is not None else ""
        self.locks = locks or KeyedLock()

    async def _save(self, rec: ProfileRecord, status: ProfileStatus, error: str = "",
                    profile: Optional[ResumeProfile] = None) -> ProfileRecord:
        rec = rec.model_copy(update={
            "status": status,
            "error_message": error,
            "profile": profile or ResumeProfile(),
            "updated_at": utc_now(),
        })
        await self.resumes.upsert_profile(rec)
        return rec

    async def build_and_save(self, resume_id: str, resume_text: str) -> ProfileRecord:
        async with self.locks.hold(resume_id):
            return await self._build(resume_id, resume_text)

    async def _build(self, resume_id: str, resume_text: str) -> ProfileRecord:
        rec = ProfileRecord(resume_id=resume_id, model_name=self.model_name)
        rec = await self._save(rec, ProfileStatus.PENDING)

        text = (resume_text or "").strip()
        if not text:
            logger.warning(f"Profile build for {resume_id}: resume text is empty")
            return await self._save(rec, ProfileStatus.FAILED, EMPTY_TEXT_ERROR)
        if len(text) > MAX_RESUME_CHARS:
            logger.debug(f"Truncating resume {resume_id} from {len(text)} to {MAX_RESUME_CHARS} chars")
            text = text[:MAX_RESUME_CHARS]

        if self.llm is None:
            logger.warning(f"Profile build for {resume_id}: no text-generation service configured")
            return await self._save(rec, ProfileStatus.FAILED, NOT_CONFIGURED_ERROR)

        try:
            with PerformanceMonitor(f"profile extraction for {resume_id}", logger, threshold_ms=20000):
                raw = await ask_model(
                    self.llm,
                    PROFILE_SYSTEM_PROMPT,
                    PROFILE_USER_PROMPT.format(resume_text=text),
                )
        except Exception as e:
            logger.error(f"Profile extraction call failed for {resume_id}: {e}")
            return await self._save(rec, ProfileStatus.FAILED, getattr(e, "message", None) or str(e))

        try:
            profile = parse_llm_json(raw, ResumeProfile)
        except ResponseParseError as e:
            logger.warning(f"Unparseable profile response for {resume_id}: {e.message}")
            return await self._save(rec, ProfileStatus.FAILED, UNUSABLE_PROFILE_ERROR)

        if profile.is_empty():
            logger.warning(f"Profile response for {resume_id} parsed but was empty")
            return await self._save(rec, ProfileStatus.FAILED, UNUSABLE_PROFILE_ERROR)

        logger.info(
            f"Profile for {resume_id} extracted: {len(profile.skills)} skills, "
            f"{len(profile.experience)} experience, {len(profile.education)} education entries"
        )
        return await self._save(rec, ProfileStatus.OK, profile=profile)


class ResumeService:
    """Resume-facing operations: ingest a file, rebuild or read its profile.

    Non-admin actors only reach resumes they uploaded; anything else is
    reported as not found.
    """

    def __init__(self, resumes, extractor: ProfileExtractor):
        self.resumes = resumes
        self.extractor = extractor

    async def ingest(self, actor: Actor, resume_id: str, filename: str, data: bytes) -> ProfileRecord:
        existing = await self.resumes.find_resume(resume_id)
        owner_id = existing.owner_id if existing is not None and existing.owner_id else actor.user_id
        if actor.scope is not None and owner_id != actor.scope:
            logger.warning(f"Actor {actor.user_id} tried to overwrite resume {resume_id} owned by {owner_id}")
            raise NotFoundError(f"resume {resume_id} not found", resource="resume", resource_id=resume_id)

        text = extract_resume_text(filename, data)
        logger.info(f"Extracted {len(text)} chars from {filename} for resume {resume_id}")
        await self.resumes.save_parsed_text(
            ParsedResume(resume_id=resume_id, text=text, owner_id=owner_id, filename=filename)
        )
        return await self.extractor.build_and_save(resume_id, text)

    async def rebuild_profile(self, actor: Actor, resume_id: str) -> ProfileRecord:
        resume = await self.resumes.get_resume(resume_id, owner_id=actor.scope)
        return await self.extractor.build_and_save(resume_id, resume.text)

    async def get_profile(self, actor: Actor, resume_id: str) -> ProfileRecord:
        if actor.scope is not None:
            await self.resumes.get_resume(resume_id, owner_id=actor.scope)
        rec = await self.resumes.get_profile(resume_id)
        if rec is None:
            raise NotFoundError(f"profile for resume {resume_id} not found", resource="profile", resource_id=resume_id)
        return rec
