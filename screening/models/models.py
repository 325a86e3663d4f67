from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field, field_validator

from screening.helpers.text import normalize_skill


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_list(x: Any) -> List[Any]:
    """Coerce a loosely typed JSON value into a list ("a, b; c" -> ["a", "b", "c"])."""
    if x is None:
        return []
    if isinstance(x, str):
        parts = [p.strip() for p in x.replace(";", ",").split(",")]
        return [p for p in parts if p]
    if isinstance(x, (list, tuple)):
        return list(x)
    return [x]


def as_text(x: Any) -> str:
    if x is None:
        return ""
    if isinstance(x, list):
        return " ".join([str(t).strip() for t in x if str(t).strip()])
    return str(x).strip()


class ExperienceItem(BaseModel):
    company: str = ""
    role: str = ""
    start: str = ""
    end: str = ""
    description: str = ""

    @field_validator("company", "role", "start", "end", "description", mode="before")
    @classmethod
    def _text(cls, v):
        return as_text(v)


class EducationItem(BaseModel):
    institution: str = ""
    degree: str = ""
    start: str = ""
    end: str = ""

    @field_validator("institution", "degree", "start", "end", mode="before")
    @classmethod
    def _text(cls, v):
        return as_text(v)


class ResumeProfile(BaseModel):
    summary: str = ""
    skills: List[str] = Field(default_factory=list)
    experience: List[ExperienceItem] = Field(default_factory=list)
    education: List[EducationItem] = Field(default_factory=list)

    @field_validator("summary", mode="before")
    @classmethod
    def _summary(cls, v):
        return as_text(v)

    @field_validator("skills", mode="before")
    @classmethod
    def _skills(cls, v):
        return [str(s).strip() for s in as_list(v) if s is not None and str(s).strip()]

    @field_validator("experience", mode="before")
    @classmethod
    def _experience(cls, v):
        # a bare string entry is kept as the description
        return [{"description": i} if isinstance(i, str) else i for i in as_list(v) if i is not None]

    @field_validator("education", mode="before")
    @classmethod
    def _education(cls, v):
        return [{"degree": i} if isinstance(i, str) else i for i in as_list(v) if i is not None]

    def is_empty(self) -> bool:
        return not self.summary.strip() and not self.skills and not self.experience and not self.education


class ProfileStatus(str, Enum):
    """Profile extraction lifecycle: pending -> ok | failed"""
    PENDING = "pending"
    OK = "ok"
    FAILED = "failed"


class ProfileRecord(BaseModel):
    model_config = ConfigDict(protected_namespaces=())

    resume_id: str
    status: ProfileStatus = ProfileStatus.PENDING
    model_name: str = ""
    error_message: str = ""
    profile: ResumeProfile = Field(default_factory=ResumeProfile)
    updated_at: datetime = Field(default_factory=utc_now)


class SkillRequirement(BaseModel):
    skill: str
    weight: float = 1.0


def collapse_requirements(requirements: Sequence[SkillRequirement]) -> List[SkillRequirement]:
    """Deduplicate by normalized skill text; the last weight wins, the first position is kept."""
    merged: Dict[str, SkillRequirement] = {}
    for req in requirements:
        key = normalize_skill(req.skill)
        if not key:
            continue
        merged[key] = req
    return list(merged.values())


class MatchResult(BaseModel):
    matched_skills: List[str] = Field(default_factory=list)
    missing_skills: List[str] = Field(default_factory=list)
    score: float = 0.0


class Actor(BaseModel):
    """Caller identity forwarded by the gateway; admins see every owner's records."""
    user_id: str
    is_admin: bool = False

    @property
    def scope(self) -> Optional[str]:
        """Owner id to filter lookups by, None for admins."""
        return None if self.is_admin else self.user_id


class EnrichmentPayload(BaseModel):
    candidate_summary: str = ""
    unique_strengths: List[str] = Field(default_factory=list)
    hr_recommendation: str = ""
    candidate_recommendations: List[str] = Field(default_factory=list)

    @field_validator("candidate_summary", "hr_recommendation", mode="before")
    @classmethod
    def _text(cls, v):
        return as_text(v)

    @field_validator("unique_strengths", "candidate_recommendations", mode="before")
    @classmethod
    def _lists(cls, v):
        return [str(s).strip() for s in as_list(v) if s is not None and str(s).strip()]

    def is_empty(self) -> bool:
        return (
            not self.candidate_summary
            and not self.unique_strengths
            and not self.hr_recommendation
            and not self.candidate_recommendations
        )


class ParsedResume(BaseModel):
    resume_id: str
    text: str
    owner_id: Optional[str] = None
    filename: Optional[str] = None
