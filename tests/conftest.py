import os

os.environ.setdefault("ENVIRONMENT", "testing")

import json
import pytest
from datetime import timedelta

from screening.models.models import (
    ParsedResume, ProfileRecord, ProfileStatus, ResumeProfile, SkillRequirement, collapse_requirements, utc_now,
)
from screening.models.schemas import VacancyModel
from screening.services.analysis import AnalysisService
from screening.services.profiles import ProfileExtractor, ResumeService
from screening.services.vacancies import VacancyService
from screening.utils.exceptions import NotFoundError


SAMPLE_PROFILE = {
    "summary": "Backend engineer building REST API services in Go.",
    "skills": ["Golang", "PostgreSQL", "Docker", "Distributed systems"],
    "experience": [
        {
            "company": "Acme",
            "role": "Backend Engineer",
            "start": "2020-01",
            "end": "present",
            "description": "Ran services on Kubernetes and maintained CI/CD pipelines.",
        }
    ],
    "education": [
        {"institution": "State University", "degree": "BSc Computer Science", "start": "2014", "end": "2018"}
    ],
}

SAMPLE_ENRICHMENT = {
    "candidate_summary": "Experienced Go backend engineer.",
    "unique_strengths": ["Production Kubernetes"],
    "hr_recommendation": "Invite to technical interview.",
    "candidate_recommendations": ["Add metrics about scale"],
}


class StubChatModel:
    """Returns queued replies in order; the last reply repeats. Exceptions are raised."""

    service_name = "stub"

    def __init__(self, *responses, model_name="stub-model"):
        self.responses = list(responses)
        self.model_name = model_name
        self.calls = []

    def ask(self, system_prompt, user_prompt):
        self.calls.append((system_prompt, user_prompt))
        item = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(item, Exception):
            raise item
        return item


def scoped_out(doc_owner, owner_id):
    return owner_id is not None and doc_owner != owner_id


class FakeResumeStore:
    def __init__(self):
        self.parsed = {}
        self.owners = {}
        self.profiles = {}
        self.history = []

    def add(self, resume_id, text="Go developer", owner_id="u1", record=None):
        self.parsed[resume_id] = text
        self.owners[resume_id] = owner_id
        if record is not None:
            self.profiles[resume_id] = record

    async def find_resume(self, resume_id):
        if resume_id not in self.parsed:
            return None
        return ParsedResume(resume_id=resume_id, text=self.parsed[resume_id], owner_id=self.owners.get(resume_id))

    async def get_resume(self, resume_id, owner_id=None):
        if resume_id not in self.parsed or scoped_out(self.owners.get(resume_id), owner_id):
            raise NotFoundError(f"parsed resume text not found for resume {resume_id}")
        return await self.find_resume(resume_id)

    async def save_parsed_text(self, parsed):
        self.parsed[parsed.resume_id] = parsed.text
        if parsed.owner_id is not None:
            self.owners[parsed.resume_id] = parsed.owner_id

    async def upsert_profile(self, record):
        self.profiles[record.resume_id] = record
        self.history.append(record)

    async def get_profile(self, resume_id):
        return self.profiles.get(resume_id)


class FakeVacancyStore:
    def __init__(self, *vacancies):
        self.vacancies = {v.vacancy_id: v for v in vacancies}

    async def create(self, vacancy):
        self.vacancies[vacancy.vacancy_id] = vacancy
        return vacancy

    async def get_vacancy(self, vacancy_id, owner_id=None):
        vacancy = self.vacancies.get(vacancy_id)
        if vacancy is None or scoped_out(vacancy.owner_id, owner_id):
            raise NotFoundError(f"vacancy {vacancy_id} not found")
        return vacancy

    async def get_requirements(self, vacancy_id):
        return (await self.get_vacancy(vacancy_id)).skills

    async def list_vacancies(self, owner_id=None, limit=50, offset=0):
        found = [v for v in self.vacancies.values() if not scoped_out(v.owner_id, owner_id)]
        found.sort(key=lambda v: v.created_at, reverse=True)
        return found[offset:offset + limit]

    async def update_skills(self, vacancy_id, skills, owner_id=None):
        vacancy = await self.get_vacancy(vacancy_id, owner_id)
        updated = vacancy.model_copy(update={"skills": collapse_requirements(skills)})
        self.vacancies[vacancy_id] = updated
        return updated


class FakeAnalysisStore:
    def __init__(self):
        self.items = []

    async def create(self, analysis):
        self.items.append(analysis)
        return analysis

    async def get_by_id(self, analysis_id):
        return next((a for a in self.items if a.analysis_id == analysis_id), None)

    async def list_all(self, owner_id=None, limit=50, offset=0):
        found = [a for a in self.items if not scoped_out(a.owner_id, owner_id)]
        found.sort(key=lambda a: a.created_at, reverse=True)
        return found[offset:offset + limit]

    async def list_by_vacancy(self, vacancy_id, owner_id=None, limit=50, offset=0):
        found = [a for a in await self.list_all(owner_id, limit=len(self.items)) if a.vacancy_id == vacancy_id]
        return found[offset:offset + limit]

    async def delete(self, analysis_id):
        before = len(self.items)
        self.items = [a for a in self.items if a.analysis_id != analysis_id]
        return len(self.items) < before


def ok_record(resume_id="r1", **profile_overrides):
    data = {**SAMPLE_PROFILE, **profile_overrides}
    return ProfileRecord(
        resume_id=resume_id,
        status=ProfileStatus.OK,
        model_name="stub-model",
        profile=ResumeProfile(**data),
        updated_at=utc_now() - timedelta(minutes=1),
    )


@pytest.fixture
def vacancy():
    return VacancyModel(
        vacancy_id="v1",
        owner_id="u1",
        title="Backend Engineer",
        description="Go services on Kubernetes",
        skills=[
            SkillRequirement(skill="Go", weight=0.5),
            SkillRequirement(skill="Kubernetes", weight=0.3),
            SkillRequirement(skill="Terraform", weight=0.2),
        ],
    )


@pytest.fixture
def resume_store():
    return FakeResumeStore()


@pytest.fixture
def vacancy_store(vacancy):
    return FakeVacancyStore(vacancy)


@pytest.fixture
def analysis_store():
    return FakeAnalysisStore()


@pytest.fixture
def make_services(resume_store, vacancy_store, analysis_store):
    """Factory building (ResumeService, AnalysisService) around one chat model."""
    def _make(llm=None):
        extractor = ProfileExtractor(resume_store, llm)
        return (
            ResumeService(resume_store, extractor),
            AnalysisService(resume_store, vacancy_store, analysis_store, extractor, llm),
        )
    return _make


@pytest.fixture
def vacancy_service(vacancy_store):
    return VacancyService(vacancy_store)


@pytest.fixture
def profile_json():
    return json.dumps(SAMPLE_PROFILE)


@pytest.fixture
def enrichment_json():
    return json.dumps(SAMPLE_ENRICHMENT)
