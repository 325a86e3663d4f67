import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from conftest import StubChatModel, ok_record
from screening.main import app
from screening.middleware.error_handlers import (
    ExceptionHandlerMiddleware, PerformanceMiddleware, RequestLoggingMiddleware,
)
from screening.models.models import ProfileRecord, ProfileStatus
from screening.services.container import get_analysis_service, get_resume_service, get_vacancy_service
from screening.utils.exceptions import NotFoundError

OWNER_HEADERS = {"X-User-Id": "u1"}
STRANGER_HEADERS = {"X-User-Id": "u2"}
ADMIN_HEADERS = {"X-User-Id": "hr", "X-User-Role": "admin"}


@pytest.fixture
def stub_llm(enrichment_json):
    return StubChatModel(enrichment_json)


@pytest.fixture
def client(make_services, stub_llm, vacancy_service):
    resumes, analyses = make_services(stub_llm)
    app.dependency_overrides[get_resume_service] = lambda: resumes
    app.dependency_overrides[get_analysis_service] = lambda: analyses
    app.dependency_overrides[get_vacancy_service] = lambda: vacancy_service
    yield TestClient(app)
    app.dependency_overrides.clear()


class TestAnalysesAPI:
    """Test cases for the analysis endpoints"""

    def test_create_analysis(self, client, resume_store):
        resume_store.add("r1", record=ok_record("r1"))

        response = client.post("/api/analyses", json={"resume_id": "r1", "vacancy_id": "v1"}, headers=OWNER_HEADERS)

        assert response.status_code == 201
        data = response.json()
        assert data["score"] == pytest.approx(0.74)
        assert data["report"]["matched_skills"] == ["Go", "Kubernetes"]
        assert data["report"]["missing_skills"] == ["Terraform"]
        assert data["owner_id"] == "u1"
        assert "X-Request-ID" in response.headers

    def test_profile_not_ready(self, client, resume_store):
        resume_store.add("r1", record=ProfileRecord(
            resume_id="r1", status=ProfileStatus.FAILED, error_message="empty resume text"
        ))

        response = client.post("/api/analyses", json={"resume_id": "r1", "vacancy_id": "v1"}, headers=OWNER_HEADERS)

        assert response.status_code == 409
        error = response.json()["detail"]["error"]
        assert error["error_code"] == "PROFILE_NOT_READY"
        assert error["details"]["status"] == "failed"

    def test_unknown_vacancy(self, client, resume_store):
        resume_store.add("r1", record=ok_record("r1"))

        response = client.post("/api/analyses", json={"resume_id": "r1", "vacancy_id": "nope"}, headers=OWNER_HEADERS)

        assert response.status_code == 404

    def test_missing_actor_header(self, client):
        response = client.post("/api/analyses", json={"resume_id": "r1", "vacancy_id": "v1"})

        assert response.status_code == 400

    def test_get_analysis_ownership(self, client, resume_store):
        resume_store.add("r1", record=ok_record("r1"))
        created = client.post(
            "/api/analyses", json={"resume_id": "r1", "vacancy_id": "v1"}, headers=OWNER_HEADERS
        ).json()

        own = client.get(f"/api/analyses/{created['analysis_id']}", headers=OWNER_HEADERS)
        other = client.get(f"/api/analyses/{created['analysis_id']}", headers={"X-User-Id": "u2"})
        admin = client.get(
            f"/api/analyses/{created['analysis_id']}", headers={"X-User-Id": "hr", "X-User-Role": "admin"}
        )

        assert own.status_code == 200
        assert other.status_code == 404
        assert admin.status_code == 200

    def test_list_and_export(self, client, resume_store):
        resume_store.add("r1", record=ok_record("r1"))
        client.post("/api/analyses", json={"resume_id": "r1", "vacancy_id": "v1"}, headers=OWNER_HEADERS)

        listed = client.get("/api/vacancies/v1/analyses", headers=OWNER_HEADERS)
        assert listed.status_code == 200
        assert listed.json()["count"] == 1

        csv_resp = client.get("/api/vacancies/v1/analyses/export?format=csv", headers=OWNER_HEADERS)
        assert csv_resp.status_code == 200
        assert csv_resp.headers["content-type"].startswith("text/csv")
        assert csv_resp.text.splitlines()[0].startswith("analysis_id,resume_id,score")

        md_resp = client.get("/api/vacancies/v1/analyses/export?format=md", headers=OWNER_HEADERS)
        assert md_resp.status_code == 200
        assert "| 1 | r1 |" in md_resp.text

    def test_foreign_pair_is_not_found(self, client, resume_store):
        resume_store.add("r1", record=ok_record("r1"))

        response = client.post(
            "/api/analyses", json={"resume_id": "r1", "vacancy_id": "v1"}, headers=STRANGER_HEADERS
        )

        assert response.status_code == 404
        assert client.get("/api/vacancies/v1/analyses", headers=STRANGER_HEADERS).status_code == 404
        assert client.get("/api/vacancies/v1/analyses/export", headers=STRANGER_HEADERS).status_code == 404

    def test_list_all_and_delete(self, client, resume_store):
        resume_store.add("r1", record=ok_record("r1"))
        created = client.post(
            "/api/analyses", json={"resume_id": "r1", "vacancy_id": "v1"}, headers=OWNER_HEADERS
        ).json()

        mine = client.get("/api/analyses", headers=OWNER_HEADERS).json()
        assert mine["count"] == 1
        assert mine["vacancy_id"] is None
        assert client.get("/api/analyses", headers=STRANGER_HEADERS).json()["count"] == 0

        url = f"/api/analyses/{created['analysis_id']}"
        assert client.delete(url, headers=STRANGER_HEADERS).status_code == 404
        deleted = client.delete(url, headers=OWNER_HEADERS)
        assert deleted.status_code == 204
        assert deleted.content == b""
        assert client.get(url, headers=ADMIN_HEADERS).status_code == 404

    def test_export_bad_format(self, client):
        response = client.get("/api/vacancies/v1/analyses/export?format=xlsx", headers=OWNER_HEADERS)

        assert response.status_code == 400


class TestResumesAPI:
    """Test cases for the resume endpoints"""

    def test_upload_txt(self, client, stub_llm, profile_json):
        stub_llm.responses = [profile_json]

        response = client.post(
            "/api/resumes/r9/upload",
            files={"file": ("cv.txt", b"Jane Doe\nGo developer", "text/plain")},
            headers=OWNER_HEADERS,
        )

        assert response.status_code == 200
        assert response.json()["status"] == "ok"

        profile = client.get("/api/resumes/r9/profile", headers=OWNER_HEADERS)
        assert profile.json()["profile"]["skills"][0] == "Golang"

    def test_upload_unsupported(self, client):
        response = client.post(
            "/api/resumes/r9/upload",
            files={"file": ("cv.png", b"\x89PNG", "image/png")},
            headers=OWNER_HEADERS,
        )

        assert response.status_code == 400

    def test_profile_not_found(self, client):
        response = client.get("/api/resumes/unknown/profile", headers=OWNER_HEADERS)

        assert response.status_code == 404

    def test_rebuild(self, client, resume_store, stub_llm):
        resume_store.add("r1", "   ")

        response = client.post("/api/resumes/r1/profile/rebuild", headers=OWNER_HEADERS)

        assert response.status_code == 200
        assert response.json()["status"] == "failed"
        assert response.json()["error_message"] == "empty resume text"

    def test_foreign_resume_is_hidden(self, client, resume_store):
        resume_store.add("r1", record=ok_record("r1"))

        assert client.get("/api/resumes/r1/profile", headers=STRANGER_HEADERS).status_code == 404
        assert client.post("/api/resumes/r1/profile/rebuild", headers=STRANGER_HEADERS).status_code == 404
        upload = client.post(
            "/api/resumes/r1/upload",
            files={"file": ("cv.txt", b"Someone else", "text/plain")},
            headers=STRANGER_HEADERS,
        )
        assert upload.status_code == 404
        assert resume_store.parsed["r1"] == "Go developer"
        assert client.get("/api/resumes/r1/profile", headers=ADMIN_HEADERS).status_code == 200

    def test_rebuild_without_text(self, client):
        response = client.post("/api/resumes/missing/profile/rebuild", headers=OWNER_HEADERS)

        assert response.status_code == 404



class TestVacanciesAPI:
    """Test cases for the vacancy endpoints"""

    def test_create_and_read(self, client):
        response = client.post(
            "/api/vacancies",
            json={"title": "Data Engineer", "skills": [{"skill": "Python", "weight": 0.6}, {"skill": "SQL"}]},
            headers=STRANGER_HEADERS,
        )

        assert response.status_code == 201
        created = response.json()
        assert created["owner_id"] == "u2"
        assert [s["skill"] for s in created["skills"]] == ["Python", "SQL"]

        url = f"/api/vacancies/{created['vacancy_id']}"
        assert client.get(url, headers=STRANGER_HEADERS).status_code == 200
        assert client.get(url, headers=OWNER_HEADERS).status_code == 404
        assert client.get(url, headers=ADMIN_HEADERS).status_code == 200

    def test_blank_title_rejected(self, client):
        response = client.post("/api/vacancies", json={"title": "  "}, headers=OWNER_HEADERS)

        assert response.status_code == 400
        assert response.json()["detail"]["message"] == "title is required"

    def test_list(self, client):
        client.post("/api/vacancies", json={"title": "Data Engineer"}, headers=STRANGER_HEADERS)

        mine = client.get("/api/vacancies", headers=OWNER_HEADERS).json()
        everything = client.get("/api/vacancies", headers=ADMIN_HEADERS).json()

        assert [v["vacancy_id"] for v in mine["vacancies"]] == ["v1"]
        assert everything["count"] == 2

    def test_update_skills(self, client):
        body = {"skills": [{"skill": "Go", "weight": 0.1}, {"skill": "GO", "weight": 0.9}]}

        foreign = client.put("/api/vacancies/v1/skills", json=body, headers=STRANGER_HEADERS)
        own = client.put("/api/vacancies/v1/skills", json=body, headers=OWNER_HEADERS)

        assert foreign.status_code == 404
        assert own.status_code == 200
        assert own.json()["skills"] == [{"skill": "GO", "weight": 0.9}]


class TestMiddleware:
    """Errors that escape a route are rendered as the JSON envelope"""

    @pytest.fixture
    def bare_client(self):
        bare = FastAPI()
        bare.add_middleware(PerformanceMiddleware, slow_request_threshold=5.0)
        bare.add_middleware(RequestLoggingMiddleware)
        bare.add_middleware(ExceptionHandlerMiddleware)

        @bare.get("/missing")
        async def missing():
            raise NotFoundError("resume r1 not found", resource="resume", resource_id="r1")

        @bare.get("/crash")
        async def crash():
            raise RuntimeError("kaboom")

        return TestClient(bare)

    def test_custom_exception(self, bare_client):
        response = bare_client.get("/missing", headers={"X-Request-ID": "req-1"})

        assert response.status_code == 404
        body = response.json()
        assert body["success"] is False
        assert body["request_id"] == "req-1"
        assert body["message"] == "resume r1 not found"
        assert body["error"]["error_code"] == "NOT_FOUND"

    def test_unhandled_exception_is_hidden(self, bare_client):
        response = bare_client.get("/crash")

        assert response.status_code == 500
        assert "kaboom" not in response.text
        assert response.headers["X-Request-ID"]

    def test_timing_header(self, client):
        response = client.get("/")

        assert response.status_code == 200
        assert "X-Processing-Time" in response.headers
