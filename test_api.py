"""
tests for the fastapi surface, with the ai clients replaced by fakes
"""

import re

import pytest
from fastapi.testclient import TestClient

from conftest import FakeAnalysisClient, FakeRoadmapClient, make_result
from study_assistant.api import create_app
from study_assistant.exceptions import RemoteServiceError
from study_assistant.llm_service import GeminiLLMService
from study_assistant.models import ROADMAP_FAILED_MESSAGE
from study_assistant.roadmap_client import RoadmapClient
from study_assistant.session import StudySession
from study_assistant.storage import MemoryStore


@pytest.fixture
def fakes():
    analysis = FakeAnalysisClient()
    analysis.default = make_result(["Mitoz", "Hücre"], high=["Mitoz"])
    return analysis, FakeRoadmapClient(), MemoryStore()


@pytest.fixture
def client(fakes):
    analysis, roadmap, storage = fakes
    app = create_app(session_factory=lambda: StudySession(storage, analysis, roadmap))
    with TestClient(app) as test_client:
        yield test_client


def upload(client, tiny_pdf, *names):
    files = [("files", (name, tiny_pdf, "application/pdf")) for name in names]
    return client.post("/files", params={"wait": "true"}, files=files)


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_upload_analyzes_and_lists_files(client, tiny_pdf):
    response = upload(client, tiny_pdf, "biyoloji.pdf")
    assert response.status_code == 201
    (entry,) = response.json()
    assert entry["fileName"] == "biyoloji.pdf"
    assert entry["fileSize"] == len(tiny_pdf)
    assert entry["status"] == "completed"
    assert entry["result"]["studyPlan"][0]["priority"] == "Yüksek"
    assert "rawPayload" not in entry

    listed = client.get("/files").json()
    assert [f["id"] for f in listed] == [entry["id"]]
    assert client.get(f"/files/{entry['id']}").json()["status"] == "completed"


def test_invalid_upload_is_rejected(client):
    response = client.post("/files", files=[("files", ("notes.pdf", b"plain text", "application/pdf"))])
    assert response.status_code == 400
    assert client.get("/files").json() == []


def test_failed_analysis_is_reported_per_file(client, fakes, tiny_pdf):
    analysis, _, _ = fakes
    analysis.default = RemoteServiceError("Gemini API error: 500")
    (entry,) = upload(client, tiny_pdf, "bozuk.pdf").json()
    assert entry["status"] == "error"
    assert entry["errorMessage"] == "Gemini API error: 500"
    assert entry["result"] is None


def test_topics(client, tiny_pdf):
    empty = client.get("/topics").json()
    assert empty == {"allTopics": [], "highPriorityTopics": [], "canGenerateRoadmap": False}

    upload(client, tiny_pdf, "a.pdf")
    topics = client.get("/topics").json()
    assert topics["allTopics"] == ["Hücre", "Mitoz"]
    assert topics["highPriorityTopics"] == ["Mitoz"]
    assert topics["canGenerateRoadmap"] is True


def test_roadmap_generation(client, fakes, tiny_pdf):
    _, roadmap, _ = fakes

    nothing = client.post("/roadmap").json()
    assert nothing["generated"] is False
    assert roadmap.calls == []

    upload(client, tiny_pdf, "a.pdf")
    generated = client.post("/roadmap").json()
    assert generated["generated"] is True
    assert generated["steps"][0]["stepName"] == "Adım 1"
    assert client.get("/roadmap").json()["steps"] == generated["steps"]


def test_roadmap_failure_keeps_previous_roadmap(client, fakes, tiny_pdf):
    _, roadmap, _ = fakes
    upload(client, tiny_pdf, "a.pdf")
    client.post("/roadmap")

    roadmap.outcome = RemoteServiceError("Gemini API error: 503")
    response = client.post("/roadmap")
    assert response.status_code == 502
    assert response.json()["detail"] == ROADMAP_FAILED_MESSAGE
    assert client.get("/roadmap").json()["steps"][0]["stepName"] == "Adım 1"


def test_remove_file(client, tiny_pdf):
    (entry,) = upload(client, tiny_pdf, "a.pdf").json()
    assert client.delete(f"/files/{entry['id']}").status_code == 204
    assert client.get(f"/files/{entry['id']}").status_code == 404
    assert client.delete(f"/files/{entry['id']}").status_code == 404


def test_clear_all_requires_confirmation(client, fakes, tiny_pdf):
    _, _, storage = fakes
    upload(client, tiny_pdf, "a.pdf")
    client.post("/roadmap")

    assert client.delete("/files").status_code == 400
    assert len(client.get("/files").json()) == 1

    assert client.delete("/files", params={"confirm": "true"}).status_code == 204
    assert client.get("/files").json() == []
    assert client.get("/roadmap").json()["steps"] == []
    assert storage.data == {}


def test_report_download(client, tiny_pdf):
    upload(client, tiny_pdf, "<i>ders</i>.pdf")
    response = client.get("/report")
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/html")
    assert re.search(r'filename="calisma-raporu-\d{4}-\d{2}-\d{2}\.html"', response.headers["content-disposition"])
    assert "&lt;i&gt;ders&lt;/i&gt;.pdf" in response.text


# requests.Session stand-in whose replies are valid JSON but not a response object
class ListEnvelopeSession:
    def post(self, url, headers=None, json=None, timeout=None):
        return ListEnvelopeResponse()


class ListEnvelopeResponse:
    status_code = 200
    text = "[]"

    def json(self):
        return [{"candidates": []}]


def test_roadmap_with_unexpected_envelope_returns_failure_notice(fakes, tiny_pdf):
    analysis, _, storage = fakes
    llm = GeminiLLMService(api_key="test-key", session=ListEnvelopeSession())
    app = create_app(session_factory=lambda: StudySession(storage, analysis, RoadmapClient(llm)))

    with TestClient(app) as test_client:
        upload(test_client, tiny_pdf, "a.pdf")
        response = test_client.post("/roadmap")

    assert response.status_code == 502
    assert response.json()["detail"] == ROADMAP_FAILED_MESSAGE
