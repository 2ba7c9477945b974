"""
shared fakes and fixtures for the study assistant tests
"""

import asyncio
import base64
import sys
from pathlib import Path
from typing import Dict, List, Optional, Sequence

import pytest

# add src to python path so the package imports without installing it
sys.path.insert(0, str(Path(__file__).parent / "src"))

from study_assistant.models import AnalysisResult, Priority, RoadmapStep, StudyItem  # noqa: E402


def make_result(topics: Sequence[str], high: Sequence[str] = (), medium: Sequence[str] = (), summary: str = "Özet") -> AnalysisResult:
    """Build an AnalysisResult; plan rows are HIGH for `high`, MEDIUM for `medium`, LOW for the rest"""
    plan = []
    for topic in topics:
        if topic in high:
            priority = Priority.HIGH
        elif topic in medium:
            priority = Priority.MEDIUM
        else:
            priority = Priority.LOW
        plan.append(StudyItem(topic=topic, action=f"{topic} konusunu tekrar et", priority=priority))
    return AnalysisResult(summary=summary, topics=list(topics), study_plan=plan)


# stands in for AnalysisClient; outcomes are keyed by the decoded payload text
class FakeAnalysisClient:
    def __init__(self):
        self.outcomes: Dict[str, object] = {}
        self.default: object = make_result(["Genel"])
        self.gates: Dict[str, asyncio.Event] = {}
        self.calls: List[str] = []

    def gate(self, payload: str) -> asyncio.Event:
        """Hold the analysis of `payload` until the returned event is set"""
        event = asyncio.Event()
        self.gates[payload] = event
        return event

    async def analyze(self, encoded_payload: str, mime_type: str) -> AnalysisResult:
        payload = base64.b64decode(encoded_payload).decode("utf-8")
        self.calls.append(payload)
        if payload in self.gates:
            await self.gates[payload].wait()
        outcome = self.outcomes.get(payload, self.default)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


# stands in for RoadmapClient
class FakeRoadmapClient:
    def __init__(self):
        self.outcome: object = [
            RoadmapStep(step_name="Adım 1", title="Temeller", description="Temel kavramlar", topics=["A"]),
        ]
        self.calls: List[List[AnalysisResult]] = []
        self.gate: Optional[asyncio.Event] = None

    async def build_roadmap(self, results: Sequence[AnalysisResult]) -> List[RoadmapStep]:
        self.calls.append(list(results))
        if self.gate is not None:
            await self.gate.wait()
        if isinstance(self.outcome, Exception):
            raise self.outcome
        return list(self.outcome)


# stands in for GeminiLLMService; returns queued texts from generate_structured
class FakeLLMService:
    def __init__(self, *responses: str):
        self.responses = list(responses)
        self.requests = []

    def generate_structured(self, parts, response_schema) -> str:
        self.requests.append((parts, response_schema))
        return self.responses.pop(0)


@pytest.fixture
def analysis_client():
    return FakeAnalysisClient()


@pytest.fixture
def roadmap_client():
    return FakeRoadmapClient()


@pytest.fixture
def tiny_pdf() -> bytes:
    """A valid one-page PDF built with PyMuPDF"""
    import fitz

    doc = fitz.open()
    page = doc.new_page()
    page.insert_text((72, 72), "Hücre Biyolojisi")
    data = doc.tobytes()
    doc.close()
    return data
