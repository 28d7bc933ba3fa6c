import asyncio
from typing import Any, Callable, Dict, Optional, Tuple
import pytest
from fastapi.testclient import TestClient
from lead_scorer.classifier import IntentClassifier
from lead_scorer.main import app, get_pipeline
from lead_scorer.models import Lead, Offer
from lead_scorer.pipeline import ScoringPipeline
from lead_scorer.repository import InMemoryRepository


class FakeClassifier(IntentClassifier):
    """Canned (intent, reasoning) per lead name; an Exception value is raised instead."""

    def __init__(self, responses: Optional[Dict[str, Any]] = None, default: Tuple[Any, str] = ("Medium", "Canned reasoning."), delay: float = 0):
        self.responses = responses or {}
        self.default = default
        self.delay = delay
        self.calls = 0
        self.in_flight = 0
        self.peak = 0
        self.on_call: Optional[Callable[[Lead], None]] = None

    async def _classify(self, lead: Lead, offer: Offer):
        self.calls += 1
        self.in_flight += 1
        self.peak = max(self.peak, self.in_flight)
        try:
            if self.on_call:
                self.on_call(lead)
            await asyncio.sleep(self.delay)
        finally:
            self.in_flight -= 1
        resp = self.responses.get(lead.name, self.default)
        if isinstance(resp, Exception):
            raise resp
        return resp


@pytest.fixture(autouse=True)
def rules_path(tmp_path, monkeypatch):
    path = tmp_path / "rules.json"
    monkeypatch.setenv("LEAD_SCORER_RULES_PATH", str(path))
    return path


@pytest.fixture
def classifier():
    return FakeClassifier()


@pytest.fixture
def pipeline(classifier):
    return ScoringPipeline(InMemoryRepository(), classifier, max_concurrency=3)


@pytest.fixture
def client(pipeline):
    app.dependency_overrides[get_pipeline] = lambda: pipeline
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def offer_payload():
    return {
        "name": "X",
        "value_props": ["fast"],
        "ideal_use_cases": ["B2B SaaS mid-market"],
    }


@pytest.fixture
def lead_data():
    def make(**overrides) -> Dict[str, str]:
        lead = {
            "name": "Ava Patel",
            "role": "VP of Sales",
            "company": "FlowMetrics",
            "industry": "B2B SaaS",
            "location": "Berlin",
            "linkedin_bio": "Scaling revenue teams at a SaaS startup.",
        }
        lead.update(overrides)
        return lead
    return make
