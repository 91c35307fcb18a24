"""
Shared fixtures. Stubs and builders live in helpers.py.
"""
import pytest

from advisorboard.models.advisor import Advisor
from helpers import FakeClock, RecordingSleep, StubProvider, make_advisor, make_integration, make_orchestrator


@pytest.fixture
def clinical_advisor() -> Advisor:
    return make_advisor()


@pytest.fixture
def product_advisor() -> Advisor:
    return Advisor(
        id="pb-cto",
        name="Marcus Hale",
        expertise="software architecture",
        background="Built API platforms at scale.",
        domain="productboard",
    )


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def api_services(monkeypatch):
    """
    Install stub-backed singletons for the HTTP routes.

    Returns (orchestrator, provider) so tests can script provider outcomes.
    """
    from advisorboard.services.llm import integration as integration_module
    from advisorboard.services.orchestration import orchestrator as orchestrator_module

    provider = StubProvider("primary", ["Run a pre-IND meeting first."])
    layer = make_integration(provider, StubProvider("secondary", ["secondary answer"]))
    orchestrator = make_orchestrator(layer)
    monkeypatch.setattr(integration_module, "_integration_layer", layer)
    monkeypatch.setattr(orchestrator_module, "_response_orchestrator", orchestrator)
    return orchestrator, provider
