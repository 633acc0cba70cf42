"""
Shared fixtures: an in-memory store, an app client bound to it, and
sample scan replies.
"""
import os
from typing import Generator

# Every test runs against the canned demo assistant and an in-memory database
os.environ["FORCE_DEMO_MODE"] = "true"
os.environ["ANTHROPIC_API_KEY"] = ""
os.environ["DATABASE_URL"] = "sqlite:///:memory:"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from decision_os.config import get_settings
from decision_os.database import Base, get_db
from decision_os.main import app
from decision_os.middleware.rate_limit import limiter
from decision_os.models import StoredValue  # noqa: F401
from decision_os.services.storage import KeyValueStore


@pytest.fixture(scope="session")
def engine() -> Engine:
    """One shared connection so every session sees the same in-memory tables."""
    return create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )


@pytest.fixture
def db_session(engine: Engine) -> Generator[Session, None, None]:
    """Fresh tables per test."""
    Base.metadata.create_all(bind=engine)
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def store(db_session: Session) -> KeyValueStore:
    return KeyValueStore(db_session)


@pytest.fixture
def client(db_session: Session) -> Generator[TestClient, None, None]:
    """App client whose requests all use the test session."""
    app.dependency_overrides[get_db] = lambda: db_session

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def scan_text() -> str:
    """Operational scan reply with a preamble, three findings and a summary."""
    return (
        "I reviewed both data sources.\n\n"
        "FINDING 1\n"
        "PATTERN: Invoices aging past 90 days\n"
        "EVIDENCE: 42 invoices in AR_Aging.xlsx\n"
        "RECURRENCE: Monthly since 2023\n"
        "IMPACT: RM 180,000 - RM 320,000 in delayed cash\n"
        "ROOT CAUSE: Process - no escalation step\n"
        "FIX: Weekly collections review\n"
        "SEVERITY: Tier 1\n"
        "CONFIDENCE: HIGH - consistent across months\n"
        "ASSUMPTIONS: Aging report is complete\n\n"
        "FINDING 2\n"
        "PATTERN: Duplicate vendor payments\n"
        "IMPACT: RM 12,000 per quarter\n"
        "SEVERITY: Tier 3 - systemic\n\n"
        "FINDING 3\n"
        "PATTERN: Overtime concentrated in one team\n"
        "IMPACT: Unclear\n\n"
        "SCAN SUMMARY: Three patterns found.\n"
    )


@pytest.fixture
def revenue_text() -> str:
    return (
        "OPPORTUNITY 1\n"
        "CATEGORY: Pricing\n"
        "PATTERN: Unused API data\n"
        "REVENUE POTENTIAL: RM 50,000 - RM 120,000\n"
        "TIMEFRAME: Quick Win (0-90 days)\n"
        "ACTION: Package usage reports\n\n"
        "OPPORTUNITY 2\n"
        "CATEGORY: Expansion\n"
        "PATTERN: Regional distributor demand\n"
        "REVENUE POTENTIAL: RM 400,000\n"
        "TIMEFRAME: Strategic (6-12 months)\n"
    )


@pytest.fixture(autouse=True)
def reset_singletons():
    """Reset global singleton instances and settings before each test for proper isolation."""
    import decision_os.services.amount_extractor as amount_module
    import decision_os.services.dataset_loader as loader_module
    import decision_os.services.finding_parser as finding_module
    import decision_os.services.llm_client as llm_module
    import decision_os.services.opportunity_parser as opportunity_module

    modules = (
        (amount_module, "_extractor_instance"),
        (loader_module, "_loader_instance"),
        (finding_module, "_parser_instance"),
        (llm_module, "_client_instance"),
        (opportunity_module, "_parser_instance"),
    )

    for module, name in modules:
        setattr(module, name, None)
    get_settings.cache_clear()
    limiter.enabled = False

    yield

    for module, name in modules:
        setattr(module, name, None)
    get_settings.cache_clear()
    limiter.enabled = True
