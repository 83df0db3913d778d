"""Pytest configuration and fixtures."""

import uuid

import pytest
from unittest.mock import AsyncMock, MagicMock
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from medi_scribe.core.models import Base, Doctor
from medi_scribe.llm import LLMResponse, LLMRouter, Message, MessageRole
from medi_scribe.observability import ObservabilityLogger
from medi_scribe.risk import FunctionalStatus, ProcedureCategory, RiskCalculatorInputs


TEST_DOCTOR_ID = uuid.UUID("bbbbbbbb-bbbb-bbbb-bbbb-bbbbbbbbbbbb")


# ---------------------------------------------------------------------------
# Auth override for tests — bypass get_current_user dependency
# ---------------------------------------------------------------------------

class _MockDoctor:
    """Lightweight stand-in for the Doctor ORM model used in tests."""

    def __init__(self):
        self.id = TEST_DOCTOR_ID
        self.full_name = "Dra. Ana Torres"
        self.email = "ana@example.com"
        self.specialty = "Cardiología"
        self.license_number = "1234567"
        self.phone = None
        self.password_hash = None
        self.active = True


def _fake_current_user():
    return _MockDoctor()


@pytest.fixture
def mock_current_user():
    """Return a mock doctor for auth bypass."""
    return _MockDoctor()


def apply_auth_override(app):
    """Apply get_current_user override to a FastAPI test app."""
    from medi_scribe.api.dependencies import get_current_user
    app.dependency_overrides[get_current_user] = _fake_current_user
    return app


def apply_db_override(app, session):
    """Serve every request from one test session."""
    from medi_scribe.core.database import get_db

    async def _get_db():
        yield session

    app.dependency_overrides[get_db] = _get_db
    return app


# ---------------------------------------------------------------------------
# Isolation
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def obs_log_dir(tmp_path):
    """Route observability JSONL files into a temp directory."""
    log_dir = tmp_path / "obs"
    ObservabilityLogger._instance = ObservabilityLogger(log_dir=log_dir)
    yield log_dir
    ObservabilityLogger.reset_instance()


@pytest.fixture
async def session():
    """In-memory SQLite session with the full schema."""
    engine = create_async_engine("sqlite+aiosqlite://", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as sess:
        yield sess
        await sess.rollback()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def doctor(session):
    """Persisted doctor matching the auth override identity."""
    doc = Doctor(
        id=TEST_DOCTOR_ID,
        full_name="Dra. Ana Torres",
        email="ana@example.com",
        specialty="Cardiología",
        license_number="1234567",
    )
    session.add(doc)
    await session.flush()
    return doc


# ---------------------------------------------------------------------------
# LLM mocks
# ---------------------------------------------------------------------------

@pytest.fixture
def mock_llm_response():
    """Create a mock LLM response."""
    return LLMResponse(
        content='{"test": "response"}',
        model="gemini-test",
        usage={"input_tokens": 100, "output_tokens": 50},
    )


@pytest.fixture
def mock_llm():
    """Create a mock LLM that returns structured responses."""
    llm = MagicMock()
    llm.complete = AsyncMock()
    llm.complete_structured = AsyncMock()
    llm.health_check = AsyncMock(return_value=True)
    llm.model_name = "gemini-test"
    llm.provider = "gemini"
    return llm


@pytest.fixture
def mock_llm_router(mock_llm):
    """Create a mock LLM router."""
    router = MagicMock(spec=LLMRouter)
    router.complete = mock_llm.complete
    router.complete_structured = mock_llm.complete_structured
    router.health_check = AsyncMock(return_value={"gemini-test": True})
    return router


# ---------------------------------------------------------------------------
# Domain samples
# ---------------------------------------------------------------------------

@pytest.fixture
def sample_inputs():
    """Typical elective case: 65-year-old ASA III, other procedure."""
    return RiskCalculatorInputs(
        age=65,
        asa_class=3,
        functional_status=FunctionalStatus.INDEPENDENT,
        creatinine_gt_15=False,
        procedure=ProcedureCategory.OTHER,
    )


@pytest.fixture
def sample_transcript():
    return (
        "Buenos días, me llamo Juan Pérez, mi teléfono es 5512345678. "
        "Tengo dolor de cabeza desde hace tres días y fiebre de 38 grados. "
        "Exploración: TA 120/80, faringe hiperémica. "
        "Plan: paracetamol 500 mg cada 8 horas por 5 días."
    )


@pytest.fixture
def sample_messages():
    """Create sample messages for LLM calls."""
    return [
        Message(role=MessageRole.SYSTEM, content="Eres un asistente clínico."),
        Message(role=MessageRole.USER, content="Resume la consulta."),
    ]
