"""Pytest configuration and fixtures."""

import os
from collections.abc import Generator
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

# Set test environment before importing app modules
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["REDIS_URL"] = "redis://localhost:6379/1"
os.environ["CELERY_BROKER_URL"] = "memory://"
os.environ["CELERY_RESULT_BACKEND"] = "cache+memory://"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["SLACK_SIGNING_SECRET"] = ""

from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from creative_engine.adapters.ads.stub import StubAdsPlatform  # noqa: E402
from creative_engine.adapters.compositor.stub import StubCompositor  # noqa: E402
from creative_engine.adapters.ledger.stub import StubLedger  # noqa: E402
from creative_engine.adapters.llm.stub import StubLLMProvider  # noqa: E402
from creative_engine.adapters.notifier.stub import StubNotifier  # noqa: E402
from creative_engine.adapters.storage.stub import StubStorage  # noqa: E402
from creative_engine.adapters.voiceover.stub import StubVoiceoverProvider  # noqa: E402
from creative_engine.config import Settings  # noqa: E402
from creative_engine.db.models import Base  # noqa: E402
from creative_engine.domain.models import FootageRef, ScriptDraft  # noqa: E402
from creative_engine.services.approval import ApprovalScheduler, InMemoryDispatcher  # noqa: E402
from creative_engine.services.asset_pipeline import AssetPipeline  # noqa: E402
from creative_engine.services.batch_store import BatchStore  # noqa: E402
from creative_engine.services.publish import PublishOrchestrator  # noqa: E402

UK_TEMPLATES = '{"UK": {"campaign_id": "tc_uk", "ad_set_id": "tas_uk", "ad_id": "tad_uk"}}'


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings with no ledger waits and scratch dirs under tmp_path."""
    return Settings(
        work_dir=str(tmp_path / "work"),
        output_dir=str(tmp_path / "output"),
        ledger_settle_seconds=0,
        ledger_poll_backoff_seconds=0,
        ledger_poll_attempts=3,
        render_concurrency=2,
        slack_notifications_enabled=True,
        approval_delay_minutes=5,
        meta_market_templates=UK_TEMPLATES,
    )


@pytest.fixture
def session_factory() -> Generator[sessionmaker, None, None]:
    """Session factory over a fresh in-memory SQLite database."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    engine.dispose()


@pytest.fixture
def store(session_factory) -> BatchStore:
    return BatchStore(session_factory)


@pytest.fixture
def voiceover() -> StubVoiceoverProvider:
    return StubVoiceoverProvider()


@pytest.fixture
def compositor() -> StubCompositor:
    return StubCompositor()


@pytest.fixture
def storage() -> StubStorage:
    return StubStorage()


@pytest.fixture
def ledger() -> StubLedger:
    return StubLedger()


@pytest.fixture
def notifier() -> StubNotifier:
    return StubNotifier()


@pytest.fixture
def ads() -> StubAdsPlatform:
    return StubAdsPlatform()


@pytest.fixture
def dispatcher() -> InMemoryDispatcher:
    return InMemoryDispatcher()


@pytest.fixture
def pipeline(store, voiceover, compositor, storage, ledger, settings) -> AssetPipeline:
    return AssetPipeline(store, voiceover, compositor, storage, ledger, settings)


@pytest.fixture
def scheduler(store, notifier, ledger, dispatcher, settings) -> ApprovalScheduler:
    return ApprovalScheduler(store, notifier, ledger, dispatcher, settings)


@pytest.fixture
def publisher(storage, ads, ledger, settings) -> PublishOrchestrator:
    return PublishOrchestrator(storage, ads, ledger, settings)


def _drafts(count: int) -> list[ScriptDraft]:
    return [
        ScriptDraft(
            title=f"Hook {i + 1}",
            content=f"Script {i + 1} tells you why this product changes your morning routine.",
        )
        for i in range(count)
    ]


def _footage(*base_ids: str) -> list[FootageRef]:
    return [FootageRef(base_id=b, file_id=f"footage_{b}", title=f"Clip {b}") for b in base_ids]


@pytest.fixture
def make_drafts():
    """Factory for numbered script drafts."""
    return _drafts


@pytest.fixture
def make_footage():
    """Factory for footage refs whose file ids the stub storage can serve."""
    return _footage


@pytest.fixture
def batch_with_scripts(store):
    """A batch holding three stored scripts."""
    batch = store.create_batch(script_count=3, spreadsheet_id="sheet_1", market="UK")
    store.add_scripts(batch.batch_id, _drafts(3))
    return store.get_batch(batch.batch_id)


@pytest.fixture
def test_client(
    store, voiceover, compositor, storage, ledger, notifier, ads, dispatcher, settings
) -> Generator[TestClient, None, None]:
    """Test client with the store and adapters replaced by in-memory versions."""
    from creative_engine.api import deps
    from creative_engine.main import app
    from creative_engine.services.script_writer import ScriptWriter

    app.dependency_overrides[deps.get_batch_store] = lambda: store
    app.dependency_overrides[deps.get_dispatcher] = lambda: dispatcher
    app.dependency_overrides[deps.get_script_writer] = lambda: ScriptWriter(StubLLMProvider())
    app.dependency_overrides[deps.get_asset_pipeline] = lambda: AssetPipeline(
        store, voiceover, compositor, storage, ledger, settings
    )
    app.dependency_overrides[deps.get_approval_scheduler] = lambda: ApprovalScheduler(
        store, notifier, ledger, dispatcher, settings
    )
    app.dependency_overrides[deps.get_publish_orchestrator] = lambda: PublishOrchestrator(
        storage, ads, ledger, settings
    )

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()
