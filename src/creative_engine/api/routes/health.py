"""Health check endpoints."""

from fastapi import APIRouter, status
from pydantic import BaseModel

from creative_engine.api.deps import (
    AdsDep,
    CompositorDep,
    LedgerDep,
    LLMDep,
    NotifierDep,
    StorageDep,
    VoiceoverDep,
)
from creative_engine.config import settings
from creative_engine.logging import get_logger

router = APIRouter(tags=["Health"])
logger = get_logger(__name__)


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    components: dict[str, bool] | None = None


class ReadinessResponse(BaseModel):
    """Readiness check response."""

    ready: bool
    database: bool
    redis: bool
    components: dict[str, bool] | None = None


@router.get(
    "/health",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Health check",
    description="Basic health check endpoint that verifies the API is running.",
)
async def health_check() -> HealthResponse:
    """Basic health check - is the API up?

    Reports which providers are configured with a real backend.
    """
    from creative_engine import __version__

    providers = {
        "llm": settings.llm_provider,
        "voiceover": settings.voiceover_provider,
        "compositor": settings.compositor_provider,
        "storage": settings.storage_provider,
        "ledger": settings.ledger_provider,
        "notifier": settings.notifier_provider,
        "ads": settings.ads_provider,
    }

    return HealthResponse(
        status="healthy",
        version=__version__,
        components={k: v != "stub" for k, v in providers.items()},
    )


@router.get(
    "/health/ready",
    response_model=ReadinessResponse,
    summary="Readiness check",
    description="Comprehensive readiness check that verifies all dependencies.",
)
async def readiness_check(
    llm: LLMDep,
    voiceover: VoiceoverDep,
    compositor: CompositorDep,
    storage: StorageDep,
    ledger: LedgerDep,
    notifier: NotifierDep,
    ads: AdsDep,
) -> ReadinessResponse:
    """Readiness check including the database, broker and adapters."""
    from creative_engine.db.session import check_connection

    database_ok = False
    try:
        check_connection()
        database_ok = True
    except Exception as e:
        logger.error("database_health_check_failed", error=str(e))

    # Check Redis
    redis_ok = False
    try:
        import redis

        r = redis.from_url(settings.redis_url)
        r.ping()
        redis_ok = True
    except Exception as e:
        logger.error("redis_health_check_failed", error=str(e))

    adapters = {
        "llm": llm,
        "voiceover": voiceover,
        "compositor": compositor,
        "storage": storage,
        "ledger": ledger,
        "notifier": notifier,
        "ads": ads,
    }
    components = {key: await adapter.health_check() for key, adapter in adapters.items()}

    ready = database_ok and redis_ok and all(components.values())

    return ReadinessResponse(
        ready=ready,
        database=database_ok,
        redis=redis_ok,
        components=components,
    )


@router.get(
    "/health/live",
    status_code=status.HTTP_200_OK,
    summary="Liveness probe",
    description="Simple liveness probe for Kubernetes.",
)
async def liveness_check() -> dict[str, str]:
    """Kubernetes liveness probe - is the process alive?"""
    return {"status": "alive"}
