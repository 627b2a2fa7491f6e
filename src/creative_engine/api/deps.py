"""FastAPI dependencies."""

from typing import Annotated

from fastapi import Depends

from creative_engine.adapters.ads.base import AdsPlatformAdapter
from creative_engine.adapters.compositor.base import CompositorProvider
from creative_engine.adapters.factory import (
    get_ads_platform,
    get_compositor,
    get_ledger,
    get_llm_provider,
    get_notifier,
    get_storage,
    get_voiceover_provider,
)
from creative_engine.adapters.ledger.base import LedgerAdapter
from creative_engine.adapters.llm.base import LLMProvider
from creative_engine.adapters.notifier.base import NotifierAdapter
from creative_engine.adapters.storage.base import StorageProvider
from creative_engine.adapters.voiceover.base import VoiceoverProvider
from creative_engine.db.session import SessionLocal
from creative_engine.services.approval import ApprovalScheduler, TaskDispatcher
from creative_engine.services.asset_pipeline import AssetPipeline
from creative_engine.services.batch_store import BatchStore
from creative_engine.services.publish import PublishOrchestrator
from creative_engine.services.script_writer import ScriptWriter


def get_batch_store() -> BatchStore:
    """Store bound to the application session factory."""
    return BatchStore(SessionLocal)


def get_dispatcher() -> TaskDispatcher:
    """Durable dispatcher backed by the Celery broker."""
    from creative_engine.jobs.dispatcher import CeleryDispatcher

    return CeleryDispatcher()


BatchStoreDep = Annotated[BatchStore, Depends(get_batch_store)]
DispatcherDep = Annotated[TaskDispatcher, Depends(get_dispatcher)]
LLMDep = Annotated[LLMProvider, Depends(get_llm_provider)]
VoiceoverDep = Annotated[VoiceoverProvider, Depends(get_voiceover_provider)]
CompositorDep = Annotated[CompositorProvider, Depends(get_compositor)]
StorageDep = Annotated[StorageProvider, Depends(get_storage)]
LedgerDep = Annotated[LedgerAdapter, Depends(get_ledger)]
NotifierDep = Annotated[NotifierAdapter, Depends(get_notifier)]
AdsDep = Annotated[AdsPlatformAdapter, Depends(get_ads_platform)]


def get_script_writer(llm: LLMDep) -> ScriptWriter:
    return ScriptWriter(llm)


def get_asset_pipeline(
    store: BatchStoreDep,
    voiceover: VoiceoverDep,
    compositor: CompositorDep,
    storage: StorageDep,
    ledger: LedgerDep,
) -> AssetPipeline:
    return AssetPipeline(store, voiceover, compositor, storage, ledger)


def get_approval_scheduler(
    store: BatchStoreDep,
    notifier: NotifierDep,
    ledger: LedgerDep,
    dispatcher: DispatcherDep,
) -> ApprovalScheduler:
    return ApprovalScheduler(store, notifier, ledger, dispatcher)


def get_publish_orchestrator(
    storage: StorageDep,
    ads: AdsDep,
    ledger: LedgerDep,
) -> PublishOrchestrator:
    return PublishOrchestrator(storage, ads, ledger)


ScriptWriterDep = Annotated[ScriptWriter, Depends(get_script_writer)]
AssetPipelineDep = Annotated[AssetPipeline, Depends(get_asset_pipeline)]
ApprovalSchedulerDep = Annotated[ApprovalScheduler, Depends(get_approval_scheduler)]
PublishOrchestratorDep = Annotated[PublishOrchestrator, Depends(get_publish_orchestrator)]
