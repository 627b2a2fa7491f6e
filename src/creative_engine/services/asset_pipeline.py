"""Render scripts onto base footage and upload the results.

A render run takes every script of a batch and every footage reference in
the request and produces one video per (script, footage) pair:

1. Look up output file names in the asset ledger (bounded poll, fallback names)
2. Download each footage once
3. Synthesize narration once per script
4. Composite each pair (optionally with burned-in captions) and upload it
   into one storage folder shared by the whole run

Failures of a single pair are recorded on that pair's result. A run with no
downloadable footage or no successful pair raises RenderRunFailedError and
marks a batch without earlier videos failed.
"""

import asyncio
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any
from uuid import uuid4

from creative_engine.adapters.compositor.base import CompositeRequest, CompositorProvider
from creative_engine.adapters.ledger.base import AssetLedgerEntry, LedgerAdapter
from creative_engine.adapters.storage.base import StorageProvider
from creative_engine.adapters.voiceover.base import (
    VoiceoverProvider,
    VoiceoverRequest,
    estimate_duration,
)
from creative_engine.config import Settings
from creative_engine.config import settings as default_settings
from creative_engine.db.models import BatchScriptModel, ScriptBatchModel
from creative_engine.domain.enums import ActivityType, BatchStatus
from creative_engine.domain.models import (
    NO_SCRIPT_ID,
    NO_SCRIPT_LABEL,
    FootageRef,
    RenderItemResult,
    RenderOptions,
    RenderRunResult,
)
from creative_engine.errors import (
    BatchNotFoundError,
    CreativeEngineError,
    PipelinePreconditionError,
    RenderRunFailedError,
    SubtitleError,
)
from creative_engine.logging import get_logger
from creative_engine.services.batch_store import BatchStore, generate_script_file_name
from creative_engine.services.subtitles import write_subtitle_file

logger = get_logger(__name__)


@dataclass
class _Combo:
    """One pending (script, footage) pair."""

    script: BatchScriptModel
    footage: FootageRef
    footage_order: int
    file_name: str = ""


@dataclass
class _Narration:
    audio_path: Path | None = None
    duration_seconds: float | None = None
    error: str | None = None


@dataclass
class _RunContext:
    work_dir: Path
    output_dir: Path
    folder_id: str | None = None
    footage_paths: dict[str, Path] = field(default_factory=dict)
    footage_errors: dict[str, str] = field(default_factory=dict)


class AssetPipeline:
    """Orchestrates voiceover, compositing and upload for render runs."""

    def __init__(
        self,
        store: BatchStore,
        voiceover: VoiceoverProvider,
        compositor: CompositorProvider,
        storage: StorageProvider,
        ledger: LedgerAdapter,
        settings: Settings | None = None,
    ) -> None:
        self.store = store
        self.voiceover = voiceover
        self.compositor = compositor
        self.storage = storage
        self.ledger = ledger
        self.settings = settings or default_settings

    # ------------------------------------------------------------------ file names

    async def _poll_file_names(
        self, spreadsheet_id: str, entries: list[AssetLedgerEntry]
    ) -> list[str | None]:
        """Write ledger rows and read back the names the sheet generates for them."""
        rows = await self.ledger.write_asset_entries(spreadsheet_id, entries)
        await asyncio.sleep(self.settings.ledger_settle_seconds)

        names: list[str | None] = [None] * len(rows)
        for attempt in range(1, self.settings.ledger_poll_attempts + 1):
            names = await self.ledger.read_file_names(spreadsheet_id, rows)
            if all(names):
                break
            logger.info(
                "ledger_names_pending",
                attempt=attempt,
                missing=sum(1 for n in names if not n),
            )
            if attempt < self.settings.ledger_poll_attempts:
                await asyncio.sleep(self.settings.ledger_poll_backoff_seconds)
        return names

    async def _resolve_file_names(
        self,
        spreadsheet_id: str | None,
        entries: list[AssetLedgerEntry],
        fallbacks: list[str],
    ) -> list[str]:
        names: list[str | None] = [None] * len(entries)
        if spreadsheet_id and entries:
            try:
                names = await self._poll_file_names(spreadsheet_id, entries)
            except CreativeEngineError as e:
                logger.warning("ledger_names_unavailable", error=str(e))

        resolved = [name or fallback for name, fallback in zip(names, fallbacks)]
        fallback_count = sum(1 for n in names if not n)
        if fallback_count:
            logger.info("file_name_fallback_used", count=fallback_count, total=len(entries))
        return resolved

    # ------------------------------------------------------------------ footage

    async def _download_one(self, ctx: _RunContext, order: int, ref: FootageRef) -> None:
        file_id = ref.file_id or self.storage.extract_file_id(ref.file_link)
        if not file_id:
            ctx.footage_errors[ref.base_id] = f"Invalid footage link: {ref.file_link!r}"
            return
        try:
            path = await self.storage.download_file(
                file_id, ctx.work_dir / f"footage_{order}_{ref.base_id}.mp4"
            )
        except Exception as e:
            logger.warning("footage_download_failed", base_id=ref.base_id, error=str(e))
            ctx.footage_errors[ref.base_id] = str(e) or type(e).__name__
            return
        ctx.footage_paths[ref.base_id] = path

    async def _download_footage(self, ctx: _RunContext, footage: list[FootageRef]) -> None:
        await asyncio.gather(
            *(self._download_one(ctx, order, ref) for order, ref in enumerate(footage))
        )

    def _footage_errors(self, ctx: _RunContext) -> list[dict[str, str]]:
        return [{"base_id": k, "error": v} for k, v in ctx.footage_errors.items()]

    # ------------------------------------------------------------------ narration

    async def _narrate(
        self,
        ctx: _RunContext,
        script: BatchScriptModel,
        voice_id: str | None,
        language: str,
        force: bool,
    ) -> _Narration:
        existing = Path(script.audio_file) if script.audio_file else None
        if existing and existing.exists() and not force:
            duration = script.audio_duration_seconds or (
                await self.compositor.probe_duration(existing)
            )
            return _Narration(audio_path=existing, duration_seconds=duration)

        try:
            result = await self.voiceover.generate(
                VoiceoverRequest(text=script.content, voice_id=voice_id, language=language)
            )
        except Exception as e:
            logger.warning("narration_failed", script_id=str(script.id), error=str(e))
            return _Narration(error=f"Voiceover failed: {e}")
        if not result.success or not result.audio_data:
            return _Narration(error=f"Voiceover failed: {result.error_message or 'no audio'}")

        audio_path = ctx.output_dir / f"{script.file_name}.mp3"
        try:
            audio_path.write_bytes(result.audio_data)
        except OSError as e:
            logger.warning("narration_write_failed", path=str(audio_path), error=str(e))
            return _Narration(error=f"Audio could not be written: {e}")
        duration = (
            result.duration_seconds
            or await self.compositor.probe_duration(audio_path)
            or estimate_duration(script.content)
        )
        self.store.update_script(
            script.id, audio_file=str(audio_path), audio_duration_seconds=duration
        )
        logger.info("narration_ready", script_id=str(script.id), duration=duration)
        return _Narration(audio_path=audio_path, duration_seconds=duration)

    # ------------------------------------------------------------------ compositing

    def _item(self, combo: _Combo, **kwargs: Any) -> RenderItemResult:
        return RenderItemResult(
            script_index=combo.script.script_index,
            script_id=str(combo.script.id),
            title=combo.script.title,
            base_id=combo.footage.base_id,
            file_name=combo.file_name,
            footage_order=combo.footage_order,
            **kwargs,
        )

    async def _render_combo(
        self,
        ctx: _RunContext,
        combo: _Combo,
        narration: _Narration,
        include_subtitles: bool,
        semaphore: asyncio.Semaphore,
    ) -> RenderItemResult:
        footage_path = ctx.footage_paths.get(combo.footage.base_id)
        if footage_path is None:
            error = ctx.footage_errors.get(combo.footage.base_id, "footage unavailable")
            return self._item(combo, error=f"Footage download failed: {error}")
        if narration.error:
            return self._item(combo, error=narration.error)

        async with semaphore:
            try:
                return await self._composite_and_upload(ctx, combo, narration, include_subtitles)
            except Exception as e:
                logger.exception(
                    "render_combo_crashed",
                    script_index=combo.script.script_index,
                    base_id=combo.footage.base_id,
                )
                return self._item(combo, error=f"Render failed: {e}")

    async def _composite_and_upload(
        self,
        ctx: _RunContext,
        combo: _Combo,
        narration: _Narration,
        include_subtitles: bool,
    ) -> RenderItemResult:
        footage_path = ctx.footage_paths[combo.footage.base_id]
        output_path = ctx.output_dir / f"{combo.file_name}.mp4"
        subtitle_path = None
        if include_subtitles:
            try:
                subtitle_path = write_subtitle_file(
                    combo.script.content,
                    narration.duration_seconds or estimate_duration(combo.script.content),
                    ctx.work_dir / combo.file_name,
                )
            except SubtitleError as e:
                return self._item(combo, error=e.message)

        composite = await self.compositor.composite(
            CompositeRequest(
                footage_path=footage_path,
                output_path=output_path,
                audio_path=narration.audio_path,
                subtitle_path=subtitle_path,
            )
        )
        if not composite.success:
            logger.warning(
                "render_combo_failed",
                script_index=combo.script.script_index,
                base_id=combo.footage.base_id,
                error=composite.error_message,
            )
            return self._item(combo, error=f"Composite failed: {composite.error_message}")

        return await self._upload(ctx, combo, output_path)

    async def _upload(
        self, ctx: _RunContext, combo: _Combo, output_path: Path
    ) -> RenderItemResult:
        try:
            stored = await self.storage.upload_file(
                output_path,
                f"{combo.file_name}.mp4",
                ctx.folder_id,
                timeout=self.settings.upload_timeout(output_path.stat().st_size),
            )
        except Exception as e:
            logger.warning("render_upload_failed", file_name=combo.file_name, error=str(e))
            return self._item(combo, video_file=str(output_path), error=f"Upload failed: {e}")

        return self._item(
            combo,
            video_file=str(output_path),
            video_url=stored.link,
            video_file_id=stored.file_id,
        )

    # ------------------------------------------------------------------ write-back

    def _persist(self, items: list[RenderItemResult]) -> None:
        rendered = {item.script_id for item in items if item.success and not item.skipped}

        for item in sorted(items, key=lambda i: (i.footage_order, i.script_index)):
            if item.skipped:
                continue
            if item.success:
                self.store.append_render(
                    item.script_id,
                    {
                        "base_id": item.base_id,
                        "file_name": item.file_name,
                        "video_file": item.video_file,
                        "video_url": item.video_url,
                        "video_file_id": item.video_file_id,
                    },
                )
            elif item.script_id not in rendered:
                self.store.update_script(item.script_id, video_error=item.error)

    async def _update_ledger_links(
        self, spreadsheet_id: str | None, items: list[RenderItemResult]
    ) -> None:
        links = {
            item.file_name: item.video_url
            for item in items
            if item.success and not item.skipped and item.video_url
        }
        if not spreadsheet_id or not links:
            return
        try:
            updated = await self.ledger.update_asset_video_links(spreadsheet_id, links)
            logger.info("ledger_video_links_updated", count=updated)
        except CreativeEngineError as e:
            logger.warning("ledger_video_links_failed", error=str(e))

    # ------------------------------------------------------------------ public API

    def _new_context(self, label: str) -> _RunContext:
        run_id = f"{label}_{uuid4().hex[:8]}"
        ctx = _RunContext(
            work_dir=Path(self.settings.work_dir) / run_id,
            output_dir=Path(self.settings.output_dir) / label,
        )
        ctx.work_dir.mkdir(parents=True, exist_ok=True)
        ctx.output_dir.mkdir(parents=True, exist_ok=True)
        return ctx

    @staticmethod
    def _skipped_item(script: BatchScriptModel, ref: FootageRef, order: int) -> RenderItemResult:
        render = next(
            (r for r in script.video_renders or [] if r.get("base_id") == ref.base_id), {}
        )
        return RenderItemResult(
            script_index=script.script_index,
            script_id=str(script.id),
            title=script.title,
            base_id=ref.base_id,
            file_name=render.get("file_name") or script.file_name,
            video_file=render.get("video_file"),
            video_url=render.get("video_url"),
            video_file_id=render.get("video_file_id"),
            skipped=True,
            footage_order=order,
        )

    async def render_batch(
        self,
        batch_id: str,
        footage: list[FootageRef],
        options: RenderOptions | None = None,
    ) -> RenderRunResult:
        """Render every script of a batch onto every footage reference.

        Pairs already rendered for a footage are skipped unless
        ``options.force_rerender`` is set.

        Raises:
            PipelinePreconditionError: Unknown batch, no scripts or no footage.
            RenderRunFailedError: No footage could be downloaded or every
                pending render failed.
        """
        options = options or RenderOptions()
        try:
            batch = self.store.get_batch(batch_id)
        except BatchNotFoundError as e:
            raise PipelinePreconditionError(e.message, {"batch_id": batch_id}) from e
        scripts = self.store.list_scripts(batch_id)
        if not scripts:
            raise PipelinePreconditionError(f"Batch {batch_id} has no scripts")
        if not footage:
            raise PipelinePreconditionError("At least one footage reference is required")

        pending: list[_Combo] = []
        skipped: list[RenderItemResult] = []
        for script in scripts:
            done = script.rendered_base_ids()
            for order, ref in enumerate(footage):
                if ref.base_id in done and not options.force_rerender:
                    skipped.append(self._skipped_item(script, ref, order))
                else:
                    pending.append(_Combo(script=script, footage=ref, footage_order=order))

        if not pending:
            logger.info("render_run_skipped", batch_id=batch_id, combos=len(skipped))
            return RenderRunResult(
                batch_id=batch_id, items=skipped, folder_link=batch.folder_link, skipped=True
            )

        logger.info(
            "render_run_started",
            batch_id=batch_id,
            scripts=len(scripts),
            footage=len(footage),
            pending=len(pending),
        )

        names = await self._resolve_file_names(
            options.spreadsheet_id or batch.spreadsheet_id,
            [
                AssetLedgerEntry(
                    base_id=c.footage.base_id,
                    script_id=c.script.title,
                    subtitled=options.include_subtitles,
                )
                for c in pending
            ],
            [
                generate_script_file_name(
                    c.script.script_index, f"{c.script.title}_{c.footage.base_id}"
                )
                for c in pending
            ],
        )
        for combo, name in zip(pending, names):
            combo.file_name = name

        ctx = self._new_context(batch_id)
        try:
            await self._download_footage(ctx, footage)
            if not ctx.footage_paths:
                self.store.record_activity(
                    ActivityType.RENDER_FAILED,
                    f"No footage could be downloaded for batch {batch_id}",
                    batch_id=batch_id,
                    details={"footage_errors": self._footage_errors(ctx)},
                )
                message = f"All {len(footage)} footage downloads failed"
                self._fail_batch(batch, message)
                raise RenderRunFailedError(message, self._footage_errors(ctx))

            market = options.market or batch.market
            folder = await self.storage.create_batch_folder(batch_id, market)
            ctx.folder_id = folder.folder_id

            needs_audio = {
                c.script.id: c.script for c in pending if c.footage.base_id in ctx.footage_paths
            }
            voice_id = options.voice_id or batch.voice_id
            narrations = dict(
                zip(
                    needs_audio,
                    await asyncio.gather(
                        *(
                            self._narrate(
                                ctx, s, voice_id, options.language, options.force_rerender
                            )
                            for s in needs_audio.values()
                        )
                    ),
                )
            )

            semaphore = asyncio.Semaphore(self.settings.render_concurrency)
            rendered = await asyncio.gather(
                *(
                    self._render_combo(
                        ctx,
                        combo,
                        narrations.get(combo.script.id, _Narration()),
                        options.include_subtitles,
                        semaphore,
                    )
                    for combo in pending
                )
            )
        finally:
            shutil.rmtree(ctx.work_dir, ignore_errors=True)

        items = sorted(
            [*rendered, *skipped], key=lambda i: (i.script_index, i.footage_order)
        )
        self._persist(items)
        await self._update_ledger_links(options.spreadsheet_id or batch.spreadsheet_id, items)

        result = RenderRunResult(
            batch_id=batch_id,
            items=items,
            folder_id=folder.folder_id,
            folder_link=folder.link,
            footage_errors=self._footage_errors(ctx),
        )
        self._finish_batch(batch, result, market)

        failed = [i for i in items if not i.skipped and not i.success]
        if failed and len(failed) == len(pending):
            message = f"All {len(failed)} renders failed for batch {batch_id}"
            self._fail_batch(batch, message)
            raise RenderRunFailedError(
                message, result.footage_errors, [i.to_dict() for i in failed]
            )
        return result

    def _fail_batch(self, batch: ScriptBatchModel, message: str) -> None:
        # A batch that already has videos from an earlier run keeps its status
        if BatchStatus(batch.status) == BatchStatus.GENERATING:
            self.store.mark_failed(batch.batch_id, message)

    def _finish_batch(
        self, batch: ScriptBatchModel, result: RenderRunResult, market: str | None
    ) -> None:
        fields = {"folder_link": result.folder_link}
        if market:
            fields["market"] = market
        self.store.update_batch(batch.batch_id, **fields)

        new_items = [i for i in result.items if not i.skipped]
        succeeded = sum(1 for i in new_items if i.success)
        if succeeded and BatchStatus(batch.status).can_transition_to(BatchStatus.VIDEOS_GENERATED):
            self.store.update_batch_status(batch.batch_id, BatchStatus.VIDEOS_GENERATED)

        self.store.record_activity(
            ActivityType.VIDEOS_GENERATED if succeeded else ActivityType.RENDER_FAILED,
            f"Rendered {succeeded}/{len(new_items)} videos for batch {batch.batch_id}",
            batch_id=batch.batch_id,
            details={
                "folder_link": result.folder_link,
                "errors": [i.to_dict() for i in new_items if not i.success],
                "footage_errors": result.footage_errors,
            },
        )
        logger.info(
            "render_run_completed",
            batch_id=batch.batch_id,
            succeeded=succeeded,
            failed=len(new_items) - succeeded,
            skipped=len(result.items) - len(new_items),
        )

    async def upload_footage_only(
        self, footage: list[FootageRef], options: RenderOptions | None = None
    ) -> RenderRunResult:
        """Upload base footage without narration into its own run folder.

        Each file is renamed from the ledger (script id ``s99999``) or, when
        no name is available, ``<base_id>_<title>``.

        Raises:
            PipelinePreconditionError: No footage given.
            RenderRunFailedError: No footage could be downloaded or uploaded.
        """
        options = options or RenderOptions()
        if not footage:
            raise PipelinePreconditionError("At least one footage reference is required")

        names = await self._resolve_file_names(
            options.spreadsheet_id,
            [
                AssetLedgerEntry(base_id=ref.base_id, script_id=NO_SCRIPT_ID, subtitled=False)
                for ref in footage
            ],
            [f"{ref.base_id}_{ref.title or 'video'}" for ref in footage],
        )

        ctx = self._new_context(NO_SCRIPT_LABEL)
        try:
            await self._download_footage(ctx, footage)
            if not ctx.footage_paths:
                raise RenderRunFailedError(
                    f"All {len(footage)} footage downloads failed", self._footage_errors(ctx)
                )

            folder = await self.storage.create_batch_folder(NO_SCRIPT_LABEL, options.market)
            ctx.folder_id = folder.folder_id

            items: list[RenderItemResult] = []
            for order, (ref, name) in enumerate(zip(footage, names)):
                combo_item = RenderItemResult(
                    script_index=0,
                    script_id=NO_SCRIPT_ID,
                    title=ref.title or ref.base_id,
                    base_id=ref.base_id,
                    file_name=name,
                    footage_order=order,
                )
                path = ctx.footage_paths.get(ref.base_id)
                if path is None:
                    combo_item.error = f"Footage download failed: {ctx.footage_errors[ref.base_id]}"
                    items.append(combo_item)
                    continue
                try:
                    stored = await self.storage.upload_file(
                        path,
                        f"{name}.mp4",
                        folder.folder_id,
                        timeout=self.settings.upload_timeout(path.stat().st_size),
                    )
                except Exception as e:
                    logger.warning("footage_upload_failed", file_name=name, error=str(e))
                    combo_item.error = f"Upload failed: {e}"
                else:
                    combo_item.video_url = stored.link
                    combo_item.video_file_id = stored.file_id
                items.append(combo_item)
        finally:
            shutil.rmtree(ctx.work_dir, ignore_errors=True)

        await self._update_ledger_links(options.spreadsheet_id, items)
        uploaded = sum(1 for i in items if i.success)
        logger.info("footage_only_upload_completed", uploaded=uploaded, total=len(items))
        if not uploaded:
            raise RenderRunFailedError(
                f"All {len(items)} footage uploads failed",
                self._footage_errors(ctx),
                [i.to_dict() for i in items],
            )
        return RenderRunResult(
            batch_id=None,
            items=items,
            folder_id=folder.folder_id,
            folder_link=folder.link,
            footage_errors=self._footage_errors(ctx),
        )
