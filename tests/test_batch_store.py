"""Tests for the batch/script store."""

import re

import pytest

from creative_engine.domain.enums import ActivityType, ApprovalAction, BatchStatus
from creative_engine.domain.models import ApprovalDecision
from creative_engine.errors import (
    BatchNotFoundError,
    BatchStoreError,
    InvalidStatusTransitionError,
)
from creative_engine.services.batch_store import generate_batch_id, generate_script_file_name
from creative_engine.services.integrity import fingerprint


class TestIdentifiers:
    """Tests for generated ids and file names."""

    def test_batch_id_format(self):
        """Batch ids carry a millisecond timestamp and a base36 suffix."""
        assert re.fullmatch(r"batch_\d{13}_[0-9a-z]{7}", generate_batch_id())

    def test_script_file_name(self):
        """File names are numbered from 1 and slugged from the title."""
        assert generate_script_file_name(0, "Hello, World!") == "script1_hello_world"
        assert generate_script_file_name(2) == "script3"
        assert generate_script_file_name(0, "!!!") == "script1"
        assert len(generate_script_file_name(0, "x" * 200)) == len("script1_") + 50


class TestBatches:
    """Tests for batch records and their status lifecycle."""

    def test_create_batch(self, store):
        """New batches start in generating status."""
        batch = store.create_batch(script_count=2, spreadsheet_id="sheet", market="UK")

        assert batch.status == BatchStatus.GENERATING
        assert store.get_batch(batch.batch_id).spreadsheet_id == "sheet"

    def test_get_unknown_batch(self, store):
        """Unknown ids raise a not-found error."""
        with pytest.raises(BatchNotFoundError):
            store.get_batch("batch_missing")

    def test_status_moves_forward(self, store):
        """Statuses advance and re-applying the current one is a no-op."""
        batch = store.create_batch(script_count=1)

        store.update_batch_status(batch.batch_id, BatchStatus.VIDEOS_GENERATED)
        store.update_batch_status(batch.batch_id, BatchStatus.VIDEOS_GENERATED)
        updated = store.update_batch_status(batch.batch_id, BatchStatus.SLACK_SENT)

        assert updated.status == BatchStatus.SLACK_SENT

    def test_status_cannot_regress(self, store):
        """Moving backwards raises and leaves the status untouched."""
        batch = store.create_batch(script_count=1)
        store.update_batch_status(batch.batch_id, BatchStatus.SLACK_SENT)

        with pytest.raises(InvalidStatusTransitionError):
            store.update_batch_status(batch.batch_id, BatchStatus.VIDEOS_GENERATED)

        assert store.get_batch(batch.batch_id).status == BatchStatus.SLACK_SENT

    def test_failed_is_terminal(self, store):
        """A failed batch keeps its error and cannot be revived."""
        batch = store.create_batch(script_count=1)
        store.mark_failed(batch.batch_id, "LLM unavailable")

        with pytest.raises(InvalidStatusTransitionError):
            store.update_batch_status(batch.batch_id, BatchStatus.SLACK_SENT)

        failed = store.get_batch(batch.batch_id)
        assert failed.status == BatchStatus.FAILED
        assert failed.error_message == "LLM unavailable"

    def test_update_batch_whitelist(self, store):
        """Only derived fields can be updated."""
        batch = store.create_batch(script_count=1)

        updated = store.update_batch(batch.batch_id, folder_link="https://folder")
        assert updated.folder_link == "https://folder"

        with pytest.raises(BatchStoreError):
            store.update_batch(batch.batch_id, status="slack_sent")

    def test_recent_batches_count_videos(self, store, make_drafts):
        """Recent batches report how many scripts carry a video."""
        older = store.create_batch(script_count=2)
        store.add_scripts(older.batch_id, make_drafts(2))
        newer = store.create_batch(script_count=2)
        scripts = store.add_scripts(newer.batch_id, make_drafts(2))
        store.append_render(scripts[0].id, {"base_id": "A", "video_file_id": "file_1"})

        summaries = store.recent_batches(limit=10)

        counts = {s.batch_id: s.video_count for s in summaries}
        assert counts == {older.batch_id: 0, newer.batch_id: 1}
        assert len(store.recent_batches(limit=1)) == 1


class TestScripts:
    """Tests for script persistence."""

    def test_add_scripts_assigns_indices(self, store, make_drafts):
        """Scripts are indexed in draft order and fingerprinted."""
        batch = store.create_batch(script_count=3)

        scripts = store.add_scripts(batch.batch_id, make_drafts(3))

        assert [s.script_index for s in scripts] == [0, 1, 2]
        assert scripts[0].file_name == "script1_hook_1"
        assert scripts[1].content_hash == fingerprint(scripts[1].content)
        assert [s.title for s in store.list_scripts(batch.batch_id)] == [
            "Hook 1",
            "Hook 2",
            "Hook 3",
        ]

    def test_add_scripts_syncs_declared_count(self, store, make_drafts):
        """The declared count follows the number of scripts actually stored."""
        batch = store.create_batch(script_count=5)

        store.add_scripts(batch.batch_id, make_drafts(3))

        assert store.get_batch(batch.batch_id).script_count == 3

    def test_add_scripts_failure_rolls_back(self, store, make_drafts):
        """A failed insert stores nothing and marks the batch failed."""
        batch = store.create_batch(script_count=2)
        store.add_scripts(batch.batch_id, make_drafts(2))

        with pytest.raises(BatchStoreError):
            store.add_scripts(batch.batch_id, make_drafts(3))

        assert len(store.list_scripts(batch.batch_id)) == 2
        failed = store.get_batch(batch.batch_id)
        assert failed.status == BatchStatus.FAILED
        assert failed.script_count == 2

    def test_add_scripts_unknown_batch(self, store, make_drafts):
        """Scripts need an existing batch."""
        with pytest.raises(BatchNotFoundError):
            store.add_scripts("batch_missing", make_drafts(1))

    def test_update_script(self, store, make_drafts):
        """Artifact fields update by id, given as UUID or string."""
        batch = store.create_batch(script_count=1)
        script = store.add_scripts(batch.batch_id, make_drafts(1))[0]

        updated = store.update_script(str(script.id), audio_file="/tmp/a.mp3")

        assert updated.audio_file == "/tmp/a.mp3"
        assert store.list_scripts(batch.batch_id)[0].audio_file == "/tmp/a.mp3"

    def test_update_script_rejects_content(self, store, make_drafts):
        """Content is fixed once stored."""
        batch = store.create_batch(script_count=1)
        script = store.add_scripts(batch.batch_id, make_drafts(1))[0]

        with pytest.raises(BatchStoreError):
            store.update_script(script.id, content="rewritten")

    def test_append_render_is_idempotent_per_footage(self, store, make_drafts):
        """A second render for the same footage replaces the first."""
        batch = store.create_batch(script_count=1)
        script = store.add_scripts(batch.batch_id, make_drafts(1))[0]

        store.append_render(script.id, {"base_id": "A", "video_file_id": "v1", "video_url": "u1"})
        store.append_render(script.id, {"base_id": "B", "video_file_id": "v2", "video_url": "u2"})
        updated = store.append_render(
            script.id, {"base_id": "A", "video_file_id": "v3", "video_url": "u3"}
        )

        assert [r["video_file_id"] for r in updated.video_renders] == ["v3", "v2"]
        assert updated.video_file_id == "v3"
        assert updated.video_url == "u3"
        assert updated.rendered_base_ids() == {"A", "B"}

    def test_append_render_clears_error(self, store, make_drafts):
        """A successful render clears an earlier failure."""
        batch = store.create_batch(script_count=1)
        script = store.add_scripts(batch.batch_id, make_drafts(1))[0]
        store.update_script(script.id, video_error="Composite failed")

        updated = store.append_render(script.id, {"base_id": "A", "video_file_id": "v1"})

        assert updated.video_error is None


class TestAuditAndDecisions:
    """Tests for the activity log and approval decisions."""

    def test_activity_log(self, store):
        """Entries are filterable by batch."""
        store.record_activity(ActivityType.BATCH_CREATED, "created", batch_id="b1")
        store.record_activity(ActivityType.SECURITY_ALERT, "tampered", batch_id="b2")

        entries = store.list_activity(batch_id="b2")

        assert [e.type for e in entries] == ["security_alert"]
        assert len(store.list_activity()) == 2

    def test_decision_overwrites(self, store):
        """A later decision for the same item replaces the earlier one."""
        first = ApprovalDecision(
            action=ApprovalAction.APPROVE, batch_name="b1", item_number=1, file_id="f1"
        )
        second = ApprovalDecision(
            action=ApprovalAction.REJECT,
            batch_name="b1",
            item_number=1,
            file_id="f1",
            reviewer="sam",
        )

        store.record_decision(first)
        store.record_decision(second)

        decisions = store.list_decisions("b1")
        assert len(decisions) == 1
        assert decisions[0].approved is False
        assert decisions[0].reviewer == "sam"
