"""Unit tests for the batch integrity checks."""

import hashlib

import pytest

from creative_engine.domain.enums import BatchStatus
from creative_engine.errors import ContentIntegrityError, IntegrityViolationError
from creative_engine.services.integrity import (
    assert_dispatchable,
    fingerprint,
    validate_batch,
    verify,
)


class TestFingerprint:
    """Tests for content fingerprints."""

    def test_sha256_hex(self):
        """Fingerprints are SHA-256 hex digests of the UTF-8 content."""
        assert fingerprint("hello") == hashlib.sha256(b"hello").hexdigest()
        assert len(fingerprint("")) == 64

    def test_verify(self):
        """Verification fails on any change and on a missing fingerprint."""
        stored = fingerprint("Original script")

        assert verify("Original script", stored) is True
        assert verify("Original script!", stored) is False
        assert verify("Original script", None) is False


class TestValidateBatch:
    """Tests for the read-only integrity report."""

    def test_clean_batch(self, store, batch_with_scripts):
        """A freshly stored batch passes."""
        scripts = store.list_scripts(batch_with_scripts.batch_id)

        report = validate_batch(batch_with_scripts, scripts)

        assert report.valid
        assert report.actual_count == 3
        assert report.scripts_with_audio == 0
        assert report.to_dict()["valid"] is True

    def test_tampered_content(self, store, batch_with_scripts):
        """Content that no longer matches its fingerprint is flagged by item."""
        scripts = store.list_scripts(batch_with_scripts.batch_id)
        scripts[1].content = "Edited after the fact"

        report = validate_batch(batch_with_scripts, scripts)

        assert not report.valid
        assert report.has_hash_mismatch
        assert len(report.tampered) == 1
        assert "script 1" in report.tampered[0]

    def test_count_mismatch_once_past_generation(self, store, batch_with_scripts):
        """The declared count must match once the batch has moved on."""
        scripts = store.list_scripts(batch_with_scripts.batch_id)
        batch_with_scripts.script_count = 4

        assert validate_batch(batch_with_scripts, scripts).valid

        batch_with_scripts.status = BatchStatus.VIDEOS_GENERATED
        report = validate_batch(batch_with_scripts, scripts, require_videos=False)

        assert any("Script count mismatch" in issue for issue in report.issues)

    def test_missing_videos_when_batch_claims_them(self, store, batch_with_scripts):
        """A batch with a folder link must have a video on every script."""
        scripts = store.list_scripts(batch_with_scripts.batch_id)
        batch_with_scripts.folder_link = "https://drive.example/folder"

        report = validate_batch(batch_with_scripts, scripts)

        assert sum(1 for i in report.issues if i.startswith("Missing video")) == 3

    def test_video_without_audio(self, store, batch_with_scripts):
        """A script cannot carry a video without its narration."""
        scripts = store.list_scripts(batch_with_scripts.batch_id)
        scripts[0].video_file_id = "file_123"

        report = validate_batch(batch_with_scripts, scripts, require_videos=False)

        assert report.scripts_with_video == 1
        assert any(i.startswith("Video without audio") for i in report.issues)

    def test_duplicate_titles(self, store, batch_with_scripts):
        """Titles are compared case-insensitively."""
        scripts = store.list_scripts(batch_with_scripts.batch_id)
        scripts[2].title = " HOOK 1 "

        report = validate_batch(batch_with_scripts, scripts)

        assert report.duplicate_titles == ["hook 1"]

    def test_index_mismatch(self, store, batch_with_scripts):
        """Scripts out of index order are reported."""
        scripts = list(reversed(store.list_scripts(batch_with_scripts.batch_id)))

        report = validate_batch(batch_with_scripts, scripts)

        assert sum(1 for i in report.issues if i.startswith("Index mismatch")) == 2

    def test_empty_content(self, store, batch_with_scripts):
        """Blank content is an issue on its own."""
        scripts = store.list_scripts(batch_with_scripts.batch_id)
        scripts[0].content = "   "

        report = validate_batch(batch_with_scripts, scripts)

        assert any(i.startswith("Empty content") for i in report.issues)


class TestAssertDispatchable:
    """Tests for the pre-dispatch gate."""

    def test_passes_clean_batch(self, store, batch_with_scripts):
        """A clean batch returns its report."""
        scripts = store.list_scripts(batch_with_scripts.batch_id)

        report = assert_dispatchable(batch_with_scripts, scripts, require_videos=False)

        assert report.valid

    def test_fingerprint_mismatch_raises_content_error(self, store, batch_with_scripts):
        """Tampering raises the dedicated error naming the item."""
        scripts = store.list_scripts(batch_with_scripts.batch_id)
        scripts[0].content = "Injected content"

        with pytest.raises(ContentIntegrityError) as exc_info:
            assert_dispatchable(batch_with_scripts, scripts, require_videos=False)

        assert "script 0" in exc_info.value.item
        assert exc_info.value.details["tampered"]

    def test_other_issues_raise_violation(self, store, batch_with_scripts):
        """Non-fingerprint issues raise the general violation."""
        scripts = store.list_scripts(batch_with_scripts.batch_id)

        with pytest.raises(IntegrityViolationError) as exc_info:
            assert_dispatchable(batch_with_scripts, scripts, require_videos=True)

        assert not isinstance(exc_info.value, ContentIntegrityError)
        assert len(exc_info.value.issues) == 3
