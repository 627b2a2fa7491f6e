"""Tests for the HTTP API."""

import hashlib
import hmac
import json
import time
from urllib.parse import urlencode

from fastapi.testclient import TestClient

from creative_engine.config import settings as app_settings
from creative_engine.domain.enums import ApprovalAction
from creative_engine.domain.models import ApprovalDecision
from creative_engine.services.approval import RECORD_DECISION_TASK

SCRIPTS = [
    {"title": f"Hook {i}", "content": f"Script {i} tells you why mornings matter."}
    for i in range(1, 3)
]
FOOTAGE = [{"base_id": "A", "file_id": "footage_A", "title": "Clip A"}]


def _create(client: TestClient, **body) -> dict:
    response = client.post("/api/v1/batches", json=body)
    assert response.status_code == 201, response.text
    return response.json()


def _form(payload: dict) -> bytes:
    return urlencode({"payload": json.dumps(payload)}).encode()


class TestBatchEndpoints:
    """Tests for /api/v1/batches."""

    def test_create_with_scripts(self, test_client: TestClient):
        """Supplied scripts are stored in order."""
        data = _create(test_client, scripts=SCRIPTS, market="uk")

        assert data["status"] == "generating"
        assert data["script_count"] == 2
        assert [s["title"] for s in data["scripts"]] == ["Hook 1", "Hook 2"]
        assert [s["script_index"] for s in data["scripts"]] == [0, 1]
        assert data["render"] is None

    def test_create_generates_scripts(self, test_client: TestClient):
        """Without scripts the LLM writes script_count of them."""
        data = _create(test_client, script_count=4, guidance="Mornings")

        assert len(data["scripts"]) == 4
        assert data["scripts"][0]["title"] == "Stub Script 1"

    def test_create_render_and_send(self, test_client: TestClient, notifier):
        """Scripts are rendered onto footage and sent for review in one call."""
        data = _create(
            test_client,
            scripts=SCRIPTS,
            footage=FOOTAGE,
            send_for_approval=True,
            approval_delay_minutes=0,
        )

        assert data["render"]["success"] is True
        assert data["render"]["success_count"] == 2
        assert data["folder_link"]
        assert data["approval"]["sent"] is True
        assert len(notifier.approval_requests) == 1
        assert all(s["video_file_id"] for s in data["scripts"])

    def test_render_failure_fails_batch(self, test_client: TestClient, storage, store):
        """When no footage can be fetched the batch is marked failed."""
        storage.missing.add("footage_A")

        response = test_client.post(
            "/api/v1/batches", json={"scripts": SCRIPTS, "footage": FOOTAGE}
        )

        assert response.status_code == 502
        assert response.json()["success"] is False
        batch = store.recent_batches(1)[0]
        assert batch.status == "failed"

    def test_create_validation(self, test_client: TestClient):
        response = test_client.post("/api/v1/batches", json={"script_count": 0})

        assert response.status_code == 422

    def test_get_batch(self, test_client: TestClient, batch_with_scripts):
        response = test_client.get(f"/api/v1/batches/{batch_with_scripts.batch_id}")

        assert response.status_code == 200
        data = response.json()
        assert len(data["scripts"]) == 3
        assert data["decisions"] == []

    def test_unknown_batch(self, test_client: TestClient):
        """Unknown batches are a 404 with the error body."""
        response = test_client.get("/api/v1/batches/missing_batch")

        assert response.status_code == 404
        assert response.json()["success"] is False

    def test_recent(self, test_client: TestClient, batch_with_scripts):
        response = test_client.get("/api/v1/batches/recent", params={"limit": 5})

        assert response.status_code == 200
        data = response.json()
        assert data[0]["batch_id"] == batch_with_scripts.batch_id
        assert data[0]["video_count"] == 0

    def test_validate(self, test_client: TestClient, batch_with_scripts):
        response = test_client.get(f"/api/v1/batches/{batch_with_scripts.batch_id}/validate")

        assert response.status_code == 200
        data = response.json()
        assert data["valid"] is True
        assert data["actual_count"] == 3

    def test_render_existing_batch(self, test_client: TestClient, batch_with_scripts):
        response = test_client.post(
            f"/api/v1/batches/{batch_with_scripts.batch_id}/render",
            json={"footage": FOOTAGE},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["success_count"] == 3
        assert data["error_count"] == 0

    def test_render_every_pair_failed(
        self, test_client: TestClient, compositor, store, batch_with_scripts
    ):
        """A render where nothing succeeds is a 502 listing each pair's error."""
        compositor.fail_for.update({"Hook 1_A", "Hook 2_A", "Hook 3_A"})

        response = test_client.post(
            f"/api/v1/batches/{batch_with_scripts.batch_id}/render",
            json={"footage": FOOTAGE},
        )

        assert response.status_code == 502
        data = response.json()
        assert data["success"] is False
        assert len(data["details"]["item_errors"]) == 3
        assert store.get_batch(batch_with_scripts.batch_id).status == "failed"

    def test_schedule_approval_for_failed_batch(
        self, test_client: TestClient, batch_with_scripts, store, notifier, dispatcher
    ):
        """Asking to send a failed batch posts nothing."""
        store.mark_failed(batch_with_scripts.batch_id, "Render aborted")

        response = test_client.post(
            f"/api/v1/batches/{batch_with_scripts.batch_id}/approval",
            json={"delay_minutes": 0},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is False
        assert notifier.approval_requests == []
        assert notifier.messages == []
        assert dispatcher.tasks == []

    def test_schedule_approval_deferred(
        self, test_client: TestClient, batch_with_scripts, dispatcher
    ):
        """A delayed approval is queued and acknowledged."""
        response = test_client.post(
            f"/api/v1/batches/{batch_with_scripts.batch_id}/approval",
            json={"delay_minutes": 10},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["deferred"] is True
        assert dispatcher.tasks[0].countdown == 600


class TestRenderEndpoints:
    def test_footage_only(self, test_client: TestClient, storage):
        """Footage is uploaded without narration."""
        response = test_client.post("/api/v1/renders/footage-only", json={"footage": FOOTAGE})

        assert response.status_code == 200
        data = response.json()
        assert data["batch_id"] is None
        assert data["items"][0]["file_name"] == "A_Clip A"
        assert len(storage.uploads) == 1

    def test_footage_only_requires_footage(self, test_client: TestClient):
        response = test_client.post("/api/v1/renders/footage-only", json={"footage": []})

        assert response.status_code == 422


class TestSlackInteractions:
    """Tests for the approval button webhook."""

    def test_block_action_is_queued(self, test_client: TestClient, dispatcher):
        """A button click is acknowledged and queued for recording."""
        payload = {
            "type": "block_actions",
            "user": {"id": "U1", "username": "jordan"},
            "channel": {"id": "C1"},
            "message": {"ts": "1700000000.000100"},
            "actions": [{"value": "approve||batch_1||2||file_2||sheet_1"}],
        }

        response = test_client.post(
            "/api/v1/slack/interactions",
            content=_form(payload),
            headers={"Content-Type": "application/x-www-form-urlencoded"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["ok"] is True
        assert data["task_id"] == "local-1"
        assert data["item_number"] == 2
        assert dispatcher.tasks[0].task_name == RECORD_DECISION_TASK

    def test_other_event_acknowledged(self, test_client: TestClient, dispatcher):
        response = test_client.post(
            "/api/v1/slack/interactions",
            content=_form({"type": "view_submission"}),
            headers={"Content-Type": "application/x-www-form-urlencoded"},
        )

        assert response.status_code == 200
        assert response.json()["message"] == "Event received but not processed"
        assert dispatcher.tasks == []

    def test_missing_payload(self, test_client: TestClient):
        response = test_client.post(
            "/api/v1/slack/interactions",
            content=b"token=abc",
            headers={"Content-Type": "application/x-www-form-urlencoded"},
        )

        assert response.status_code == 400

    def test_bad_signature(self, test_client: TestClient, monkeypatch):
        """Requests are rejected when a signing secret is set and the signature is wrong."""
        monkeypatch.setattr(app_settings, "slack_signing_secret", "secret")

        response = test_client.post(
            "/api/v1/slack/interactions",
            content=_form({"type": "block_actions"}),
            headers={
                "Content-Type": "application/x-www-form-urlencoded",
                "X-Slack-Request-Timestamp": str(int(time.time())),
                "X-Slack-Signature": "v0=bad",
            },
        )

        assert response.status_code == 401

    def test_valid_signature(self, test_client: TestClient, monkeypatch):
        monkeypatch.setattr(app_settings, "slack_signing_secret", "secret")
        body = _form({"type": "view_closed"})
        timestamp = str(int(time.time()))
        digest = hmac.new(
            b"secret", f"v0:{timestamp}:{body.decode()}".encode(), hashlib.sha256
        ).hexdigest()

        response = test_client.post(
            "/api/v1/slack/interactions",
            content=body,
            headers={
                "Content-Type": "application/x-www-form-urlencoded",
                "X-Slack-Request-Timestamp": timestamp,
                "X-Slack-Signature": f"v0={digest}",
            },
        )

        assert response.status_code == 200

    def test_progress(self, test_client: TestClient, batch_with_scripts, store):
        store.record_decision(
            ApprovalDecision(
                action=ApprovalAction.APPROVE_SCRIPT,
                batch_name=batch_with_scripts.batch_id,
                item_number=1,
                file_id="Hook 1",
                reviewer="jordan",
            )
        )

        response = test_client.get(f"/api/v1/approvals/{batch_with_scripts.batch_id}")

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 3
        assert data["approved"] == 1
        assert data["pending"] == 2
        assert data["complete"] is False


class TestPublishEndpoints:
    """Tests for /api/v1/publish."""

    def test_upload(self, test_client: TestClient, ads):
        response = test_client.post(
            "/api/v1/publish/upload", json={"file_name": "clip_1", "video_file_id": "file_1"}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["meta_video_id"] in ads.videos

    def test_upload_batch(self, test_client: TestClient):
        response = test_client.post(
            "/api/v1/publish/upload-batch",
            json={
                "assets": [
                    {"file_name": "clip_1", "video_file_id": "file_1"},
                    {"file_name": "clip_2"},
                ]
            },
        )

        assert response.status_code == 200
        data = response.json()
        assert data["success_count"] == 1
        assert data["total_count"] == 2

    def test_upload_batch_all_failed(self, test_client: TestClient, ads):
        """A batch where no asset uploads is a 502 carrying every result."""
        response = test_client.post(
            "/api/v1/publish/upload-batch",
            json={"assets": [{"file_name": "clip_1"}, {"file_name": "clip_2"}]},
        )

        assert response.status_code == 502
        data = response.json()
        assert data["success"] is False
        assert [r["file_name"] for r in data["details"]["results"]] == ["clip_1", "clip_2"]
        assert ads.videos == {}

    def test_campaign(self, test_client: TestClient, ads):
        """A paused campaign is created with one ad per video."""
        response = test_client.post(
            "/api/v1/publish/campaign",
            json={
                "uploaded": [{"file_name": "clip_1", "meta_video_id": "v1"}],
                "market": "UK",
                "spreadsheet_id": "sheet_1",
            },
        )

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["market"] == "UK"
        assert data["report_written"] is True
        assert len(ads.ads) == 1

    def test_campaign_without_templates(self, test_client: TestClient):
        response = test_client.post(
            "/api/v1/publish/campaign",
            json={"uploaded": [{"file_name": "clip_1", "meta_video_id": "v1"}], "market": "DE"},
        )

        assert response.status_code == 400
