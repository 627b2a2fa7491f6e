"""Tests for provider adapters."""

import json
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from creative_engine.adapters.ads.meta import MetaAdsPlatform
from creative_engine.adapters.compositor.base import CompositeRequest
from creative_engine.adapters.compositor.stub import StubCompositor
from creative_engine.adapters.factory import (
    get_ads_platform,
    get_llm_provider,
    get_notifier,
    get_storage,
)
from creative_engine.adapters.llm.base import LLMResponse
from creative_engine.adapters.llm.stub import StubLLMProvider
from creative_engine.adapters.notifier.base import encode_action_value
from creative_engine.adapters.notifier.slack import SlackNotifier
from creative_engine.adapters.storage.base import extract_file_id
from creative_engine.adapters.storage.google_drive import GoogleDriveStorage
from creative_engine.adapters.voiceover.base import VoiceoverRequest
from creative_engine.adapters.voiceover.stub import StubVoiceoverProvider
from creative_engine.domain.enums import ApprovalAction
from creative_engine.domain.models import ApprovalItem, ApprovalRequest
from creative_engine.errors import (
    AdsPlatformError,
    ConfigurationError,
    NotifierError,
    PermanentUploadError,
    ScriptGenerationError,
    TransientExternalError,
)
from creative_engine.services.script_writer import ScriptWriter

GRAPH_REQUEST = httpx.Request("GET", "https://graph.facebook.com/v21.0/x")
SLACK_REQUEST = httpx.Request("POST", "https://slack.com/api/chat.postMessage")


def _item(number: int = 1) -> ApprovalItem:
    return ApprovalItem(
        item_number=number,
        title=f"Hook {number}",
        file_name=f"Hook {number}_A",
        file_id=f"file_{number}",
        drive_link=f"https://stub.local/file/d/file_{number}/view",
    )


class TestFactory:
    def test_defaults_to_stubs(self):
        """Unconfigured providers resolve to the stubs."""
        assert get_llm_provider().name == "stub"
        assert get_storage().name == "stub"
        assert get_notifier().name == "stub"
        assert get_ads_platform().name == "stub"


class TestStubs:
    """Tests for the recording stubs."""

    @pytest.mark.asyncio
    async def test_voiceover_records_requests(self):
        """Every synthesis call is recorded."""
        provider = StubVoiceoverProvider()

        result = await provider.generate(VoiceoverRequest(text="Hello there"))

        assert result.success is True
        assert result.audio_data.startswith(b"STUB_AUDIO_DATA_")
        assert result.duration_seconds >= 1.0
        assert len(provider.requests) == 1

    @pytest.mark.asyncio
    async def test_voiceover_failure(self):
        provider = StubVoiceoverProvider(fail_for={"bad"})

        result = await provider.generate(VoiceoverRequest(text="bad"))

        assert result.success is False

    @pytest.mark.asyncio
    async def test_compositor_writes_marker(self, tmp_path: Path):
        """The stub compositor writes a marker file at the output path."""
        compositor = StubCompositor()
        footage = tmp_path / "footage.mp4"
        footage.write_bytes(b"x")
        output = tmp_path / "out" / "Hook 1_A.mp4"

        result = await compositor.composite(
            CompositeRequest(footage_path=footage, audio_path=None, output_path=output)
        )

        assert result.success is True
        assert output.read_bytes().startswith(b"STUB_VIDEO footage.mp4")

    @pytest.mark.asyncio
    async def test_llm_returns_requested_count(self):
        writer = ScriptWriter(StubLLMProvider())

        drafts = await writer.generate(4, guidance="Focus on mornings")

        assert [d.title for d in drafts] == [f"Stub Script {i}" for i in range(1, 5)]
        assert all(d.content for d in drafts)


class TestScriptWriter:
    """Tests for parsing LLM output into drafts."""

    @staticmethod
    def _writer(content: str) -> ScriptWriter:
        llm = StubLLMProvider()
        llm.complete = AsyncMock(return_value=LLMResponse(content=content, model="test"))
        return ScriptWriter(llm)

    @pytest.mark.asyncio
    async def test_invalid_json(self):
        """Non-JSON output is a generation error."""
        with pytest.raises(ScriptGenerationError):
            await self._writer("not json at all").generate(3)

    @pytest.mark.asyncio
    async def test_no_scripts(self):
        with pytest.raises(ScriptGenerationError):
            await self._writer(json.dumps({"scripts": []})).generate(3)

    @pytest.mark.asyncio
    async def test_drops_empty_and_truncates(self):
        """Scripts without content are dropped and extras discarded."""
        content = json.dumps(
            {
                "scripts": [
                    {"title": " One ", "content": "First script."},
                    {"title": "Empty", "content": ""},
                    {"content": "Untitled script."},
                    {"title": "Extra", "content": "Third script."},
                ]
            }
        )

        drafts = await self._writer(content).generate(2)

        assert [d.title for d in drafts] == ["One", "Script 3"]


class TestActionValues:
    def test_encode_with_spreadsheet(self):
        """Button values carry action, batch, item, file id and spreadsheet."""
        value = encode_action_value(ApprovalAction.APPROVE, "batch_1", _item(2), "sheet_1")

        assert value == "approve||batch_1||2||file_2||sheet_1"

    def test_encode_without_spreadsheet(self):
        value = encode_action_value(ApprovalAction.REJECT_SCRIPT, "batch_1", _item(1))

        assert value == "reject_script||batch_1||1||file_1"


class TestExtractFileId:
    @pytest.mark.parametrize(
        "link,expected",
        [
            ("https://drive.google.com/file/d/abc_DEF-123/view?usp=sharing", "abc_DEF-123"),
            ("https://drive.google.com/drive/folders/folder12345", "folder12345"),
            ("https://drive.google.com/open?id=openid12345", "openid12345"),
            ("rawFileId12345", "rawFileId12345"),
            ("short", None),
            ("", None),
            (None, None),
        ],
    )
    def test_extract(self, link, expected):
        """File ids are taken from share links or accepted as-is."""
        assert extract_file_id(link) == expected


class TestSlackNotifier:
    """Tests for the Slack Web API client."""

    @pytest.mark.asyncio
    async def test_missing_config(self):
        notifier = SlackNotifier(bot_token="", channel_id="")
        notifier.bot_token = None

        with pytest.raises(ConfigurationError):
            await notifier.send_message("hello")

    @pytest.mark.asyncio
    async def test_api_error(self):
        """An ok=false body is a notifier error."""
        notifier = SlackNotifier(bot_token="xoxb-test", channel_id="C1")
        response = httpx.Response(
            200, json={"ok": False, "error": "channel_not_found"}, request=SLACK_REQUEST
        )

        with patch("httpx.AsyncClient.post", new_callable=AsyncMock, return_value=response):
            with pytest.raises(NotifierError, match="channel_not_found"):
                await notifier.send_message("hello")

    @pytest.mark.asyncio
    async def test_send_message(self):
        notifier = SlackNotifier(bot_token="xoxb-test", channel_id="C1")
        response = httpx.Response(
            200, json={"ok": True, "channel": "C1", "ts": "171.0001"}, request=SLACK_REQUEST
        )

        with patch("httpx.AsyncClient.post", new_callable=AsyncMock, return_value=response):
            ref = await notifier.send_message("hello")

        assert (ref.channel_id, ref.ts) == ("C1", "171.0001")

    @pytest.mark.asyncio
    async def test_approval_request_blocks(self):
        """A header plus one message with approve and reject buttons per item."""
        notifier = SlackNotifier(bot_token="xoxb-test", channel_id="C1")
        request = ApprovalRequest(
            batch_name="batch_1",
            items=[_item(1), _item(2)],
            folder_link="https://stub.local/folders/f1",
            spreadsheet_id="sheet_1",
        )

        with patch.object(
            notifier, "_call", new_callable=AsyncMock, return_value={"ok": True, "ts": "1.0"}
        ) as mock_call:
            refs = await notifier.send_approval_request(request)

        assert len(refs) == 3
        header = mock_call.call_args_list[0].args[1]
        assert "2 ads ready for review" in header["text"]
        blocks = mock_call.call_args_list[2].args[1]["blocks"]
        buttons = blocks[1]["elements"]
        assert [b["action_id"] for b in buttons] == ["approve_2", "reject_2"]
        assert buttons[0]["value"] == "approve||batch_1||2||file_2||sheet_1"
        assert "Watch video" in blocks[0]["text"]["text"]

    @pytest.mark.asyncio
    async def test_script_only_buttons(self):
        notifier = SlackNotifier(bot_token="xoxb-test", channel_id="C1")
        item = _item(1)
        item.content = "Script text"
        request = ApprovalRequest(batch_name="batch_1", items=[item], script_only=True)

        with patch.object(
            notifier, "_call", new_callable=AsyncMock, return_value={"ok": True, "ts": "1.0"}
        ) as mock_call:
            await notifier.send_approval_request(request)

        buttons = mock_call.call_args_list[1].args[1]["blocks"][1]["elements"]
        assert buttons[0]["value"].startswith("approve_script||")
        assert buttons[1]["value"].startswith("reject_script||")

    @pytest.mark.asyncio
    async def test_health_check_false_on_error(self):
        notifier = SlackNotifier(bot_token="xoxb-test", channel_id="C1")

        with patch.object(
            notifier, "_call", new_callable=AsyncMock, side_effect=NotifierError("invalid_auth")
        ):
            assert await notifier.health_check() is False


class TestMetaAdsPlatform:
    """Tests for Graph API error mapping."""

    @staticmethod
    def _platform() -> MetaAdsPlatform:
        return MetaAdsPlatform(access_token="token", ad_account_id="123", api_version="v21.0")

    def test_account_prefix(self):
        assert self._platform().ad_account_id == "act_123"

    @pytest.mark.asyncio
    async def test_client_error(self):
        """4xx responses are ads platform errors."""
        response = httpx.Response(
            400, json={"error": {"message": "Invalid parameter"}}, request=GRAPH_REQUEST
        )

        with patch("httpx.AsyncClient.request", new_callable=AsyncMock, return_value=response):
            with pytest.raises(AdsPlatformError, match="Invalid parameter"):
                await self._platform().get_ad_set_template("as_1")

    @pytest.mark.asyncio
    async def test_server_error_is_transient(self):
        response = httpx.Response(503, text="unavailable", request=GRAPH_REQUEST)

        with patch("httpx.AsyncClient.request", new_callable=AsyncMock, return_value=response):
            with pytest.raises(TransientExternalError):
                await self._platform().get_ad_set_template("as_1")

    @pytest.mark.asyncio
    async def test_rejected_upload_is_permanent(self, tmp_path: Path):
        """A 4xx on upload is a permanent upload failure."""
        video = tmp_path / "clip.mp4"
        video.write_bytes(b"video")
        response = httpx.Response(
            400, json={"error": {"error_user_msg": "Bad video"}}, request=GRAPH_REQUEST
        )

        with patch("httpx.AsyncClient.request", new_callable=AsyncMock, return_value=response):
            with pytest.raises(PermanentUploadError, match="Bad video"):
                await self._platform().upload_video(video, "clip", timeout=10)

    @pytest.mark.asyncio
    async def test_upload_returns_id(self, tmp_path: Path):
        video = tmp_path / "clip.mp4"
        video.write_bytes(b"video")
        response = httpx.Response(200, json={"id": "98765"}, request=GRAPH_REQUEST)

        with patch("httpx.AsyncClient.request", new_callable=AsyncMock, return_value=response):
            assert await self._platform().upload_video(video, "clip", timeout=10) == "98765"

    @pytest.mark.asyncio
    async def test_creative_template_requires_story_spec(self):
        response = httpx.Response(200, json={"creative": {"id": "c1"}}, request=GRAPH_REQUEST)

        with patch("httpx.AsyncClient.request", new_callable=AsyncMock, return_value=response):
            with pytest.raises(AdsPlatformError):
                await self._platform().get_creative_template("ad_1")

    @pytest.mark.asyncio
    async def test_missing_config(self):
        platform = MetaAdsPlatform(access_token="token", ad_account_id="123")
        platform.access_token = ""

        with pytest.raises(ConfigurationError):
            await platform.get_ad_set_template("as_1")


class TestGoogleDriveStorage:
    """Tests for Drive transfer error mapping."""

    @pytest.mark.asyncio
    async def test_connection_reset_on_upload_is_transient(self, tmp_path: Path):
        """A dropped connection during upload is retryable, not a crash."""
        video = tmp_path / "Hook 2_A.mp4"
        video.write_bytes(b"video")
        drive = MagicMock()
        drive.files.return_value.create.return_value.execute.side_effect = ConnectionResetError(
            "Connection reset by peer"
        )
        storage = GoogleDriveStorage(parent_folder_id="root_folder", credentials=object())

        with patch.object(storage, "_drive", return_value=drive):
            with pytest.raises(TransientExternalError, match="interrupted"):
                await storage.upload_file(video, video.name, "folder_1", timeout=30)

    @pytest.mark.asyncio
    async def test_interrupted_download_removes_partial_file(self, tmp_path: Path):
        destination = tmp_path / "footage" / "A.mp4"
        storage = GoogleDriveStorage(parent_folder_id="root_folder", credentials=object())
        downloader = MagicMock()
        downloader.return_value.next_chunk.side_effect = TimeoutError("read timed out")

        target = "creative_engine.adapters.storage.google_drive.MediaIoBaseDownload"
        with patch.object(storage, "_drive", return_value=MagicMock()), patch(target, downloader):
            with pytest.raises(TransientExternalError, match="footage_A"):
                await storage.download_file("footage_A", destination)

        assert not destination.exists()
