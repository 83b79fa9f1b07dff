"""Tests for the Stream video client."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest
from jose import jwt

from modules.video.exceptions import InvalidCallCidError, VideoPlatformError
from modules.video.models import build_call_cid, parse_call_cid
from modules.video.stream import StreamVideoClient, parse_participants
from shared.config import Settings

CALL_CID = "consultation_audio:order-1"


@pytest.fixture
def settings():
    return Settings(
        stream_api_key="stream-key",
        stream_api_secret="stream-secret",
        stream_api_base_url="https://video.example.com/api/",
    )


def mock_async_client(response=None, error=None):
    """Patchable stand-in for httpx.AsyncClient used as a context manager."""
    client = MagicMock()
    for method in ("get", "post"):
        if error is not None:
            setattr(client, method, AsyncMock(side_effect=error))
        else:
            setattr(client, method, AsyncMock(return_value=response))
    context = MagicMock()
    context.__aenter__ = AsyncMock(return_value=client)
    context.__aexit__ = AsyncMock(return_value=False)
    return context, client


def http_response(status_code: int, payload=None):
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = payload or {}
    return response


class TestCallCid:
    def test_parse(self):
        assert parse_call_cid(CALL_CID) == ("consultation_audio", "order-1")

    def test_id_may_contain_colon(self):
        assert parse_call_cid("default:a:b") == ("default", "a:b")

    @pytest.mark.parametrize("call_cid", ["", "no-colon", ":order-1", "default:"])
    def test_invalid(self, call_cid):
        with pytest.raises(InvalidCallCidError):
            parse_call_cid(call_cid)

    def test_build(self):
        assert build_call_cid("consultation_video", "order-2") == "consultation_video:order-2"


class TestParseParticipants:
    def test_reads_session_participants(self):
        payload = {
            "call": {
                "session": {
                    "participants": [
                        {"user_id": "user-1", "joined_at": "2026-03-01T12:00:00Z"},
                        {
                            "user": {"id": "expert-1"},
                            "joined_at": "2026-03-01T12:00:30Z",
                            "left_at": "2026-03-01T12:02:30Z",
                        },
                        {"joined_at": "2026-03-01T12:00:10Z"},
                    ]
                }
            }
        }

        participants = parse_participants(payload)

        assert [p.user_id for p in participants] == ["user-1", "expert-1"]
        assert participants[0].joined_at == datetime(2026, 3, 1, 12, tzinfo=timezone.utc)
        assert participants[0].left_at is None
        assert participants[1].left_at == datetime(2026, 3, 1, 12, 2, 30, tzinfo=timezone.utc)

    def test_bad_timestamp_is_dropped(self):
        payload = {"session": {"participants": [{"user_id": "user-1", "joined_at": "soon"}]}}

        participants = parse_participants(payload)

        assert participants[0].joined_at is None

    def test_no_session(self):
        assert parse_participants({"call": {}}) == []


class TestStreamVideoClient:
    def test_is_configured(self, settings):
        assert StreamVideoClient(settings).is_configured
        assert not StreamVideoClient(Settings(stream_api_key="", stream_api_secret="")).is_configured

    def test_server_token(self, settings):
        token = StreamVideoClient(settings)._server_token()

        claims = jwt.decode(token, "stream-secret", algorithms=["HS256"])
        assert claims["user_id"] == "server"

    @pytest.mark.asyncio
    async def test_create_call(self, settings):
        context, client = mock_async_client(http_response(201))

        with patch("modules.video.stream.httpx.AsyncClient", return_value=context):
            await StreamVideoClient(settings).create_call(CALL_CID, "user-1", ["user-1", "expert-1"])

        url = client.post.call_args[0][0]
        assert url == "https://video.example.com/api/call/consultation_audio/order-1"
        kwargs = client.post.call_args[1]
        assert kwargs["params"] == {"api_key": "stream-key"}
        assert kwargs["json"]["data"]["members"] == [{"user_id": "user-1"}, {"user_id": "expert-1"}]

    @pytest.mark.asyncio
    async def test_create_call_http_error(self, settings):
        context, _ = mock_async_client(http_response(500))

        with patch("modules.video.stream.httpx.AsyncClient", return_value=context):
            with pytest.raises(VideoPlatformError) as exc_info:
                await StreamVideoClient(settings).create_call(CALL_CID, "user-1", ["user-1"])

        assert exc_info.value.status_code == 500

    @pytest.mark.asyncio
    async def test_create_call_not_configured(self):
        client = StreamVideoClient(Settings(stream_api_key="", stream_api_secret=""))

        with pytest.raises(VideoPlatformError):
            await client.create_call(CALL_CID, "user-1", ["user-1"])

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status_code,expected", [(200, True), (404, True), (500, False)])
    async def test_end_call(self, settings, status_code, expected):
        context, client = mock_async_client(http_response(status_code))

        with patch("modules.video.stream.httpx.AsyncClient", return_value=context):
            ended = await StreamVideoClient(settings).end_call(CALL_CID)

        assert ended is expected
        assert client.post.call_args[0][0].endswith("/order-1/mark_ended")

    @pytest.mark.asyncio
    async def test_end_call_network_error(self, settings):
        context, _ = mock_async_client(error=httpx.ConnectError("refused"))

        with patch("modules.video.stream.httpx.AsyncClient", return_value=context):
            assert await StreamVideoClient(settings).end_call(CALL_CID) is False

    @pytest.mark.asyncio
    async def test_get_call_participants(self, settings):
        payload = {"call": {"session": {"participants": [{"user_id": "user-1"}]}}}
        context, _ = mock_async_client(http_response(200, payload))

        with patch("modules.video.stream.httpx.AsyncClient", return_value=context):
            participants = await StreamVideoClient(settings).get_call_participants(CALL_CID)

        assert [p.user_id for p in participants] == ["user-1"]

    @pytest.mark.asyncio
    async def test_get_call_participants_error(self, settings):
        context, _ = mock_async_client(error=httpx.ReadTimeout("slow"))

        with patch("modules.video.stream.httpx.AsyncClient", return_value=context):
            with pytest.raises(VideoPlatformError):
                await StreamVideoClient(settings).get_call_participants(CALL_CID)
