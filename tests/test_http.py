from __future__ import annotations

from unittest.mock import AsyncMock, patch

import aiohttp
import pytest

from article_enhancer.http import HttpClient, HttpError, IntervalLimiter


class FakeResponse:
    def __init__(self, status: int = 200, text: str = "", json_data=None) -> None:
        self.status = status
        self._text = text
        self._json = json_data
        self.request_info = None
        self.history = ()
        self.headers = {}

    async def text(self, errors: str = "strict") -> str:
        return self._text

    async def json(self, content_type=None):
        return self._json


class FakeCtx:
    def __init__(self, outcome) -> None:
        self._outcome = outcome

    async def __aenter__(self):
        if isinstance(self._outcome, Exception):
            raise self._outcome
        return self._outcome

    async def __aexit__(self, *exc) -> bool:
        return False


class FakeSession:
    """Replays queued outcomes (FakeResponse or exception) for get/request calls."""

    def __init__(self, *outcomes) -> None:
        self.outcomes = list(outcomes)
        self.calls: list[tuple[str, str, dict]] = []

    def get(self, url, **kwargs):
        self.calls.append(("GET", url, kwargs))
        return FakeCtx(self.outcomes.pop(0))

    def request(self, method, url, **kwargs):
        self.calls.append((method, url, kwargs))
        return FakeCtx(self.outcomes.pop(0))


def _client(session: FakeSession) -> HttpClient:
    return HttpClient(session, user_agent="TestAgent/1.0", timeout_seconds=10)


class TestGetText:
    @pytest.mark.asyncio
    async def test_returns_body_and_sends_browser_headers(self) -> None:
        session = FakeSession(FakeResponse(200, "<html>ok</html>"))

        text = await _client(session).get_text("https://a.com", params={"q": "x"})

        assert text == "<html>ok</html>"
        _, url, kwargs = session.calls[0]
        assert url == "https://a.com"
        assert kwargs["params"] == {"q": "x"}
        assert kwargs["headers"]["User-Agent"] == "TestAgent/1.0"
        assert kwargs["timeout"].total == 10

    @pytest.mark.asyncio
    async def test_error_status_returns_none(self) -> None:
        assert await _client(FakeSession(FakeResponse(404))).get_text("https://a.com") is None

    @pytest.mark.asyncio
    async def test_transport_error_returns_none(self) -> None:
        session = FakeSession(aiohttp.ClientConnectionError("refused"))
        assert await _client(session).get_text("https://a.com") is None

    @pytest.mark.asyncio
    async def test_malformed_url_returns_none(self) -> None:
        session = FakeSession(UnicodeError("encoding with 'idna' codec failed"))
        assert await _client(session).get_text("http://a..b/post") is None

    @pytest.mark.asyncio
    async def test_single_attempt_on_error_status(self) -> None:
        session = FakeSession(FakeResponse(503), FakeResponse(200, "unused"))
        assert await _client(session).get_text("https://a.com") is None
        assert len(session.calls) == 1


class TestRequestJson:
    @pytest.mark.asyncio
    async def test_decodes_json(self) -> None:
        session = FakeSession(FakeResponse(200, json_data={"data": []}))

        data = await _client(session).request_json("PUT", "https://api/x", json={"a": 1}, headers={"X": "1"})

        assert data == {"data": []}
        method, url, kwargs = session.calls[0]
        assert (method, url) == ("PUT", "https://api/x")
        assert kwargs["json"] == {"a": 1}
        assert kwargs["headers"]["Content-Type"] == "application/json"
        assert kwargs["headers"]["X"] == "1"

    @pytest.mark.asyncio
    async def test_error_status_raises(self) -> None:
        session = FakeSession(FakeResponse(422, text='{"message": "invalid"}'))

        with pytest.raises(HttpError) as exc:
            await _client(session).request_json("PUT", "https://api/x")

        assert exc.value.status == 422
        assert "invalid" in str(exc.value)

    @pytest.mark.asyncio
    async def test_transport_error_propagates(self) -> None:
        session = FakeSession(aiohttp.ClientConnectionError("down"))
        with pytest.raises(aiohttp.ClientError):
            await _client(session).request_json("GET", "https://api/x")


class TestIntervalLimiter:
    @pytest.mark.asyncio
    async def test_zero_interval_never_sleeps(self) -> None:
        limiter = IntervalLimiter(0)
        with patch("article_enhancer.http.asyncio.sleep", new=AsyncMock()) as sleep:
            for _ in range(3):
                await limiter.acquire()
        sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_spaces_out_successive_calls(self) -> None:
        limiter = IntervalLimiter(5.0)
        with patch("article_enhancer.http.asyncio.sleep", new=AsyncMock()) as sleep:
            await limiter.acquire()
            sleep.assert_not_awaited()
            await limiter.acquire()

        sleep.assert_awaited_once()
        waited = sleep.await_args.args[0]
        assert 4.0 < waited <= 5.0
