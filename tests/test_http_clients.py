"""Tests for the HTTP classification client."""

import asyncio
import json

import httpx
import pytest

from skin_analysis.adapters.classification_client import HttpxClassificationClient
from skin_analysis.domain.errors import ConnectivityError, RemoteServiceError

URL = "https://classifier.test/predictImage"


def _client(handler) -> HttpxClassificationClient:  # type: ignore[no-untyped-def]
    transport = httpx.MockTransport(handler)
    return HttpxClassificationClient(
        url=URL, http_client=httpx.AsyncClient(transport=transport)
    )


def test_classify_posts_image_with_bearer_token() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"severity": "moderate", "score": 0.62})

    result = asyncio.run(_client(handler).classify("aGVsbG8=", "token-1"))

    assert result == {"severity": "moderate", "score": 0.62}
    request = seen[0]
    assert request.method == "POST"
    assert str(request.url) == URL
    assert request.headers["Authorization"] == "Bearer token-1"
    assert request.headers["Content-Type"] == "application/json"
    assert json.loads(request.content.decode()) == {"base64Image": "aGVsbG8="}


def test_non_success_status_raises_remote_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, text="boom")

    with pytest.raises(RemoteServiceError) as excinfo:
        asyncio.run(_client(handler).classify("aGVsbG8=", "token-1"))

    assert excinfo.value.status_code == 500
    assert excinfo.value.status_text == "Internal Server Error"
    assert str(excinfo.value) == "500 Internal Server Error"


def test_unauthorized_status_raises_remote_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(401, json={"error": "expired token"})

    with pytest.raises(RemoteServiceError) as excinfo:
        asyncio.run(_client(handler).classify("aGVsbG8=", "stale"))

    assert excinfo.value.status_code == 401


def test_transport_failure_raises_connectivity_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(ConnectivityError) as excinfo:
        asyncio.run(_client(handler).classify("aGVsbG8=", "token-1"))

    assert "connection refused" in str(excinfo.value)


def test_non_json_body_raises_remote_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>oops</html>")

    with pytest.raises(RemoteServiceError):
        asyncio.run(_client(handler).classify("aGVsbG8=", "token-1"))


def test_non_object_body_raises_remote_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=["moderate"])

    with pytest.raises(RemoteServiceError):
        asyncio.run(_client(handler).classify("aGVsbG8=", "token-1"))
