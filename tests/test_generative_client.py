import base64
import json

import httpx
import pytest

from conftest import gemini_body
from travel_ai.clients.generative import build_payload, extract_text
from travel_ai.errors import EmptyResponseError, HttpStatusError, NotConfiguredError, TransportError

JPEG = b"\xff\xd8\xff\xe0fake-jpeg"
PNG = b"\x89PNG\r\n\x1a\nfake-png"


def test_extract_text_reads_first_candidate():
    assert extract_text(gemini_body("Hi")) == "Hi"


@pytest.mark.parametrize(
    "data",
    [
        {"candidates": []},
        {},
        {"candidates": [{"content": {"parts": []}}]},
        {"candidates": [{"content": {}}]},
        None,
    ],
)
def test_extract_text_without_candidate_is_empty(data):
    with pytest.raises(EmptyResponseError):
        extract_text(data)


def test_payload_without_photo_has_only_text():
    assert build_payload("hello") == {"contents": [{"parts": [{"text": "hello"}]}]}


def test_payload_inlines_photo_with_mime_type():
    parts = build_payload("what is it", JPEG)["contents"][0]["parts"]

    assert parts[0] == {"text": "what is it"}
    assert parts[1]["inlineData"]["mimeType"] == "image/jpeg"
    assert base64.b64decode(parts[1]["inlineData"]["data"]) == JPEG

    png_part = build_payload("x", PNG)["contents"][0]["parts"][1]
    assert png_part["inlineData"]["mimeType"] == "image/png"


@pytest.mark.asyncio
async def test_generate_posts_to_model_endpoint(make_client, gemini):
    gemini.answer = "Hi"
    client = make_client(gemini)

    assert await client.generate("hello") == "Hi"

    request = gemini.requests[0]
    assert request.method == "POST"
    assert request.url.path == "/v1beta/models/gemini-1.5-flash:generateContent"
    assert request.url.params["key"] == "test-key"
    assert json.loads(request.content) == {"contents": [{"parts": [{"text": "hello"}]}]}


@pytest.mark.asyncio
async def test_generate_without_credential_sends_nothing(make_client, gemini):
    client = make_client(gemini, credential=None)

    with pytest.raises(NotConfiguredError):
        await client.generate("hello")
    assert gemini.requests == []

    client.configure("late-key")
    await client.generate("hello")
    assert gemini.requests[0].url.params["key"] == "late-key"


@pytest.mark.asyncio
async def test_generate_http_error_keeps_body(make_client, gemini):
    gemini.status_code = 429
    client = make_client(gemini)

    with pytest.raises(HttpStatusError) as exc_info:
        await client.generate("hello")

    assert exc_info.value.status_code == 429
    assert "quota exceeded" in exc_info.value.body
    assert "quota exceeded" in str(exc_info.value)


@pytest.mark.asyncio
async def test_generate_empty_candidates(make_client):
    client = make_client(lambda request: httpx.Response(200, json={"candidates": []}))

    with pytest.raises(EmptyResponseError):
        await client.generate("hello")


@pytest.mark.asyncio
async def test_generate_non_json_body_is_empty_response(make_client):
    client = make_client(lambda request: httpx.Response(200, text="<html>oops</html>"))

    with pytest.raises(EmptyResponseError):
        await client.generate("hello")


@pytest.mark.asyncio
async def test_generate_network_failure_is_transport_error(make_client):
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    client = make_client(handler)

    with pytest.raises(TransportError):
        await client.generate("hello")


@pytest.mark.asyncio
async def test_generate_timeout_is_transport_error(make_client):
    def handler(request):
        raise httpx.ReadTimeout("too slow", request=request)

    client = make_client(handler)

    with pytest.raises(TransportError, match="timed out"):
        await client.generate("hello")
