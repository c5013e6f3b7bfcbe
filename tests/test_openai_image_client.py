"""Tests for the OpenAI image edit client against a mocked transport."""

import httpx
import pytest

from clients import OpenAIImageClient, PortraitGenerationError, PortraitRateLimit
from tests.conftest import PNG_BYTES


def _client(handler, **kwargs) -> OpenAIImageClient:
    kwargs.setdefault("retry_base_wait", 0)
    return OpenAIImageClient(api_key="sk-test", transport=httpx.MockTransport(handler), **kwargs)


def test_edit_image_posts_multipart_and_returns_b64() -> None:
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"data": [{"b64_json": "cG9ydHJhaXQ="}]})

    result = _client(handler).edit_image(PNG_BYTES, "Paint my dog", filename="rex.png", content_type="image/png")

    assert result == "cG9ydHJhaXQ="
    request = seen[0]
    assert request.method == "POST"
    assert str(request.url) == "https://api.openai.com/v1/images/edits"
    assert request.headers["Authorization"] == "Bearer sk-test"
    assert request.headers["Content-Type"].startswith("multipart/form-data")
    body = request.read()
    assert b'name="prompt"' in body and b"Paint my dog" in body
    assert b'name="model"' in body and b"gpt-image-1" in body
    assert b'name="size"' in body and b"1024x1024" in body
    assert b'name="output_format"' in body
    assert b'name="response_format"' not in body
    assert b'filename="rex.png"' in body


def test_dall_e_models_request_b64_json() -> None:
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.read())
        return httpx.Response(200, json={"data": [{"b64_json": "eA=="}]})

    _client(handler, model="dall-e-2", base_url="https://proxy.local/").edit_image(PNG_BYTES, "Paint")

    assert b'name="response_format"' in seen[0] and b"b64_json" in seen[0]
    assert b'name="output_format"' not in seen[0]


def test_transient_errors_are_retried() -> None:
    responses = iter([httpx.Response(503, text="busy"), httpx.Response(200, json={"data": [{"b64_json": "b2s="}]})])

    def handler(request: httpx.Request) -> httpx.Response:
        return next(responses)

    assert _client(handler).edit_image(PNG_BYTES, "Paint") == "b2s="


def test_client_error_surfaces_provider_message() -> None:
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(400, json={"error": {"message": "Invalid image file or mode."}})

    with pytest.raises(PortraitGenerationError, match="Invalid image file or mode."):
        _client(handler).edit_image(PNG_BYTES, "Paint")
    assert len(calls) == 1


def test_rate_limit_after_retries() -> None:
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(429, json={"error": {"message": "Rate limit reached"}})

    with pytest.raises(PortraitRateLimit, match="Rate limit reached"):
        _client(handler, max_retries=2).edit_image(PNG_BYTES, "Paint")
    assert len(calls) == 2


def test_missing_image_data_is_an_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"data": []})

    with pytest.raises(PortraitGenerationError, match="OpenAI did not return image data."):
        _client(handler).edit_image(PNG_BYTES, "Paint")


def test_network_errors_fail_after_retries() -> None:
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(PortraitGenerationError, match="connection refused"):
        _client(handler, max_retries=3).edit_image(PNG_BYTES, "Paint")
    assert len(calls) == 3


def test_non_json_success_body_is_a_generation_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>gateway</html>")

    with pytest.raises(PortraitGenerationError, match="unexpected response"):
        _client(handler).edit_image(PNG_BYTES, "Paint")


@pytest.mark.parametrize("body", [[], {"data": {"b64_json": "x"}}, {"data": ["x"]}, {"data": None}])
def test_malformed_success_body_is_a_generation_error(body) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=body)

    with pytest.raises(PortraitGenerationError, match="OpenAI did not return image data."):
        _client(handler).edit_image(PNG_BYTES, "Paint")


def test_output_mime_type_follows_model_and_format() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"data": [{"b64_json": "x"}]})

    assert _client(handler).output_mime_type == "image/png"
    assert _client(handler, output_format="jpeg").output_mime_type == "image/jpeg"
    assert _client(handler, model="dall-e-2", output_format="webp").output_mime_type == "image/png"
