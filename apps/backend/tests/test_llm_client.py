import json

import httpx
import pytest

from conftest import ChunkedBody, openrouter_client
from jobos.services.llm_client import (
    MISSING_KEY_MESSAGE,
    ConfigurationError,
    LLMRequestError,
    parse_stream_line,
)

MESSAGES = [{"role": "user", "content": "Hello"}]


def sse(content: str) -> str:
    return "data: " + json.dumps({"choices": [{"delta": {"content": content}}]}) + "\n"


async def test_complete_returns_first_choice_and_sends_expected_request():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["headers"] = request.headers
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"choices": [{"message": {"content": "Hi there"}}]})

    llm = openrouter_client(handler)
    result = await llm.complete(MESSAGES, temperature=0.1, json_mode=True)

    assert result == "Hi there"
    assert seen["headers"]["Authorization"] == "Bearer test-key"
    assert seen["headers"]["X-Title"]
    assert seen["headers"]["HTTP-Referer"]
    assert seen["body"]["messages"] == MESSAGES
    assert seen["body"]["temperature"] == 0.1
    assert seen["body"]["response_format"] == {"type": "json_object"}
    assert "stream" not in seen["body"]


async def test_complete_defaults_temperature_and_omits_response_format():
    seen = {}

    def handler(request):
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"choices": [{"message": {"content": "ok"}}]})

    await openrouter_client(handler).complete(MESSAGES)

    assert seen["body"]["temperature"] == 0.7
    assert "response_format" not in seen["body"]


async def test_complete_without_choices_returns_empty_string():
    llm = openrouter_client(lambda request: httpx.Response(200, json={"choices": []}))
    assert await llm.complete(MESSAGES) == ""


async def test_missing_api_key_fails_before_any_request():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(200, json={})

    llm = openrouter_client(handler, api_key=None)

    with pytest.raises(ConfigurationError, match="API Key is missing"):
        await llm.complete(MESSAGES)
    with pytest.raises(ConfigurationError) as exc_info:
        async for _ in llm.stream(MESSAGES):
            pass

    assert str(exc_info.value) == MISSING_KEY_MESSAGE
    assert calls == []


@pytest.mark.parametrize(
    "response, expected",
    [
        (httpx.Response(401, json={"error": {"message": "Invalid API key"}}), "Invalid API key"),
        (httpx.Response(429, json={"error": "Rate limited"}), "Rate limited"),
        (httpx.Response(400, json={"message": "Bad model"}), "Bad model"),
        (httpx.Response(502, text="upstream exploded"), "upstream exploded"),
        (httpx.Response(503, json={}), "Service Unavailable"),
    ],
)
async def test_error_status_surfaces_most_specific_message(response, expected):
    llm = openrouter_client(lambda request: response)

    with pytest.raises(LLMRequestError) as exc_info:
        await llm.complete(MESSAGES)

    assert str(exc_info.value) == f"AI Request Failed: {expected}"
    assert exc_info.value.status_code == response.status_code


async def test_transport_failure_becomes_request_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(LLMRequestError, match="connection refused"):
        await openrouter_client(handler).complete(MESSAGES)


async def test_stream_reassembles_lines_split_across_chunks():
    body = sse("Dear ") + sse("Hiring ") + sse("Manager") + "data: [DONE]\n"
    chunks = [body[:10], body[10:47], body[47:90], body[90:]]
    seen = {}

    def handler(request):
        seen["body"] = json.loads(request.content)
        seen["accept"] = request.headers.get("Accept")
        return httpx.Response(200, stream=ChunkedBody(chunks))

    fragments = [f async for f in openrouter_client(handler).stream(MESSAGES)]

    assert fragments == ["Dear ", "Hiring ", "Manager"]
    assert seen["body"]["stream"] is True
    assert seen["accept"] == "text/event-stream"


async def test_stream_skips_noise_and_flushes_final_line_without_newline():
    body = (
        ": keepalive\n"
        "\n"
        "data: not-json\n"
        'data: {"choices": [{"delta": {}}]}\n'
        + sse("one")
        + sse("two").rstrip("\n")
    )
    llm = openrouter_client(lambda request: httpx.Response(200, stream=ChunkedBody([body])))

    assert [f async for f in llm.stream(MESSAGES)] == ["one", "two"]


async def test_stream_error_status_raises_before_any_fragment():
    llm = openrouter_client(
        lambda request: httpx.Response(500, json={"error": {"message": "Model overloaded"}})
    )

    with pytest.raises(LLMRequestError, match="Model overloaded"):
        async for _ in llm.stream(MESSAGES):
            pass


async def test_stream_failure_mid_body_keeps_earlier_fragments():
    body = ChunkedBody([sse("partial")], error=httpx.ReadError("connection reset"))
    llm = openrouter_client(lambda request: httpx.Response(200, stream=body))

    received = []
    with pytest.raises(LLMRequestError, match="connection reset"):
        async for fragment in llm.stream(MESSAGES):
            received.append(fragment)

    assert received == ["partial"]


async def test_stream_consumer_may_stop_early():
    body = ChunkedBody([sse("a"), sse("b"), sse("c")])
    llm = openrouter_client(lambda request: httpx.Response(200, stream=body))

    stream = llm.stream(MESSAGES)
    first = await stream.__anext__()
    await stream.aclose()

    assert first == "a"


@pytest.mark.parametrize(
    "line, expected",
    [
        ('data: {"choices": [{"delta": {"content": "Hi"}}]}', "Hi"),
        ('data:{"choices": [{"delta": {"content": "tight"}}]}', "tight"),
        ("data: [DONE]", None),
        ("", None),
        ("event: ping", None),
        ("data: {broken", None),
        ('data: {"choices": []}', None),
    ],
)
def test_parse_stream_line(line, expected):
    assert parse_stream_line(line) == expected
