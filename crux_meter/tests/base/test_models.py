from __future__ import annotations

import httpx

from crux_meter.base.models import ModelType, RequestContext, TokenMetrics


def test_token_metrics_from_usage_naming_variants():
    completion_style = {
        "prompt_tokens": 100,
        "completion_tokens": 40,
        "prompt_tokens_details": {"cached_tokens": 30},
        "completion_tokens_details": {"reasoning_tokens": 12},
    }
    assert TokenMetrics.from_usage(completion_style) == TokenMetrics(100, 40, 30, 12)  # nosec B101 - asserts are appropriate in unit tests

    message_style = {
        "input_tokens": 50,
        "output_tokens": 9,
        "cache_read_input_tokens": 20,
        "cache_creation_input_tokens": 5,
    }
    metrics = TokenMetrics.from_usage(message_style)
    assert metrics.cached_tokens == 20  # nosec B101
    assert metrics.cache_creation_tokens == 5  # nosec B101
    assert metrics.total_tokens == 59  # nosec B101

    assert TokenMetrics.from_usage(None).is_empty()  # nosec B101
    assert TokenMetrics.from_usage({"prompt_tokens": "bad"}) == TokenMetrics()  # nosec B101
    assert TokenMetrics.from_usage(metrics) is metrics  # nosec B101
    assert metrics.replace(completion_tokens=1).completion_tokens == 1  # nosec B101
    assert metrics.to_dict()["prompt_tokens"] == 50  # nosec B101


def test_request_context_defaults():
    context = RequestContext(provider="openai")
    assert context.model == "unknown"  # nosec B101
    assert len(context.id) == 32  # nosec B101
    assert context.currency == "USD"  # nosec B101
    assert context.tags == [] and context.metadata == {}  # nosec B101
    assert context.failed is False  # nosec B101
    assert RequestContext(provider="openai").id != context.id  # nosec B101


def test_complete_applies_usage_and_status():
    context = RequestContext(provider="openai", model="gpt-4o")
    context.complete({"id": "x"}, {"prompt_tokens": 10, "completion_tokens": 4})
    assert context.http_status == 200  # nosec B101
    assert context.completed_at is not None  # nosec B101
    assert context.latency_ms is not None and context.latency_ms >= 0  # nosec B101
    assert context.usage() == TokenMetrics(10, 4)  # nosec B101
    assert context.tokens_per_second is None  # nosec B101


def test_reasoning_tokens_survive_usage_without_them():
    context = RequestContext(provider="anthropic")
    context.set_usage(TokenMetrics(prompt_tokens=5, completion_tokens=30, reasoning_tokens=20))
    context.set_usage({"input_tokens": 5, "output_tokens": 31})
    assert context.reasoning_tokens == 20  # nosec B101
    assert context.completion_tokens == 31  # nosec B101
    assert context.is_reasoning is True  # nosec B101


def test_streaming_throughput(fake_clock):
    context = RequestContext(provider="openai", is_streaming=True)
    fake_clock.advance(250)
    context.time_to_first_token_ms = context.elapsed_ms()
    fake_clock.advance(1000)
    context.complete(None, {"prompt_tokens": 3, "completion_tokens": 50})
    assert context.latency_ms == 1250  # nosec B101
    assert context.tokens_per_second == 50.0  # nosec B101


def test_fail_classifies_and_keeps_usage():
    context = RequestContext(provider="openai")
    context.set_usage({"prompt_tokens": 7})
    request = httpx.Request("POST", "https://api.openai.com/v1/responses")
    error = httpx.HTTPStatusError("bad", request=request, response=httpx.Response(400, request=request))
    context.fail(error)
    assert context.failed is True  # nosec B101
    assert context.error_type == "HTTPStatusError"  # nosec B101
    assert context.error_code == "validation"  # nosec B101
    assert context.http_status == 400  # nosec B101
    assert context.prompt_tokens == 7  # nosec B101

    explicit = RequestContext(provider="openai").fail(RuntimeError("upstream gone"), http_status=503)
    assert explicit.http_status == 503  # nosec B101
    assert explicit.error_code == "unknown"  # nosec B101


def test_enrichment_helpers():
    context = RequestContext(provider="openai")
    context.add_tag("a").add_tag("a").add_tag("").add_metadata("k", 1).for_trackable("Invoice", 9)
    context.with_pricing_tier(None).with_pricing_tier("flex")
    assert context.tags == ["a"]  # nosec B101
    assert context.metadata == {"k": 1}  # nosec B101
    assert (context.trackable_type, context.trackable_id) == ("Invoice", "9")  # nosec B101
    assert context.pricing_tier == "flex"  # nosec B101
    assert context.for_trackable(None).trackable_id is None  # nosec B101


def test_model_type_mapping():
    assert ModelType.from_pricing_type("text") is ModelType.TEXT  # nosec B101
    assert ModelType.from_pricing_type("audio") is None  # nosec B101
    assert ModelType.from_pricing_type("hologram") is None  # nosec B101
    assert ModelType.from_audio_slug("gpt-4o-mini-tts") is ModelType.TTS  # nosec B101
    assert ModelType.from_audio_slug("whisper-1") is ModelType.STT  # nosec B101
    assert ModelType.STT.label == "Speech-to-Text"  # nosec B101
    assert ModelType("video").value == "video"  # nosec B101
