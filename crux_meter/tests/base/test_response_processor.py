"""Response processor: extraction steps, idempotence and graceful degradation."""

from __future__ import annotations

import json
from datetime import datetime

import pytest

from crux_meter.base.constants import STRIPPED, UNKNOWN_MODEL
from crux_meter.base.factory import build_registry
from crux_meter.base.handlers.capabilities import HandlerCapabilities
from crux_meter.base.handlers.handler import ProviderHandler
from crux_meter.base.handlers.provider import Provider
from crux_meter.base.handlers.registry import HandlerRegistry
from crux_meter.base.models_parts.model_type import ModelType
from crux_meter.base.models_parts.request_context import RequestContext
from crux_meter.base.models_parts.token_metrics import TokenMetrics
from crux_meter.base.processing.response_processor import ResponseProcessor, usage_fallback


@pytest.fixture()
def processor(registry, catalog, media_store) -> ResponseProcessor:
    return ResponseProcessor(registry, catalog, media_store=media_store, media_enabled=True)


def _events(records):
    found = []
    for record in records:
        try:
            found.append(json.loads(record.getMessage())["event"])
        except (ValueError, KeyError):
            continue
    return found


def test_tool_calls_are_counted_per_type(processor):
    context = RequestContext(provider="openai", model="gpt-5", endpoint="/v1/responses")
    body = {
        "object": "response",
        "id": "resp_1",
        "output": [
            {"type": "function_call", "name": "lookup"},
            {"type": "web_search_call"},
            {"type": "function_call", "name": "lookup"},
            {"type": "web_search_call"},
            {"type": "code_interpreter_call"},
            {"type": "web_search_call"},
            {"type": "message", "content": [{"type": "output_text", "text": "done"}]},
        ],
        "usage": {"input_tokens": 100, "output_tokens": 20},
    }
    processor.process(context, body)
    assert context.tool_call_counts == {  # nosec B101 - asserts are appropriate in unit tests
        "function_call": 2,
        "web_search_call": 3,
        "code_interpreter_call": 1,
    }
    assert context.has_tool_calls is True  # nosec B101
    assert context.response_id == "resp_1"  # nosec B101


def test_second_pass_on_processed_context_has_no_side_effects(processor, media_store):
    context = RequestContext(provider="openai", model="gpt-5", endpoint="/v1/responses")
    body = {
        "object": "response",
        "output": [
            {"type": "image_generation_call", "result": "aGVsbG8="},
            {"type": "web_search_call"},
        ],
        "usage": {"input_tokens": 40, "output_tokens": 12},
    }
    _, first_usage = processor.process(context, body)
    stored_after_first = dict(media_store.stored)
    counts_after_first = dict(context.tool_call_counts)

    _, second_usage = processor.process(context, body)

    assert second_usage == first_usage == TokenMetrics(prompt_tokens=40, completion_tokens=12)  # nosec B101
    assert context.tool_call_counts == counts_after_first  # nosec B101
    assert media_store.stored == stored_after_first  # nosec B101
    assert len(media_store.stored) == 1  # nosec B101
    assert context.image_count == 1  # nosec B101


def test_pending_async_job_is_skipped(processor):
    context = RequestContext(provider="openai", endpoint="/v1/videos/video_1")
    result = processor.process(context, {"id": "video_1", "status": "in_progress", "model": "sora-2"})
    assert result is None  # nosec B101
    assert context.processed is False  # nosec B101


def test_completed_video_job(processor, media_store, monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-live-123")
    url = "https://api.openai.com/v1/videos/video_1/content"
    media_store.downloads[url] = (b"\x00\x00mp4", "video/mp4")
    context = RequestContext(provider="openai", endpoint="/v1/videos/video_1")
    body = {
        "id": "video_1",
        "object": "video",
        "status": "completed",
        "model": "sora-2",
        "seconds": "8",
        "prompt": "a cat surfing",
        "expires_at": 1760000000,
    }
    sanitized, _ = processor.process(context, body)
    assert context.model == "sora-2"  # nosec B101
    assert context.model_type is ModelType.VIDEO  # nosec B101
    assert context.video_count == 1  # nosec B101
    assert context.duration_seconds == 8.0  # nosec B101
    assert isinstance(context.expires_at, datetime)  # nosec B101
    assert context.media_storage_path == [f"mem://{context.id}/0.mp4"]  # nosec B101
    assert media_store.fetched == [(url, {"Authorization": "Bearer sk-live-123"})]  # nosec B101
    assert sanitized["finish_reason"] is None  # nosec B101


def test_video_download_needs_an_api_key(processor, media_store, monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    context = RequestContext(provider="openai", endpoint="/v1/videos/video_1")
    processor.process(context, {"id": "video_1", "status": "completed", "model": "sora-2"})
    assert context.media_storage_path is None  # nosec B101
    assert media_store.fetched == []  # nosec B101


def test_declared_model_becomes_snapshot(processor):
    context = RequestContext(provider="openai", model="gpt-4o", endpoint="/v1/chat/completions")
    processor.process(context, {"object": "chat.completion", "model": "gpt-4o-2024-08-06", "choices": []})
    assert context.model == "gpt-4o"  # nosec B101
    assert context.snapshot == "gpt-4o-2024-08-06"  # nosec B101

    unknown = RequestContext(provider="openai", endpoint="/v1/chat/completions")
    processor.process(unknown, {"object": "chat.completion", "model": "gpt-4o-2024-08-06", "choices": []})
    assert unknown.model == "gpt-4o-2024-08-06"  # nosec B101
    assert unknown.snapshot is None  # nosec B101


def test_binary_speech_response(registry, catalog, media_store):
    processor = ResponseProcessor(
        registry, catalog, media_store=media_store, media_enabled=True, audio_duration=lambda raw: 3.5
    )
    context = RequestContext(
        provider="openai",
        endpoint="/v1/audio/speech",
        request_data={"model": "tts-1", "input": "Hello there", "voice": "alloy", "response_format": "opus"},
    )
    context.raw_response_body = b"OggS-fake-audio"
    sanitized, usage = processor.process(context, {})
    assert context.model == "tts-1"  # nosec B101
    assert context.model_type is ModelType.TTS  # nosec B101
    assert context.input_characters == 11  # nosec B101
    assert context.duration_seconds == 3.5  # nosec B101
    assert context.media_storage_path == [f"mem://{context.id}/0.opus"]  # nosec B101
    assert media_store.stored[context.media_storage_path[0]] == b"OggS-fake-audio"  # nosec B101
    assert context.raw_response_body is None  # nosec B101
    assert usage.is_empty()  # nosec B101
    assert "_request_data" not in sanitized  # nosec B101


def test_image_generation_media_and_stripping(processor, media_store):
    media_store.downloads["https://cdn.test/img.webp"] = (b"webp-bytes", "image/webp")
    context = RequestContext(
        provider="openai",
        endpoint="/v1/images/generations",
        request_data={"model": "dall-e-3", "prompt": "a lighthouse"},
    )
    body = {"created": 1, "data": [{"b64_json": "aGVsbG8="}, {"url": "https://cdn.test/img.webp"}]}
    sanitized, _ = processor.process(context, body)
    assert context.model == "dall-e-3"  # nosec B101
    assert context.image_count == 2  # nosec B101
    assert context.media_storage_path == [f"mem://{context.id}/0.png", f"mem://{context.id}/1.webp"]  # nosec B101
    assert media_store.stored[f"mem://{context.id}/0.png"] == b"hello"  # nosec B101
    assert sanitized["data"][0]["b64_json"] == STRIPPED  # nosec B101
    assert body["data"][0]["b64_json"] == "aGVsbG8="  # nosec B101


def test_media_disabled_stores_nothing(registry, catalog, media_store):
    processor = ResponseProcessor(registry, catalog, media_store=media_store, media_enabled=False)
    context = RequestContext(provider="openai", endpoint="/v1/images/generations")
    processor.process(context, {"data": [{"b64_json": "aGVsbG8="}]})
    assert media_store.stored == {}  # nosec B101
    assert context.media_storage_path is None  # nosec B101
    assert context.image_count == 1  # nosec B101


def test_media_store_failure_is_logged_not_raised(registry, catalog, log_capture):
    class _FailingStore:
        def store(self, request_id, index, content, extension):
            raise OSError("disk full")

        def fetch(self, url, headers=None):
            return None

    processor = ResponseProcessor(registry, catalog, media_store=_FailingStore(), media_enabled=True)
    context = RequestContext(provider="openai", endpoint="/v1/images/generations")
    result = processor.process(context, {"data": [{"b64_json": "aGVsbG8="}]})
    assert result is not None  # nosec B101
    assert context.media_storage_path is None  # nosec B101
    assert "meter.media.store_failed" in _events(log_capture)  # nosec B101


def test_embeddings_are_stripped_unless_kept(registry, catalog):
    body = {
        "object": "list",
        "data": [{"object": "embedding", "embedding": [0.1, 0.2, 0.3]}],
        "model": "text-embedding-3-small",
        "usage": {"prompt_tokens": 8, "total_tokens": 8},
    }
    stripping = ResponseProcessor(registry, catalog)
    context = RequestContext(provider="openai", endpoint="/v1/embeddings")
    sanitized, usage = stripping.process(context, body)
    assert sanitized["data"][0]["embedding"] == STRIPPED  # nosec B101
    assert usage == TokenMetrics(prompt_tokens=8)  # nosec B101
    assert context.model_type is ModelType.EMBEDDING  # nosec B101

    keeping = ResponseProcessor(registry, catalog, store_embeddings=True)
    sanitized, _ = keeping.process(RequestContext(provider="openai", endpoint="/v1/embeddings"), body)
    assert sanitized["data"][0]["embedding"] == [0.1, 0.2, 0.3]  # nosec B101


def test_pricing_tier_from_response(processor):
    context = RequestContext(provider="openai", model="gpt-5", endpoint="/v1/chat/completions")
    processor.process(context, {"object": "chat.completion", "service_tier": "flex", "choices": []})
    assert context.pricing_tier == "flex"  # nosec B101

    preset = RequestContext(provider="openai", model="gpt-5", endpoint="/v1/chat/completions")
    preset.with_pricing_tier("batch")
    processor.process(preset, {"object": "chat.completion", "service_tier": "flex", "choices": []})
    assert preset.pricing_tier == "batch"  # nosec B101

    account = RequestContext(provider="openai", model="gpt-5", endpoint="/v1/chat/completions")
    processor.process(account, {"object": "chat.completion", "service_tier": "default", "choices": []})
    assert account.pricing_tier is None  # nosec B101


def test_completion_tool_calls_and_finish_reason(processor):
    context = RequestContext(provider="openai", model="gpt-4o", endpoint="/v1/chat/completions")
    body = {
        "object": "chat.completion",
        "choices": [
            {
                "finish_reason": "tool_calls",
                "message": {"tool_calls": [{"type": "function"}, {"id": "call_2"}]},
            }
        ],
        "usage": {"prompt_tokens": 30, "completion_tokens": 9},
    }
    sanitized, usage = processor.process(context, body)
    assert context.tool_call_counts == {"function": 2}  # nosec B101
    assert context.finish_reason == "tool_calls"  # nosec B101
    assert sanitized["finish_reason"] == "tool_calls"  # nosec B101
    assert usage == TokenMetrics(prompt_tokens=30, completion_tokens=9)  # nosec B101


def test_tool_finish_reason_without_items(processor):
    context = RequestContext(provider="anthropic", model="claude-sonnet-4-5-20250929", endpoint="/v1/messages")
    processor.process(context, {"type": "message", "content": [], "stop_reason": "tool_use"})
    assert context.has_tool_calls is True  # nosec B101
    assert context.tool_call_counts == {}  # nosec B101


def test_reasoning_signals(processor):
    effort = RequestContext(
        provider="openai",
        model="o3",
        endpoint="/v1/chat/completions",
        request_data={"model": "o3", "reasoning_effort": "high"},
    )
    processor.process(
        effort,
        {
            "object": "chat.completion",
            "choices": [],
            "usage": {
                "prompt_tokens": 10,
                "completion_tokens": 100,
                "completion_tokens_details": {"reasoning_tokens": 64},
            },
        },
    )
    assert effort.reasoning_effort == "high"  # nosec B101
    assert effort.reasoning_tokens == 64  # nosec B101
    assert effort.is_reasoning is True  # nosec B101

    thinking = RequestContext(provider="anthropic", model="claude-sonnet-4-5-20250929", endpoint="/v1/messages")
    processor.process(
        thinking,
        {"type": "message", "content": [{"type": "thinking", "thinking": "..."}], "stop_reason": "end_turn"},
    )
    assert thinking.reasoning_effort is None  # nosec B101
    assert thinking.is_reasoning is True  # nosec B101


def test_unknown_provider_uses_generic_extraction(processor):
    context = RequestContext(provider="acme")
    body = {"model": "acme-1", "usage": {"input_tokens": 5, "output_tokens": 7}, "finish_reason": "stop"}
    sanitized, usage = processor.process(context, body)
    assert usage == TokenMetrics(prompt_tokens=5, completion_tokens=7)  # nosec B101
    assert context.model == "acme-1"  # nosec B101
    assert context.model_type is None  # nosec B101
    assert sanitized["finish_reason"] == "stop"  # nosec B101


def test_model_type_from_catalog_when_provider_is_not_registered(catalog):
    processor = ResponseProcessor(build_registry(["anthropic"]), catalog)
    context = RequestContext(provider="openai", model="whisper-1")
    processor.process(context, {"text": "hello"})
    assert context.model_type is ModelType.STT  # nosec B101


def test_malformed_body_degrades_to_empty(processor):
    context = RequestContext(provider="openai", model="gpt-4o", endpoint="/v1/chat/completions")
    sanitized, usage = processor.process_response(context, "{not json")
    assert usage.is_empty()  # nosec B101
    assert sanitized == {"finish_reason": None}  # nosec B101
    assert context.model == "gpt-4o"  # nosec B101

    parsed = RequestContext(provider="openai", model="gpt-4o", endpoint="/v1/chat/completions")
    _, usage = processor.process_response(parsed, b'{"object": "chat.completion", "usage": {"prompt_tokens": 2}}')
    assert usage.prompt_tokens == 2  # nosec B101


def test_failing_handler_hooks_are_guarded():
    class _Exploding(ProviderHandler):
        endpoints = ("/v1/boom",)
        model_type = ModelType.TEXT
        capabilities = HandlerCapabilities(skips_response=True)

        def should_skip_response(self, body):
            raise RuntimeError("bad skip check")

        def extract_metrics(self, request_data, body):
            raise ValueError("bad metrics")

        def extract_finish_reason(self, body):
            raise TypeError("bad finish")

    class _Boom(Provider):
        name = "boom"

        def build_handlers(self):
            return [_Exploding()]

    processor = ResponseProcessor(HandlerRegistry([_Boom()]))
    context = RequestContext(provider="boom", model="m", endpoint="/v1/boom")
    sanitized, usage = processor.process(context, {"usage": {"prompt_tokens": 4, "completion_tokens": 1}})
    assert usage == TokenMetrics(prompt_tokens=4, completion_tokens=1)  # nosec B101
    assert context.model_type is ModelType.TEXT  # nosec B101
    assert context.processed is True  # nosec B101


def test_usage_fallback_reads_both_naming_styles():
    assert usage_fallback({"usage": {"prompt_tokens": 3, "completion_tokens": 4}}) == TokenMetrics(3, 4)  # nosec B101
    message_style = {"usage": {"input_tokens": 1, "output_tokens": 2, "cache_read_input_tokens": 1}}
    assert usage_fallback(message_style) == TokenMetrics(1, 2, 1)  # nosec B101
    assert usage_fallback({"usage": "n/a"}) == TokenMetrics()  # nosec B101
    assert usage_fallback(None) == TokenMetrics()  # nosec B101


def test_unknown_model_stays_unknown_without_any_hint(processor):
    context = RequestContext(provider="openai", endpoint="/v1/chat/completions")
    processor.process(context, {"object": "chat.completion", "choices": []})
    assert context.model == UNKNOWN_MODEL  # nosec B101
