"""Per-provider extraction through the shared response processor."""

from __future__ import annotations

import base64

import pytest

from crux_meter.anthropic.handlers import map_service_tier as anthropic_tier
from crux_meter.base.constants import STRIPPED
from crux_meter.base.models_parts.model_type import ModelType
from crux_meter.base.models_parts.request_context import RequestContext
from crux_meter.base.models_parts.token_metrics import TokenMetrics
from crux_meter.base.processing.response_processor import ResponseProcessor
from crux_meter.google.helpers import model_from_endpoint, usage_from_metadata
from crux_meter.openai.helpers import map_service_tier as openai_tier


@pytest.fixture()
def processor(registry, catalog, media_store) -> ResponseProcessor:
    return ResponseProcessor(
        registry, catalog, media_store=media_store, media_enabled=True, audio_duration=lambda raw: None
    )


def _run(processor, provider, endpoint, body, request_data=None, raw=None):
    context = RequestContext(provider=provider, endpoint=endpoint, request_data=dict(request_data or {}))
    context.raw_response_body = raw
    result = processor.process(context, body)
    return context, result


# ---- openai ---------------------------------------------------------------


@pytest.mark.parametrize(
    "value,expected",
    [("flex", "flex"), ("priority", "priority"), ("default", None), ("auto", None), (None, None), ("", None)],
)
def test_openai_service_tier_mapping(value, expected):
    assert openai_tier(value) == expected  # nosec B101 - asserts are appropriate in unit tests


def test_openai_transcription_duration_from_usage(processor):
    context, _ = _run(
        processor,
        "openai",
        "/v1/audio/transcriptions",
        {"text": "hello", "usage": {"type": "duration", "seconds": 42}},
        {"model": "whisper-1"},
    )
    assert context.model == "whisper-1"  # nosec B101
    assert context.model_type is ModelType.STT  # nosec B101
    assert context.duration_seconds == 42.0  # nosec B101


def test_openai_transcription_duration_from_verbose_body(processor):
    context, (_, usage) = _run(
        processor,
        "openai",
        "/v1/audio/translations",
        {"text": "hello", "duration": 12.5, "usage": {"type": "tokens", "input_tokens": 30, "output_tokens": 4}},
        {"model": "gpt-4o-transcribe"},
    )
    assert context.duration_seconds == 12.5  # nosec B101
    assert usage == TokenMetrics(prompt_tokens=30, completion_tokens=4)  # nosec B101


def test_openai_embedding_completion_tokens_are_the_remainder(processor):
    _, (_, usage) = _run(
        processor,
        "openai",
        "/v1/embeddings",
        {"object": "list", "data": [], "usage": {"prompt_tokens": 6, "total_tokens": 9}},
    )
    assert usage == TokenMetrics(prompt_tokens=6, completion_tokens=3)  # nosec B101


# ---- anthropic ------------------------------------------------------------


def test_anthropic_message_usage_and_tier(processor):
    body = {
        "id": "msg_1",
        "type": "message",
        "model": "claude-sonnet-4-5-20250929",
        "content": [{"type": "text", "text": "Hi"}],
        "stop_reason": "end_turn",
        "usage": {
            "input_tokens": 100,
            "output_tokens": 20,
            "cache_read_input_tokens": 40,
            "cache_creation_input_tokens": 10,
            "service_tier": "priority",
        },
    }
    context, (_, usage) = _run(processor, "anthropic", "/v1/messages", body)
    assert usage == TokenMetrics(  # nosec B101
        prompt_tokens=100, completion_tokens=20, cached_tokens=40, cache_creation_tokens=10
    )
    assert context.pricing_tier == "priority"  # nosec B101
    assert context.finish_reason == "end_turn"  # nosec B101
    assert context.response_id == "msg_1"  # nosec B101
    assert anthropic_tier("standard") is None  # nosec B101
    assert anthropic_tier("batch") == "batch"  # nosec B101


# ---- google ---------------------------------------------------------------


def test_google_model_from_endpoint_and_thinking_usage(processor):
    body = {
        "candidates": [{"content": {"parts": [{"text": "hi"}]}, "finishReason": "STOP"}],
        "usageMetadata": {"promptTokenCount": 10, "candidatesTokenCount": 5, "thoughtsTokenCount": 20},
        "responseId": "g-1",
    }
    context, (_, usage) = _run(processor, "google", "/v1beta/models/gemini-2.5-flash:generateContent", body)
    assert context.model == "gemini-2.5-flash"  # nosec B101
    assert usage == TokenMetrics(prompt_tokens=10, completion_tokens=25, reasoning_tokens=20)  # nosec B101
    assert context.reasoning_tokens == 20  # nosec B101
    assert context.is_reasoning is True  # nosec B101
    assert context.finish_reason == "STOP"  # nosec B101
    assert context.response_id == "g-1"  # nosec B101


def test_google_helpers():
    assert model_from_endpoint("/v1beta/models/gemini-2.0-flash:streamGenerateContent") == "gemini-2.0-flash"  # nosec B101
    assert model_from_endpoint("/v1beta/files") is None  # nosec B101
    assert usage_from_metadata(None) == TokenMetrics()  # nosec B101


def test_google_tts_is_stored_as_wav(processor, media_store):
    pcm = base64.b64encode(b"\x00\x01" * 8).decode("ascii")
    body = {
        "candidates": [
            {"content": {"parts": [{"inlineData": {"mimeType": "audio/L16;codec=pcm;rate=24000", "data": pcm}}]}}
        ],
        "usageMetadata": {"promptTokenCount": 6, "candidatesTokenCount": 40},
    }
    request = {"contents": [{"parts": [{"text": "Say hi"}]}]}
    context, (sanitized, _) = _run(
        processor, "google", "/v1beta/models/gemini-2.5-flash-preview-tts:generateContent", body, request
    )
    assert context.model_type is ModelType.TTS  # nosec B101
    assert context.input_characters == 6  # nosec B101
    assert context.media_storage_path == [f"mem://{context.id}/0.wav"]  # nosec B101
    assert media_store.stored[context.media_storage_path[0]].startswith(b"RIFF")  # nosec B101
    inline = sanitized["candidates"][0]["content"]["parts"][0]["inlineData"]
    assert inline["data"] == STRIPPED  # nosec B101


def test_google_video_operation(processor, media_store, monkeypatch):
    monkeypatch.delenv("GOOGLE_API_KEY", raising=False)
    endpoint = "/v1beta/models/veo-3.0-generate-001/operations/op-1"
    pending = {"name": "models/veo-3.0-generate-001/operations/op-1", "done": False}
    _, result = _run(processor, "google", endpoint, pending)
    assert result is None  # nosec B101

    uris = ["https://storage.test/a.mp4", "https://storage.test/b.mp4"]
    for uri in uris:
        media_store.downloads[uri] = (b"mp4", "video/mp4")
    done = {
        "name": "models/veo-3.0-generate-001/operations/op-1",
        "done": True,
        "response": {"generateVideoResponse": {"generatedSamples": [{"video": {"uri": u}} for u in uris]}},
    }
    context, (sanitized, _) = _run(processor, "google", endpoint, done, {"parameters": {"durationSeconds": 8}})
    assert context.model == "veo-3.0-generate-001"  # nosec B101
    assert context.video_count == 2  # nosec B101
    assert context.duration_seconds == 16.0  # nosec B101
    assert len(context.media_storage_path) == 2  # nosec B101
    assert [headers for _, headers in media_store.fetched] == [None, None]  # nosec B101
    assert sanitized["finish_reason"] == "COMPLETE"  # nosec B101


# ---- ollama ---------------------------------------------------------------


def test_ollama_chat(processor):
    body = {
        "model": "llama3.2",
        "message": {"role": "assistant", "content": "Hey"},
        "done": True,
        "done_reason": "stop",
        "prompt_eval_count": 26,
        "eval_count": 12,
    }
    context, (_, usage) = _run(processor, "ollama", "/api/chat", body)
    assert context.model == "llama3.2"  # nosec B101
    assert usage == TokenMetrics(prompt_tokens=26, completion_tokens=12)  # nosec B101
    assert context.finish_reason == "stop"  # nosec B101


def test_ollama_embeddings_are_stripped(processor):
    body = {"model": "nomic-embed-text", "embeddings": [[0.1, 0.2], [0.3, 0.4]], "prompt_eval_count": 4}
    context, (sanitized, usage) = _run(processor, "ollama", "/api/embed", body)
    assert context.model_type is ModelType.EMBEDDING  # nosec B101
    assert usage.prompt_tokens == 4  # nosec B101
    assert sanitized["embeddings"] == [STRIPPED, STRIPPED]  # nosec B101


# ---- openai-compatible ----------------------------------------------------


def test_groq_ignores_service_tier(processor):
    body = {
        "object": "chat.completion",
        "model": "llama-3.3-70b-versatile",
        "service_tier": "on_demand",
        "choices": [{"finish_reason": "stop", "message": {"content": "ok"}}],
        "usage": {"prompt_tokens": 11, "completion_tokens": 2},
    }
    context, (_, usage) = _run(processor, "groq", "/openai/v1/chat/completions", body)
    assert context.pricing_tier is None  # nosec B101
    assert usage == TokenMetrics(prompt_tokens=11, completion_tokens=2)  # nosec B101


def test_mistral_fim_completion(processor):
    body = {
        "object": "fim.completion",
        "model": "codestral-latest",
        "choices": [{"finish_reason": "stop", "message": {"content": "return x"}}],
        "usage": {"prompt_tokens": 20, "completion_tokens": 3},
    }
    context, (_, usage) = _run(processor, "mistral", "/v1/fim/completions", body)
    assert context.model == "codestral-latest"  # nosec B101
    assert context.model_type is ModelType.TEXT  # nosec B101
    assert usage.completion_tokens == 3  # nosec B101


def test_xai_video_job(processor, media_store):
    _, pending = _run(processor, "xai", "/v1/videos/req-1", {"status": "pending"})
    assert pending is None  # nosec B101

    media_store.downloads["https://vidgen.test/v.mp4"] = (b"mp4", "video/mp4")
    body = {"status": "done", "model": "grok-imagine-video", "video": {"url": "https://vidgen.test/v.mp4", "duration": 6}}
    context, _ = _run(processor, "xai", "/v1/videos/req-1", body)
    assert context.model == "grok-imagine-video"  # nosec B101
    assert context.video_count == 1  # nosec B101
    assert context.duration_seconds == 6.0  # nosec B101
    assert context.media_storage_path == [f"mem://{context.id}/0.mp4"]  # nosec B101


def test_openrouter_image_data_urls(processor, media_store):
    body = {
        "id": "gen-1",
        "model": "google/gemini-2.5-flash-image",
        "choices": [
            {
                "finish_reason": "stop",
                "message": {
                    "content": "Here you go",
                    "images": [{"type": "image_url", "image_url": {"url": "data:image/jpeg;base64,aGVsbG8="}}],
                },
            }
        ],
        "usage": {"prompt_tokens": 12, "completion_tokens": 1290},
    }
    context, _ = _run(processor, "openrouter", "/api/v1/chat/completions", body)
    assert context.model_type is ModelType.IMAGE  # nosec B101
    assert context.image_count == 1  # nosec B101
    assert context.media_storage_path == [f"mem://{context.id}/0.jpg"]  # nosec B101
    assert media_store.stored[context.media_storage_path[0]] == b"hello"  # nosec B101


def test_openrouter_plain_chat(processor):
    body = {
        "id": "gen-2",
        "model": "anthropic/claude-sonnet-4.5",
        "choices": [{"finish_reason": "stop", "message": {"content": "Hi"}}],
        "usage": {"prompt_tokens": 5, "completion_tokens": 1},
    }
    context, _ = _run(processor, "openrouter", "/api/v1/chat/completions", body)
    assert context.model_type is ModelType.TEXT  # nosec B101
    assert context.media_storage_path is None  # nosec B101


# ---- cohere ---------------------------------------------------------------


def test_cohere_chat_prefers_billed_units(processor):
    body = {
        "id": "co-1",
        "message": {"role": "assistant", "content": [{"type": "text", "text": "Salut"}]},
        "finish_reason": "COMPLETE",
        "usage": {
            "billed_units": {"input_tokens": 5, "output_tokens": 2},
            "tokens": {"input_tokens": 70, "output_tokens": 2},
        },
    }
    context, (_, usage) = _run(processor, "cohere", "/v2/chat", body, {"model": "command-r-plus"})
    assert context.model == "command-r-plus"  # nosec B101
    assert usage == TokenMetrics(prompt_tokens=5, completion_tokens=2)  # nosec B101
    assert context.finish_reason == "COMPLETE"  # nosec B101


def test_cohere_rerank_counts_search_units(processor):
    body = {"id": "rr-1", "results": [{"index": 0, "relevance_score": 0.9}], "meta": {"billed_units": {"search_units": 1}}}
    context, _ = _run(processor, "cohere", "/v2/rerank", body, {"model": "rerank-v3.5"})
    assert context.model == "rerank-v3.5"  # nosec B101
    assert context.search_count == 1  # nosec B101


# ---- elevenlabs -----------------------------------------------------------


def test_elevenlabs_binary_speech(processor, media_store):
    request = {"text": "Hello", "model_id": "eleven_multilingual_v2", "output_format": "pcm_16000"}
    context, (_, usage) = _run(
        processor, "elevenlabs", "/v1/text-to-speech/voice123", {}, request, raw=b"\x00\x00\x01\x01"
    )
    assert context.model == "eleven_multilingual_v2"  # nosec B101
    assert context.input_characters == 5  # nosec B101
    assert context.model_type is ModelType.TTS  # nosec B101
    assert context.media_storage_path == [f"mem://{context.id}/0.pcm"]  # nosec B101
    assert usage.is_empty()  # nosec B101


# ---- replicate --------------------------------------------------------------

_PREDICTIONS = "/v1/models/stability-ai/sdxl/predictions"


def _prediction(output, status="succeeded", **extra):
    body = {
        "id": "pred-1",
        "model": "stability-ai/sdxl",
        "status": status,
        "output": output,
        "urls": {"get": "https://api.replicate.com/v1/predictions/pred-1"},
    }
    body.update(extra)
    return body


def test_replicate_handlers_share_one_endpoint(registry):
    provider = registry.provider("replicate")
    assert [h.name for h in provider.handlers_for(_PREDICTIONS)] == [  # nosec B101
        "ImageHandler",
        "TextHandler",
        "VideoHandler",
    ]
    assert registry.resolve("replicate", _PREDICTIONS).name == "ImageHandler"  # nosec B101
    assert registry.resolve("replicate", "/v1/something-else") is None  # nosec B101
    assert registry.detect_provider("https://api.replicate.com/v1/models") == "replicate"  # nosec B101


@pytest.mark.parametrize(
    "output,expected",
    [
        (["https://replicate.delivery/a.png", "https://replicate.delivery/b.png"], "ImageHandler"),
        (["Hello", " world"], "TextHandler"),
        ("A plain answer", "TextHandler"),
        ("https://replicate.delivery/clip.mp4", "VideoHandler"),
    ],
)
def test_replicate_output_shape_picks_the_handler(registry, output, expected):
    assert registry.resolve("replicate", _PREDICTIONS, _prediction(output)).name == expected  # nosec B101


def test_replicate_image_prediction(processor, media_store):
    urls = ["https://replicate.delivery/output1.png", "https://replicate.delivery/output2.png"]
    for url in urls:
        media_store.downloads[url] = (b"png", "image/png")
    context, _ = _run(processor, "replicate", _PREDICTIONS, _prediction(urls), {"input": {"prompt": "a fox"}})
    assert context.model == "stability-ai/sdxl"  # nosec B101
    assert context.model_type is ModelType.IMAGE  # nosec B101
    assert context.image_count == 2  # nosec B101
    assert context.finish_reason == "succeeded"  # nosec B101
    assert context.media_storage_path == [f"mem://{context.id}/0.png", f"mem://{context.id}/1.png"]  # nosec B101


def test_replicate_text_prediction_tokens(processor):
    body = _prediction(["Hi", " there"], model="deepseek-ai/deepseek-r1",
                       metrics={"input_token_count": 12, "output_token_count": 2, "predict_time": 0.4})
    context, (_, usage) = _run(processor, "replicate", "/v1/models/deepseek-ai/deepseek-r1/predictions", body)
    assert context.model_type is ModelType.TEXT  # nosec B101
    assert usage == TokenMetrics(prompt_tokens=12, completion_tokens=2)  # nosec B101


def test_replicate_video_prediction(processor, media_store):
    url = "https://replicate.delivery/clip.mp4"
    media_store.downloads[url] = (b"mp4", "video/mp4")
    body = _prediction(url, model="wavespeedai/wan-2.1-i2v-480p")
    context, _ = _run(
        processor, "replicate", "/v1/models/wavespeedai/wan-2.1-i2v-480p/predictions", body, {"input": {"duration": 5}}
    )
    assert context.model_type is ModelType.VIDEO  # nosec B101
    assert context.video_count == 1  # nosec B101
    assert context.duration_seconds == 5.0  # nosec B101
    assert context.media_storage_path == [f"mem://{context.id}/0.mp4"]  # nosec B101


@pytest.mark.parametrize("status", ["starting", "processing"])
def test_replicate_pending_prediction_is_skipped(processor, status):
    _, result = _run(processor, "replicate", _PREDICTIONS, _prediction(None, status=status))
    assert result is None  # nosec B101


def test_replicate_model_from_endpoint(registry):
    provider = registry.provider("replicate")
    assert provider.extract_model_from_request({}, _PREDICTIONS) == "stability-ai/sdxl"  # nosec B101
    assert provider.extract_model_from_request({"model": "x/y"}, "/v1/predictions") == "x/y"  # nosec B101


def test_replicate_image_is_priced_per_image(meter, memory_sink):
    urls = ["https://replicate.delivery/a.png", "https://replicate.delivery/b.png"]
    meter.track("replicate", None, lambda ctx: _prediction(urls), endpoint=_PREDICTIONS)
    record = memory_sink.last()
    assert record["model"] == "SDXL"  # nosec B101
    assert record["image_count"] == 2  # nosec B101
    assert record["total_cost_in_cents"] == pytest.approx(0.82)  # nosec B101


# ---- fal.ai -------------------------------------------------------------------


@pytest.mark.parametrize(
    "endpoint,trackable",
    [
        ("/fal-ai/fast-sdxl", True),
        ("/fal-ai/flux/dev", True),
        ("/fal-ai/recraft/v3/text-to-image", True),
        ("/", False),
        ("/fal-ai", False),
        ("/fal-ai/flux/dev/requests/abc/status", False),
    ],
)
def test_falai_endpoints_are_two_to_four_segments(registry, endpoint, trackable):
    assert registry.is_trackable_endpoint("falai", endpoint) is trackable  # nosec B101


def test_falai_sync_image(processor, media_store):
    url = "https://v3.fal.media/files/x/image.jpeg"
    media_store.downloads[url] = (b"jpg", "image/jpeg")
    body = {"images": [{"url": url, "content_type": "image/jpeg", "width": 1024, "height": 768}], "seed": 7}
    context, _ = _run(processor, "falai", "/fal-ai/recraft/v3/text-to-image", body, {"prompt": "a fox"})
    assert context.model == "fal-ai/recraft/v3/text-to-image"  # nosec B101
    assert context.model_type is ModelType.IMAGE  # nosec B101
    assert context.image_count == 1  # nosec B101
    assert context.media_storage_path == [f"mem://{context.id}/0.jpg"]  # nosec B101


def test_falai_queue_payload_and_submission(processor, registry):
    _, queued = _run(processor, "falai", "/fal-ai/flux-pro/kontext", {"status": "IN_QUEUE", "request_id": "r1"})
    assert queued is None  # nosec B101

    body = {"status": "COMPLETED", "payload": {"images": [{"url": "https://v3.fal.media/a.png"}, {"url": None}]}}
    context, _ = _run(processor, "falai", "/fal-ai/flux-pro/requests/r1", body)
    assert context.model == "fal-ai/flux-pro"  # nosec B101
    assert context.image_count == 2  # nosec B101
    assert context.finish_reason == "COMPLETED"  # nosec B101
    assert registry.provider("falai").extract_model_from_request({}, "/fal-ai/flux/dev") == "fal-ai/flux/dev"  # nosec B101
    assert registry.detect_provider("queue.fal.run") == "falai"  # nosec B101
