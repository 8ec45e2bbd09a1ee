from __future__ import annotations

import base64
import wave
import io

import httpx

from crux_meter.base.media import (
    LocalMediaStore,
    MediaStore,
    audio_extension,
    decode_base64,
    extract_audio_duration,
    image_extension,
    pcm_to_wav,
    store_base64,
    store_download,
    store_url,
)


def _store(tmp_path, handler) -> LocalMediaStore:
    return LocalMediaStore(tmp_path, client=httpx.Client(transport=httpx.MockTransport(handler)))


def test_local_store_writes_request_scoped_paths(tmp_path):
    store = LocalMediaStore(tmp_path)
    path = store.store("req-1", 0, b"\x89PNG", "png")

    assert path == str(tmp_path / "req-1" / "0.png")  # nosec B101 - asserts are appropriate in unit tests
    assert (tmp_path / "req-1" / "0.png").read_bytes() == b"\x89PNG"  # nosec B101
    assert isinstance(store, MediaStore)  # nosec B101


def test_fetch_returns_body_and_content_type(tmp_path):
    seen = {}

    def handler(request):
        seen["auth"] = request.headers.get("authorization")
        return httpx.Response(200, headers={"content-type": "image/webp"}, content=b"RIFFWEBP")

    store = _store(tmp_path, handler)
    assert store.fetch("https://cdn.example.com/a", {"Authorization": "Bearer k"}) == (b"RIFFWEBP", "image/webp")  # nosec B101
    assert seen["auth"] == "Bearer k"  # nosec B101
    store.close()


def test_fetch_failures_return_none(tmp_path, log_capture):
    def not_found(request):
        return httpx.Response(404)

    def broken(request):
        raise httpx.ConnectError("refused", request=request)

    assert _store(tmp_path, not_found).fetch("https://cdn.example.com/gone") is None  # nosec B101
    assert _store(tmp_path, broken).fetch("https://cdn.example.com/down") is None  # nosec B101
    assert len([r for r in log_capture if "meter.media.store_failed" in r.getMessage()]) == 2  # nosec B101


def test_store_url_infers_extension_from_response(tmp_path):
    def handler(request):
        return httpx.Response(200, headers={"content-type": "image/jpeg; charset=binary"}, content=b"\xff\xd8")

    store = _store(tmp_path, handler)
    path = store_url(store, "req-2", 3, "https://cdn.example.com/render")
    assert path.endswith("3.jpg")  # nosec B101
    assert store_url(store, "req-2", 4, None) is None  # nosec B101


def test_store_download_skips_empty_bodies(tmp_path):
    def handler(request):
        return httpx.Response(200, content=b"")

    store = _store(tmp_path, handler)
    assert store_download(store, "req-3", 0, "https://cdn.example.com/v.mp4", "mp4") is None  # nosec B101


def test_store_base64_rejects_invalid_payloads(tmp_path):
    store = LocalMediaStore(tmp_path)
    encoded = base64.b64encode(b"image-bytes").decode()
    assert store_base64(store, "req-4", 0, encoded, "png").endswith("0.png")  # nosec B101
    assert store_base64(store, "req-4", 1, "not base64!!", "png") is None  # nosec B101
    assert decode_base64("") is None  # nosec B101
    assert decode_base64(42) is None  # nosec B101


def test_extension_helpers():
    assert image_extension("https://x/y/photo.JPEG", None) == "jpg"  # nosec B101
    assert image_extension("https://x/y/photo", "image/gif") == "gif"  # nosec B101
    assert image_extension(None, None, default="webp") == "webp"  # nosec B101
    assert audio_extension("audio/ogg") == "ogg"  # nosec B101
    assert audio_extension(None, "pcm") == "wav"  # nosec B101
    assert audio_extension("application/octet-stream") == "mp3"  # nosec B101


def test_pcm_is_wrapped_in_a_wav_container():
    pcm = b"\x00\x00" * 2400
    data = pcm_to_wav(pcm)
    assert data.startswith(b"RIFF")  # nosec B101
    with wave.open(io.BytesIO(data), "rb") as wav:
        assert wav.getframerate() == 24000  # nosec B101
        assert wav.getnframes() == 2400  # nosec B101


def test_audio_duration_never_raises():
    assert extract_audio_duration(None) is None  # nosec B101
    assert extract_audio_duration(b"junk") is None  # nosec B101
