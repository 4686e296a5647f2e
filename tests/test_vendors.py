import pytest

from deepguard import config
from deepguard.errors import RateLimitError, VendorError
from deepguard.vendors import describe_vendor_error, resemble, sightengine
from tests.conftest import FakeResponse


@pytest.fixture
def image_file(tmp_path, png_bytes):
    path = tmp_path / "face.png"
    path.write_bytes(png_bytes)
    return path


@pytest.fixture
def audio_file(tmp_path, wav_bytes):
    path = tmp_path / "voice.wav"
    path.write_bytes(wav_bytes)
    return path


def test_check_image_posts_multipart(monkeypatch, image_file):
    calls = {}

    def fake_post(url, data=None, files=None, timeout=None):
        calls.update(url=url, data=data, files=files, timeout=timeout)
        return FakeResponse(200, {"status": "success", "type": {"deepfake": 0.91}})

    monkeypatch.setattr(sightengine.requests, "post", fake_post)
    data = sightengine.check_image(str(image_file), "user", "secret")

    assert calls["url"] == config.SIGHTENGINE_IMAGE_ENDPOINT
    assert calls["data"] == {"api_user": "user", "api_secret": "secret", "models": "deepfake"}
    assert calls["files"]["media"][0] == "face.png"
    assert calls["files"]["media"][2] == "image/png"
    assert calls["timeout"] == config.IMAGE_TIMEOUT
    assert sightengine.image_score(data) == 0.91


def test_check_video_uses_sync_endpoint(monkeypatch, tmp_path, video_bytes):
    path = tmp_path / "clip.mp4"
    path.write_bytes(video_bytes)
    calls = {}

    def fake_post(url, data=None, files=None, timeout=None):
        calls.update(url=url, timeout=timeout)
        return FakeResponse(200, {"status": "success", "data": {"frames": []}})

    monkeypatch.setattr(sightengine.requests, "post", fake_post)
    sightengine.check_video(str(path), "user", "secret")

    assert calls["url"] == config.SIGHTENGINE_VIDEO_ENDPOINT
    assert calls["timeout"] == config.VIDEO_TIMEOUT


def test_sightengine_rate_limit(monkeypatch, image_file):
    monkeypatch.setattr(
        sightengine.requests, "post",
        lambda *args, **kwargs: FakeResponse(429, {"status": "failure"}, headers={"retry-after": "30"}),
    )
    with pytest.raises(RateLimitError) as excinfo:
        sightengine.check_image(str(image_file), "user", "secret")
    assert excinfo.value.status_code == 429
    assert "wait 30 seconds" in excinfo.value.message


def test_sightengine_http_error_carries_status(monkeypatch, image_file):
    monkeypatch.setattr(
        sightengine.requests, "post",
        lambda *args, **kwargs: FakeResponse(401, {"status": "failure", "error": {"message": "bad key"}}),
    )
    with pytest.raises(VendorError) as excinfo:
        sightengine.check_image(str(image_file), "user", "secret")
    assert excinfo.value.status_code == 401
    assert describe_vendor_error(excinfo.value) == "Authentication failed - check API credentials"


def test_sightengine_failure_status(monkeypatch, image_file):
    monkeypatch.setattr(
        sightengine.requests, "post",
        lambda *args, **kwargs: FakeResponse(200, {"status": "failure", "error": {"message": "media unreadable"}}),
    )
    with pytest.raises(VendorError, match="media unreadable"):
        sightengine.check_image(str(image_file), "user", "secret")


def test_sightengine_empty_file(tmp_path):
    path = tmp_path / "empty.png"
    path.write_bytes(b"")
    with pytest.raises(VendorError, match="empty"):
        sightengine.check_image(str(path), "user", "secret")


def test_image_score_prefers_deepfake_prob():
    assert sightengine.image_score({"deepfake": {"prob": 0.33}, "type": {"deepfake": 0.9}}) == 0.33
    assert sightengine.image_score({"type": {"deepfake": 0.9}}) == 0.9
    assert sightengine.image_score({}) == 0.0


def test_video_scores_takes_worst_frame_or_summary():
    data = {
        "data": {"frames": [
            {"type": {"deepfake": 0.2}},
            {"type": {"deepfake": 0.8}},
            {"type": {"deepfake": 0.5}},
            {"info": {}},
        ]},
        "type": {"deepfake": 0.6},
    }
    scores = sightengine.video_scores(data)

    assert scores["total_frames"] == 4
    assert scores["max_frame_score"] == 0.8
    assert scores["summary_score"] == 0.6
    assert scores["final_score"] == 0.8
    # frame without a score counts as 0
    assert scores["frame_scores"] == [0.2, 0.8, 0.5, 0.0]
    assert scores["average_score"] == pytest.approx(0.375)

    summary_only = sightengine.video_scores({"deepfake": {"prob": 0.72}})
    assert summary_only["final_score"] == 0.72
    assert summary_only["total_frames"] == 0


def test_video_scores_skips_entries_that_are_not_frames():
    scores = sightengine.video_scores({"data": {"frames": [None, "x", {"type": {"deepfake": 0.4}}, {"type": None}]}})

    assert scores["total_frames"] == 2
    assert scores["frame_scores"] == [0.4, 0.0]
    assert scores["max_frame_score"] == 0.4
    assert scores["final_score"] == 0.4


def test_sightengine_test_credentials(monkeypatch):
    calls = {}

    def fake_get(url, params=None, timeout=None):
        calls.update(url=url, params=params, timeout=timeout)
        return FakeResponse(200, {"status": "success"})

    monkeypatch.setattr(sightengine.requests, "get", fake_get)
    assert sightengine.test_credentials("user", "secret") == {"status": "success"}
    assert calls["params"]["url"] == config.SIGHTENGINE_TEST_IMAGE_URL
    assert calls["timeout"] == config.CREDENTIAL_TEST_TIMEOUT


def test_detect_audio_sends_base64(monkeypatch, audio_file, wav_bytes):
    calls = {}

    def fake_post(url, headers=None, json=None, timeout=None):
        calls.update(url=url, headers=headers, json=json, timeout=timeout)
        return FakeResponse(200, {"success": True, "item": {"metrics": {"aggregated_score": 0.88, "label": "fake"}}})

    monkeypatch.setattr(resemble.requests, "post", fake_post)
    data = resemble.detect_audio(str(audio_file), "key-123")

    assert calls["url"] == config.RESEMBLE_DETECT_ENDPOINT
    assert calls["headers"]["Authorization"] == "Bearer key-123"
    assert calls["json"]["audio_format"] == "wav"
    assert len(calls["json"]["audio_data"]) >= len(wav_bytes)
    assert resemble.audio_score(data) == (0.88, True)


@pytest.mark.parametrize("payload, expected", [
    ({"item": {"metrics": {"aggregated_score": 0.12, "label": "real"}}}, (0.12, False)),
    ({"item": {"metrics": {"aggregated_score": [0.1, 0.64]}}}, (0.64, None)),
    ({"item": {"score": 0.4}}, (0.4, None)),
    ({"score": 0.55}, (0.55, None)),
])
def test_audio_score_variants(payload, expected):
    assert resemble.audio_score(payload) == expected


def test_audio_score_requires_a_score():
    with pytest.raises(VendorError):
        resemble.audio_score({"item": {"metrics": {}}})


def test_resemble_errors(monkeypatch, audio_file):
    monkeypatch.setattr(
        resemble.requests, "post",
        lambda *args, **kwargs: FakeResponse(429, {}, headers={"retry-after": "12"}),
    )
    with pytest.raises(RateLimitError):
        resemble.detect_audio(str(audio_file), "key")

    monkeypatch.setattr(
        resemble.requests, "post",
        lambda *args, **kwargs: FakeResponse(200, {"success": False, "message": "quota exhausted"}),
    )
    with pytest.raises(VendorError, match="quota exhausted"):
        resemble.detect_audio(str(audio_file), "key")


def test_describe_vendor_error():
    assert describe_vendor_error(VendorError("x", status_code=400)) == "Bad request - check file format and size"
    assert describe_vendor_error(VendorError("x", status_code=413)) == "File too large - exceeds API limits"
    assert describe_vendor_error(
        VendorError("x", status_code=500, payload={"error": {"message": "upstream down"}})
    ) == "HTTP 500: upstream down"
    assert describe_vendor_error(VendorError("timed out")) == "timed out"
    assert describe_vendor_error(RuntimeError("")) == "API call failed"
