import dataclasses
import io
from types import SimpleNamespace

import pytest

from deepguard import analysis
from deepguard.analysis import analyze_upload, build_audio_result, build_image_result, build_response
from deepguard.errors import RateLimitError, VendorError
from deepguard.models import AnalysisResponse
from deepguard.uploads import save_upload


def saved_file(filename, content_type, data):
    return save_upload(SimpleNamespace(filename=filename, content_type=content_type, file=io.BytesIO(data)))


def test_image_demo_mode_without_credentials(png_bytes, rng):
    result = analyze_upload(saved_file("cat.png", "image/png", png_bytes), rng=rng)

    assert result.type == "image"
    assert result.analysis_quality == "DEMO"
    assert result.processing_details.quality_score == 0.6
    assert result.processing_details.processing_warnings == ["Sightengine API credentials not configured"]
    assert result.limitations[0] == "Analysis performed in demo mode - results are simulated"
    assert result.metadata["width"] == 16
    assert result.metadata["height"] == 12
    assert result.metadata["file_name"] == "cat.png"
    assert result.metadata["file_size"] == len(png_bytes)
    assert result.metadata["file_type"] == "image/png"
    assert result.image_analysis.technical_analysis.resolution == "16x12"
    assert result.model_breakdown is not None
    assert result.sightengine_data is None


def test_image_api_mode(monkeypatch, sightengine_env, png_bytes, rng):
    response = {
        "status": "success",
        "type": {"deepfake": 0.93},
        "media": {"width": 640, "height": 480, "format": "png", "exif": {"Make": "Canon"}},
        "faces": [{"quality": 0.9}],
    }
    monkeypatch.setattr(analysis.sightengine, "check_image", lambda path, user, secret: response)

    result = analyze_upload(saved_file("face.png", "image/png", png_bytes), rng=rng)

    assert result.analysis_quality == "API"
    assert result.confidence == 0.93
    assert result.is_deepfake is True
    assert result.risk_level == "CRITICAL"
    assert result.confidence_category == "VERY_HIGH"
    assert result.processing_details.quality_score == 0.9
    assert result.processing_details.processing_warnings is None
    assert result.image_analysis.face_detection.faces_detected == 1
    assert result.image_analysis.technical_analysis.exif_data == {"Make": "Canon"}
    assert result.metadata["width"] == 640
    assert result.sightengine_data == response
    assert not any("demo" in line for line in result.limitations)


def test_image_vendor_failure_falls_back_to_demo(monkeypatch, sightengine_env, png_bytes, rng):
    def fail(path, user, secret):
        raise VendorError("rejected", status_code=400)

    monkeypatch.setattr(analysis.sightengine, "check_image", fail)
    result = analyze_upload(saved_file("cat.png", "image/png", png_bytes), rng=rng)

    assert result.analysis_quality == "DEMO"
    assert result.processing_details.processing_warnings == ["Bad request - check file format and size"]


def test_image_api_mode_tolerates_null_face_fields(monkeypatch, sightengine_env, png_bytes, rng):
    response = {"status": "success", "type": {"deepfake": 0.3}, "faces": [{"quality": None, "features": None}]}
    monkeypatch.setattr(analysis.sightengine, "check_image", lambda path, user, secret: response)

    result = analyze_upload(saved_file("face.png", "image/png", png_bytes), rng=rng)

    assert result.analysis_quality == "API"
    assert result.confidence == 0.3
    face = result.image_analysis.face_detection
    assert face.faces_detected == 1
    assert face.face_quality == 0.8
    assert face.facial_features == ["eyes", "nose", "mouth"]


def test_rate_limit_is_not_masked(monkeypatch, sightengine_env, png_bytes, rng):
    def limited(path, user, secret):
        raise RateLimitError("45")

    monkeypatch.setattr(analysis.sightengine, "check_image", limited)
    with pytest.raises(RateLimitError, match="wait 45 seconds"):
        analyze_upload(saved_file("cat.png", "image/png", png_bytes), rng=rng)


def test_video_demo_mode(video_bytes, rng):
    result = analyze_upload(saved_file("clip.mp4", "video/mp4", video_bytes), rng=rng)

    assert result.type == "video"
    assert result.analysis_quality == "DEMO"
    assert result.video_analysis.technical_analysis.resolution == "unknown"
    assert len(result.video_analysis.frame_analysis.frame_scores) == 5
    assert result.processing_details.processing_warnings == ["Sightengine API credentials not configured"]


def test_video_api_mode_uses_worst_frame(monkeypatch, sightengine_env, video_bytes, rng):
    response = {
        "status": "success",
        "data": {"frames": [{"type": {"deepfake": 0.1}}, {"type": {"deepfake": 0.76}}]},
        "type": {"deepfake": 0.3},
        "media": {"width": 1280, "height": 720, "duration": 4.2, "fps": 30},
    }
    monkeypatch.setattr(analysis.sightengine, "check_video", lambda path, user, secret: response)

    result = analyze_upload(saved_file("clip.mp4", "video/mp4", video_bytes), rng=rng)

    assert result.analysis_quality == "API"
    assert result.confidence == 0.76
    assert result.is_deepfake is True
    assert result.risk_level == "HIGH"
    frames = result.video_analysis.frame_analysis
    assert frames.total_frames == 2
    assert frames.max_score == 0.76
    technical = result.video_analysis.technical_analysis
    assert technical.resolution == "1280x720"
    assert technical.frames_analyzed == 2
    assert technical.duration == 4.2


def test_audio_demo_mode(wav_bytes, rng):
    result = analyze_upload(saved_file("voice.wav", "audio/wav", wav_bytes), rng=rng)

    assert result.type == "audio"
    assert result.analysis_quality == "DEMO"
    assert result.model_breakdown is None
    assert result.audio_analysis.technical_analysis.sample_rate == 8000
    assert result.audio_analysis.technical_analysis.channels == 1
    assert result.processing_details.processing_warnings == ["Resemble AI API credentials not configured"]
    # verdict and score agree
    assert result.is_deepfake == (result.confidence >= 0.7)


def test_audio_api_mode_uses_vendor_label(monkeypatch, resemble_env, wav_bytes, rng):
    response = {"success": True, "item": {"metrics": {"aggregated_score": 0.65, "label": "fake"}}}
    monkeypatch.setattr(analysis.resemble, "detect_audio", lambda path, key: response)

    result = analyze_upload(saved_file("voice.wav", "audio/wav", wav_bytes), rng=rng)

    assert result.analysis_quality == "API"
    assert result.confidence == 0.65
    assert result.is_deepfake is True
    assert result.resemble_data == response


def test_audio_missing_score_falls_back(monkeypatch, resemble_env, wav_bytes, rng):
    monkeypatch.setattr(analysis.resemble, "detect_audio", lambda path, key: {"success": True, "item": {}})

    result = analyze_upload(saved_file("voice.wav", "audio/wav", wav_bytes), rng=rng)

    assert result.analysis_quality == "DEMO"
    assert "detection score" in result.processing_details.processing_warnings[0]


def test_audio_api_mode_tolerates_null_sub_scores(monkeypatch, resemble_env, wav_bytes, rng):
    response = {
        "success": True,
        "item": {"metrics": {"aggregated_score": 0.2, "label": "real"}},
        "voice_characteristics": {"naturalness": None, "consistency": 0.9},
        "synthetic_indicators": None,
        "quality_metrics": {"clarity": None, "stability": None},
    }
    monkeypatch.setattr(analysis.resemble, "detect_audio", lambda path, key: response)

    result = analyze_upload(saved_file("voice.wav", "audio/wav", wav_bytes), rng=rng)

    assert result.analysis_quality == "API"
    assert result.is_deepfake is False
    audio = result.audio_analysis
    assert audio.voice_characteristics.naturalness == 0.7
    assert audio.voice_characteristics.consistency == 0.9
    assert audio.synthetic_indicators.artificial_patterns == 0.3
    assert audio.quality_metrics.clarity == 0.8
    assert audio.quality_metrics.stability == 0.7


def test_unknown_category_is_rejected(png_bytes):
    saved = saved_file("cat.png", "image/png", png_bytes)
    with pytest.raises(ValueError, match="Unsupported file type"):
        analyze_upload(dataclasses.replace(saved, category="text"))


def test_builders_clamp_scores(rng):
    image = build_image_result(1.4, False, {"width": 1, "height": 1, "format": "png"}, rng=rng)
    assert image.confidence == 1.0
    assert image.risk_level == "CRITICAL"

    audio = build_audio_result(-0.3, False, True, {}, rng=rng)
    assert audio.confidence == 0.0
    assert audio.confidence_category == "VERY_LOW"


def test_wire_format_is_camel_case(png_bytes, rng):
    result = analyze_upload(saved_file("cat.png", "image/png", png_bytes), rng=rng)
    response = build_response(result=result, processing_notes=["note"])
    wire = response.to_wire()

    assert wire["success"] is True
    assert wire["version"] == "1.0.0"
    assert wire["processingNotes"] == ["note"]
    assert "error" not in wire
    body = wire["result"]
    assert {"isDeepfake", "riskLevel", "confidenceCategory", "analysisQuality", "analysisTime"} <= set(body)
    assert "genAI" in body["modelBreakdown"]
    assert "faceDetection" in body["imageAnalysis"]

    # the discriminated union reads its own output back
    parsed = AnalysisResponse.model_validate(wire)
    assert parsed.result.type == "image"


def test_error_response_has_no_result():
    wire = build_response(error="Analysis failed", analysis_id="abc").to_wire()
    assert wire == {
        "success": False,
        "error": "Analysis failed",
        "analysisId": "abc",
        "timestamp": wire["timestamp"],
        "version": "1.0.0",
    }
