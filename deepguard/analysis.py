"""
Analysis pipeline: vendor call (or demo fallback) -> typed AnalysisResult
"""

import random
import time
import uuid
from datetime import datetime, timezone
from typing import Dict, List, Optional

from deepguard import config
from deepguard.demo import (
    demo_audio_analysis,
    demo_audio_verdict,
    demo_face_detection,
    demo_frame_analysis,
    demo_image_indicators,
    demo_video_indicators,
    demo_visual_confidence,
    generate_model_breakdown,
)
from deepguard.errors import RateLimitError
from deepguard.models import (
    AnalysisResponse,
    AudioAnalysis,
    AudioAnalysisResult,
    ConfidenceFactor,
    ImageAnalysis,
    ImageAnalysisResult,
    ProcessingDetails,
    VideoAnalysis,
    VideoAnalysisResult,
)
from deepguard.probe import probe_audio, probe_image, probe_video
from deepguard.scoring import (
    clamp_score,
    factor_impact,
    generate_limitations,
    generate_recommendations,
    get_confidence_category,
    get_risk_level,
    is_deepfake_score,
)
from deepguard.uploads import SavedUpload
from deepguard.vendors import describe_vendor_error, resemble, sightengine

DEMO_QUALITY_SCORE = 0.6
API_QUALITY_SCORE = 0.9


def _quality(is_demo: bool) -> str:
    return "DEMO" if is_demo else "API"


def _warnings(warning: Optional[str]) -> Optional[List[str]]:
    return [warning] if warning else None


def _vendor_score(section, key: str, default: float) -> float:
    """A vendor sub-score clamped to [0, 1]; missing or null values take the default"""
    value = section.get(key) if isinstance(section, dict) else None
    return default if value is None else clamp_score(value)


def _log_derived(kind: str, confidence: float, risk_level: str, category: str, is_demo: bool):
    print(f"🔍 {kind} result: confidence={confidence:.3f} ({confidence * 100:.1f}%), "
          f"risk={risk_level}, category={category}, quality={_quality(is_demo)}")


def build_image_result(
    confidence: float,
    is_demo: bool,
    metadata: Dict,
    raw_data: Optional[Dict] = None,
    warning: Optional[str] = None,
    rng: Optional[random.Random] = None,
) -> ImageAnalysisResult:
    confidence = clamp_score(confidence)
    risk_level = get_risk_level(confidence)
    category = get_confidence_category(confidence)
    _log_derived("Image", confidence, risk_level, category, is_demo)

    raw = raw_data or {}
    if is_demo:
        face_detection = demo_face_detection(rng)
        indicators = demo_image_indicators(rng)
    else:
        faces = raw.get("faces") if isinstance(raw.get("faces"), list) else []
        first_face = faces[0] if faces and isinstance(faces[0], dict) else {}
        features = first_face.get("features")
        face_detection = {
            "faces_detected": len(faces),
            "face_quality": _vendor_score(first_face, "quality", 0.8),
            "facial_features": features if isinstance(features, list) else ["eyes", "nose", "mouth"],
        }
        indicators = {
            "compression_artifacts": _vendor_score(raw, "compression_artifacts", 0),
            "editing_signs": _vendor_score(raw, "editing_signs", 0),
            "metadata_inconsistencies": _vendor_score(raw, "metadata_inconsistencies", 0),
        }

    exif = (raw.get("media") or {}).get("exif")
    technical = {
        "resolution": f"{metadata.get('width', 'unknown')}x{metadata.get('height', 'unknown')}",
        "color_depth": 24,
        "compression_type": str(metadata.get("format", "unknown")),
        "exif_data": exif if isinstance(exif, dict) else None,
    }

    processing = ProcessingDetails(
        api_provider="Sightengine",
        models_used=["deepfake"],
        processing_method="AI-powered visual analysis",
        quality_score=DEMO_QUALITY_SCORE if is_demo else API_QUALITY_SCORE,
        confidence_factors=[
            ConfidenceFactor(
                factor="Visual Consistency",
                weight=0.4,
                description="Analysis of image artifacts and inconsistencies",
                impact=factor_impact(not is_deepfake_score(confidence)),
            ),
            ConfidenceFactor(
                factor="Face Detection Quality",
                weight=0.3,
                description="Quality and number of detected faces",
                impact=factor_impact(face_detection["face_quality"] > 0.7),
            ),
            ConfidenceFactor(
                factor="Technical Metadata",
                weight=0.3,
                description="File format and compression analysis",
                impact="NEUTRAL",
            ),
        ],
        processing_warnings=_warnings(warning),
    )

    return ImageAnalysisResult(
        is_deepfake=is_deepfake_score(confidence),
        confidence=confidence,
        metadata=dict(metadata),
        risk_level=risk_level,
        confidence_category=category,
        analysis_quality=_quality(is_demo),
        processing_details=processing,
        recommendations=generate_recommendations(confidence),
        limitations=generate_limitations(is_demo, confidence),
        model_breakdown=generate_model_breakdown(confidence, rng),
        sightengine_data=raw_data,
        image_analysis=ImageAnalysis(
            face_detection=face_detection,
            manipulation_indicators=indicators,
            technical_analysis=technical,
        ),
    )


def build_video_result(
    confidence: float,
    is_demo: bool,
    metadata: Dict,
    raw_data: Optional[Dict] = None,
    frame_summary: Optional[Dict] = None,
    warning: Optional[str] = None,
    rng: Optional[random.Random] = None,
) -> VideoAnalysisResult:
    confidence = clamp_score(confidence)
    risk_level = get_risk_level(confidence)
    category = get_confidence_category(confidence)
    _log_derived("Video", confidence, risk_level, category, is_demo)

    raw = raw_data or {}
    if is_demo or not frame_summary:
        frame_analysis = demo_frame_analysis(rng)
        indicators = demo_video_indicators(rng)
    else:
        frame_analysis = {
            "total_frames": frame_summary["total_frames"],
            "frame_scores": frame_summary["frame_scores"],
            "max_score": frame_summary["max_frame_score"],
            "average_score": frame_summary["average_score"],
        }
        indicators = {
            "temporal_inconsistencies": _vendor_score(raw, "temporal_artifacts", 0),
            "frame_editing_signs": _vendor_score(raw, "frame_editing", 0),
            "compression_artifacts": _vendor_score(raw, "compression_artifacts", 0),
            "audio_video_sync": _vendor_score(raw, "av_sync", 0),
        }

    technical = {
        "resolution": str(metadata.get("resolution", "unknown")),
        "duration": metadata.get("duration", "unknown"),
        "fps": metadata.get("fps", "unknown"),
        "frames_analyzed": metadata.get("frames_analyzed", 0),
        "max_frame_score": metadata.get("max_frame_score", 0.0),
    }

    processing = ProcessingDetails(
        api_provider="Sightengine",
        models_used=["deepfake"],
        processing_method="AI-powered video frame analysis",
        quality_score=DEMO_QUALITY_SCORE if is_demo else API_QUALITY_SCORE,
        confidence_factors=[
            ConfidenceFactor(
                factor="Frame Consistency",
                weight=0.4,
                description="Analysis of temporal consistency across video frames",
                impact=factor_impact(not is_deepfake_score(confidence)),
            ),
            ConfidenceFactor(
                factor="Frame Analysis Coverage",
                weight=0.3,
                description="Number and quality of analyzed frames",
                impact=factor_impact(frame_analysis["total_frames"] > 20),
            ),
            ConfidenceFactor(
                factor="Temporal Artifacts",
                weight=0.3,
                description="Detection of time-based manipulation indicators",
                impact="NEUTRAL",
            ),
        ],
        processing_warnings=_warnings(warning),
    )

    return VideoAnalysisResult(
        is_deepfake=is_deepfake_score(confidence),
        confidence=confidence,
        metadata=dict(metadata),
        risk_level=risk_level,
        confidence_category=category,
        analysis_quality=_quality(is_demo),
        processing_details=processing,
        recommendations=generate_recommendations(confidence),
        limitations=generate_limitations(is_demo, confidence),
        model_breakdown=generate_model_breakdown(confidence, rng),
        sightengine_data=raw_data,
        video_analysis=VideoAnalysis(
            frame_analysis=frame_analysis,
            manipulation_indicators=indicators,
            technical_analysis=technical,
        ),
    )


def build_audio_result(
    confidence: float,
    is_deepfake: bool,
    is_demo: bool,
    metadata: Dict,
    raw_data: Optional[Dict] = None,
    warning: Optional[str] = None,
    rng: Optional[random.Random] = None,
) -> AudioAnalysisResult:
    confidence = clamp_score(confidence)
    risk_level = get_risk_level(confidence)
    category = get_confidence_category(confidence)
    _log_derived("Audio", confidence, risk_level, category, is_demo)

    if is_demo:
        audio = demo_audio_analysis(rng)
    else:
        raw = raw_data or {}
        voice = raw.get("voice_characteristics") or {}
        synthetic = raw.get("synthetic_indicators") or {}
        quality = raw.get("quality_metrics") or {}
        audio = {
            "voice_characteristics": {
                "naturalness": _vendor_score(voice, "naturalness", 0.7),
                "consistency": _vendor_score(voice, "consistency", 0.8),
                "background_noise": _vendor_score(voice, "background_noise", 0.2),
            },
            "synthetic_indicators": {
                "artificial_patterns": _vendor_score(synthetic, "artificial_patterns", 0.3),
                "frequency_anomalies": _vendor_score(synthetic, "frequency_anomalies", 0.2),
                "temporal_inconsistencies": _vendor_score(synthetic, "temporal_inconsistencies", 0.3),
            },
            "quality_metrics": {
                "clarity": _vendor_score(quality, "clarity", 0.8),
                "stability": _vendor_score(quality, "stability", 0.7),
            },
        }

    audio["technical_analysis"] = {
        "duration": metadata.get("duration", "unknown"),
        "sample_rate": metadata.get("sample_rate", "unknown"),
        "channels": metadata.get("channels", "unknown"),
    }

    processing = ProcessingDetails(
        api_provider="Resemble AI",
        models_used=["voice_synthesis_detection"],
        processing_method="AI-powered audio pattern analysis",
        quality_score=DEMO_QUALITY_SCORE if is_demo else API_QUALITY_SCORE,
        confidence_factors=[
            ConfidenceFactor(
                factor="Voice Naturalness",
                weight=0.4,
                description="Analysis of voice characteristics and natural patterns",
                impact=factor_impact(audio["voice_characteristics"]["naturalness"] > 0.7),
            ),
            ConfidenceFactor(
                factor="Synthetic Indicators",
                weight=0.4,
                description="Detection of artificial voice synthesis patterns",
                impact=factor_impact(audio["synthetic_indicators"]["artificial_patterns"] <= 0.5),
            ),
            ConfidenceFactor(
                factor="Audio Quality",
                weight=0.2,
                description="Overall audio clarity and stability metrics",
                impact="NEUTRAL",
            ),
        ],
        processing_warnings=_warnings(warning),
    )

    return AudioAnalysisResult(
        is_deepfake=is_deepfake,
        confidence=confidence,
        metadata=dict(metadata),
        risk_level=risk_level,
        confidence_category=category,
        analysis_quality=_quality(is_demo),
        processing_details=processing,
        recommendations=generate_recommendations(confidence),
        limitations=generate_limitations(is_demo, confidence),
        resemble_data=raw_data,
        audio_analysis=AudioAnalysis(**audio),
    )


def analyze_image(saved: SavedUpload, rng: Optional[random.Random] = None) -> ImageAnalysisResult:
    """Analyze image using Sightengine, falling back to demo scores"""
    api_user, api_secret = config.sightengine_credentials()
    probed = probe_image(str(saved.path))

    if not (api_user and api_secret):
        print("🎭 Sightengine credentials missing. Using image demo fallback.")
        return build_image_result(
            demo_visual_confidence(rng), True, probed,
            warning="Sightengine API credentials not configured", rng=rng,
        )

    try:
        data = sightengine.check_image(str(saved.path), api_user, api_secret)
    except RateLimitError:
        raise
    except Exception as e:
        print(f"❌ Sightengine image API error: {e}")
        print("⚠️ Falling back to demo mode due to API error")
        return build_image_result(
            demo_visual_confidence(rng), True, probed,
            warning=describe_vendor_error(e), rng=rng,
        )

    media = data.get("media") or {}
    metadata = {
        "width": media.get("width") or probed["width"],
        "height": media.get("height") or probed["height"],
        "format": media.get("format") or probed["format"],
    }
    return build_image_result(sightengine.image_score(data), False, metadata, raw_data=data, rng=rng)


def analyze_video(saved: SavedUpload, rng: Optional[random.Random] = None) -> VideoAnalysisResult:
    """Analyze video using Sightengine frame scoring, falling back to demo scores"""
    api_user, api_secret = config.sightengine_credentials()
    probed = probe_video(str(saved.path))
    demo_metadata = {key: probed[key] for key in ("duration", "fps", "resolution")}

    if not (api_user and api_secret):
        print("🎭 Sightengine credentials missing. Using video demo fallback.")
        return build_video_result(
            demo_visual_confidence(rng), True, demo_metadata,
            warning="Sightengine API credentials not configured", rng=rng,
        )

    try:
        data = sightengine.check_video(str(saved.path), api_user, api_secret)
    except RateLimitError:
        raise
    except Exception as e:
        print(f"❌ Sightengine video API error: {e}")
        print("⚠️ Falling back to video demo mode due to API error")
        return build_video_result(
            demo_visual_confidence(rng), True, demo_metadata,
            warning=describe_vendor_error(e), rng=rng,
        )

    scores = sightengine.video_scores(data)
    print(f"📊 Video frames analyzed: {scores['total_frames']}, max frame score: {scores['max_frame_score']:.3f}, "
          f"summary: {scores['summary_score']:.3f}, final: {scores['final_score']:.3f}")

    media = data.get("media") or {}
    width = media.get("width") or data.get("width")
    height = media.get("height") or data.get("height")
    metadata = {
        "duration": media.get("duration") or data.get("duration") or probed["duration"],
        "fps": media.get("fps") or data.get("fps") or probed["fps"],
        "resolution": f"{width}x{height}" if width and height else probed["resolution"],
        "frames_analyzed": scores["total_frames"],
        "max_frame_score": scores["max_frame_score"],
    }
    return build_video_result(
        scores["final_score"], False, metadata,
        raw_data=data, frame_summary=scores, rng=rng,
    )


def analyze_audio(saved: SavedUpload, rng: Optional[random.Random] = None) -> AudioAnalysisResult:
    """Analyze audio using Resemble AI, falling back to demo scores"""
    api_key = config.resemble_api_key()
    probed = probe_audio(str(saved.path))
    metadata = {key: probed[key] for key in ("duration", "sample_rate", "channels")}

    if not api_key:
        print("🎭 Resemble AI credentials missing. Using audio demo fallback.")
        confidence, is_synthetic = demo_audio_verdict(rng)
        return build_audio_result(
            confidence, is_synthetic, True, metadata,
            warning="Resemble AI API credentials not configured", rng=rng,
        )

    try:
        data = resemble.detect_audio(str(saved.path), api_key)
        score, is_fake = resemble.audio_score(data)
    except RateLimitError:
        raise
    except Exception as e:
        print(f"❌ Resemble AI API error: {e}")
        print("⚠️ Falling back to audio demo mode due to API error")
        confidence, is_synthetic = demo_audio_verdict(rng)
        return build_audio_result(
            confidence, is_synthetic, True, metadata,
            warning=describe_vendor_error(e), rng=rng,
        )

    confidence = clamp_score(score)
    is_deepfake = is_fake if is_fake is not None else is_deepfake_score(confidence)
    return build_audio_result(confidence, is_deepfake, False, metadata, raw_data=data, rng=rng)


ANALYZERS = {
    "image": analyze_image,
    "video": analyze_video,
    "audio": analyze_audio,
}


def analyze_upload(saved: SavedUpload, rng: Optional[random.Random] = None):
    """
    Run the analyzer for the upload's category and stamp timing and file details.

    Raises:
        ValueError: unsupported category
        RateLimitError: the vendor asked us to back off
    """
    analyzer = ANALYZERS.get(saved.category)
    if analyzer is None:
        raise ValueError("Unsupported file type")

    start_time = time.time()
    result = analyzer(saved, rng=rng)
    elapsed_ms = int((time.time() - start_time) * 1000)

    metadata = dict(result.metadata)
    metadata.update({
        "file_name": saved.original_name,
        "saved_filename": saved.filename,
        "file_size": saved.size,
        "file_type": saved.content_type,
    })
    result = result.model_copy(update={"analysis_time": elapsed_ms, "metadata": metadata})

    print(f"🎯 {saved.category.capitalize()} analysis: score={result.confidence:.3f}, risk={result.risk_level}, "
          f"classification={'FAKE' if result.is_deepfake else 'AUTHENTIC'} ({elapsed_ms}ms)")
    return result


def build_response(
    result=None,
    error: Optional[str] = None,
    processing_notes: Optional[List[str]] = None,
    analysis_id: Optional[str] = None,
) -> AnalysisResponse:
    return AnalysisResponse(
        success=error is None,
        result=result,
        error=error,
        analysis_id=analysis_id or str(uuid.uuid4()),
        timestamp=datetime.now(timezone.utc).isoformat(),
        version=config.API_VERSION,
        processing_notes=processing_notes or None,
    )
