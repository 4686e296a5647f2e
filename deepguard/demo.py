"""
Demo Mode
Randomized but plausible scores used when vendor credentials are missing or a
vendor call fails. Every generator takes an optional random.Random so results
can be pinned in tests.
"""

import random
from typing import Dict, List, Optional, Tuple

_rng = random.Random()

DIFFUSION_MODELS = [
    # name, share of the base probability, ceiling when confidence is low
    ("stableDiffusion", 0.40, 0.08),
    ("dalle", 0.28, 0.05),
    ("midjourney", 0.35, 0.06),
    ("firefly", 0.18, 0.04),
    ("flux", 0.22, 0.05),
    ("imagen", 0.20, 0.04),
    ("ideogram", 0.15, 0.03),
    ("other", 0.12, 0.07),
    ("wan", 0.10, 0.02),
    ("reve", 0.11, 0.03),
    ("recraft", 0.13, 0.04),
    ("qwen", 0.09, 0.02),
    ("gpt4o", 0.16, 0.03),
]


def _clip(value: float) -> float:
    return max(0.0, min(1.0, value))


def demo_visual_confidence(rng: Optional[random.Random] = None) -> float:
    """
    Image/video demo score: one draw in five looks like a deepfake (0.7-1.0),
    the rest look authentic (0.1-0.5)
    """
    rng = rng or _rng
    if rng.random() > 0.8:
        return rng.random() * 0.3 + 0.7
    return rng.random() * 0.4 + 0.1


def demo_audio_verdict(rng: Optional[random.Random] = None) -> Tuple[float, bool]:
    """
    Audio demo verdict as (probability of synthesis, is_synthetic).
    Half the draws are synthetic (0.70-0.95), the rest authentic (0.05-0.25).
    """
    rng = rng or _rng
    is_synthetic = rng.random() > 0.5
    if is_synthetic:
        return rng.random() * 0.25 + 0.7, True
    return 1.0 - (rng.random() * 0.2 + 0.75), False


def generate_model_breakdown(confidence: float, rng: Optional[random.Random] = None) -> Dict:
    """Per-generator probabilities scaled by the overall confidence"""
    rng = rng or _rng
    is_high_confidence = confidence > 0.7

    gen_ai = min(max(confidence * 0.15 + rng.random() * 0.05, 0), 0.2)

    if is_high_confidence:
        face_manipulation = _clip(confidence + (rng.random() * 0.05 - 0.025))
    else:
        face_manipulation = _clip(confidence * 0.3 + (rng.random() * 0.05 - 0.025))

    if confidence < 0.3:
        diffusion = {name: rng.random() * ceiling for name, _, ceiling in DIFFUSION_MODELS}
    else:
        base = confidence * 0.7
        diffusion = {
            name: _clip(base * share + (rng.random() * 0.15 - 0.075))
            for name, share, _ in DIFFUSION_MODELS
        }

    gan_base = confidence * 0.5 if is_high_confidence else confidence * 0.15
    gan = {
        "styleGAN": _clip(gan_base + (rng.random() * 0.12 - 0.06)),
        "other": _clip(gan_base * 0.35 + (rng.random() * 0.10 - 0.05)),
    }

    if is_high_confidence:
        other = {
            "faceManipulation": _clip(confidence + (rng.random() * 0.05 - 0.025)),
            "deepfakeSwap": _clip(confidence * 0.85),
            "expression": _clip(confidence * 0.65),
        }
    else:
        other = {
            "faceManipulation": _clip(confidence * 0.3 + (rng.random() * 0.05 - 0.025)),
            "deepfakeSwap": _clip(confidence * 0.2),
            "expression": _clip(confidence * 0.15),
        }

    return {
        "genAI": gen_ai,
        "faceManipulation": face_manipulation,
        "diffusion": diffusion,
        "gan": gan,
        "other": other,
    }


def demo_face_detection(rng: Optional[random.Random] = None) -> Dict:
    rng = rng or _rng
    return {
        "faces_detected": rng.randint(1, 3),
        "face_quality": rng.random() * 0.5 + 0.5,
        "facial_features": ["eyes", "nose", "mouth"],
    }


def demo_image_indicators(rng: Optional[random.Random] = None) -> Dict:
    rng = rng or _rng
    return {
        "compression_artifacts": rng.random() * 0.3,
        "editing_signs": rng.random() * 0.4,
        "metadata_inconsistencies": rng.random() * 0.2,
    }


def demo_frame_analysis(rng: Optional[random.Random] = None) -> Dict:
    rng = rng or _rng
    frame_scores: List[float] = [rng.random() * 0.8 for _ in range(5)]
    return {
        "total_frames": rng.randint(10, 39),
        "frame_scores": frame_scores,
        "max_score": max(frame_scores),
        "average_score": sum(frame_scores) / len(frame_scores),
    }


def demo_video_indicators(rng: Optional[random.Random] = None) -> Dict:
    rng = rng or _rng
    return {
        "temporal_inconsistencies": rng.random() * 0.4,
        "frame_editing_signs": rng.random() * 0.3,
        "compression_artifacts": rng.random() * 0.3,
        "audio_video_sync": rng.random() * 0.2,
    }


def demo_audio_analysis(rng: Optional[random.Random] = None) -> Dict:
    rng = rng or _rng
    return {
        "voice_characteristics": {
            "naturalness": rng.random() * 0.5 + 0.3,
            "consistency": rng.random() * 0.4 + 0.4,
            "background_noise": rng.random() * 0.3,
        },
        "synthetic_indicators": {
            "artificial_patterns": rng.random() * 0.6,
            "frequency_anomalies": rng.random() * 0.5,
            "temporal_inconsistencies": rng.random() * 0.4,
        },
        "quality_metrics": {
            "clarity": rng.random() * 0.5 + 0.4,
            "stability": rng.random() * 0.6 + 0.3,
        },
    }
