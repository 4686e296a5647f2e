"""
Derived presentational fields for a deepfake confidence score.

Scores are probabilities of manipulation in [0, 1]: the higher the score, the
more likely the media is fake and the higher the risk.
"""

from typing import List

from deepguard.config import DEEPFAKE_THRESHOLD


def clamp_score(value) -> float:
    try:
        score = float(value)
    except (TypeError, ValueError):
        return 0.0
    if score != score:  # NaN
        return 0.0
    return max(0.0, min(1.0, score))


def is_deepfake_score(confidence: float) -> bool:
    return confidence > DEEPFAKE_THRESHOLD


def get_risk_level(confidence: float) -> str:
    if confidence >= 0.8:
        return "CRITICAL"
    if confidence >= 0.6:
        return "HIGH"
    if confidence >= 0.4:
        return "MEDIUM"
    # 0.2-0.4 and below 0.2 both read as low risk
    return "LOW"


def get_confidence_category(confidence: float) -> str:
    if confidence >= 0.9:
        return "VERY_HIGH"
    if confidence >= 0.7:
        return "HIGH"
    if confidence >= 0.5:
        return "MEDIUM"
    if confidence >= 0.3:
        return "LOW"
    return "VERY_LOW"


def generate_recommendations(confidence: float) -> List[str]:
    if confidence >= 0.8:
        return [
            "🚨 CRITICAL: Very high probability of deepfake detected",
            "Exercise extreme caution - this media is likely manipulated",
            "Verify source and context immediately",
            "Consider additional verification methods",
            "Document findings for security purposes",
        ]
    if confidence >= 0.6:
        return [
            "⚠️ HIGH: High probability of deepfake detected",
            "Approach with extreme caution",
            "Verify media source and authenticity thoroughly",
            "Look for additional verification clues",
            "Consider professional analysis if critical",
        ]
    if confidence >= 0.4:
        return [
            "🔍 MEDIUM: Moderate manipulation indicators detected",
            "Some suspicious patterns identified",
            "Verify source and check for metadata inconsistencies",
            "Compare with known authentic versions if available",
            "Proceed with caution",
        ]
    if confidence >= 0.2:
        return [
            "✅ LOW: Minimal manipulation indicators",
            "Media appears mostly authentic",
            "Continue to verify source and context",
            "Monitor for any new detection methods",
        ]
    return [
        "✅ VERY LOW: No significant manipulation detected",
        "Media appears authentic based on current analysis",
        "Continue to verify source and context",
        "Monitor for any new detection methods",
    ]


def generate_limitations(is_demo: bool, confidence: float) -> List[str]:
    limitations = []

    if is_demo:
        limitations.extend([
            "Analysis performed in demo mode - results are simulated",
            "Real API credentials required for accurate detection",
            "Demo scores are randomly generated for demonstration purposes",
        ])

    if confidence < 0.3:
        limitations.extend([
            "Low confidence score may indicate unclear or ambiguous results",
            "Consider re-analyzing with different media or higher resolution",
            "Some manipulation techniques may evade current detection methods",
        ])

    limitations.extend([
        "Analysis based on current AI model capabilities",
        "New manipulation techniques may not be detected",
        "Results should be considered alongside other verification methods",
        "Professional verification recommended for critical applications",
    ])
    return limitations


def factor_impact(favourable: bool) -> str:
    return "POSITIVE" if favourable else "NEGATIVE"
