"""
Human-readable report for a finished analysis
"""

from typing import Dict, List

from deepguard.models import AnalysisReport

VERIFICATION_TIPS = {
    "image": [
        "Run a reverse image search to find earlier or original copies",
        "Check lighting, shadows and reflections for consistency",
        "Inspect hands, teeth, ears and hairlines for distortions",
    ],
    "video": [
        "Watch for unnatural blinking, lip-sync drift or flickering around the face",
        "Look for the same footage published by a trusted source",
        "Step through frames where the subject turns or moves quickly",
    ],
    "audio": [
        "Listen for missing breaths, flat intonation or abrupt tone changes",
        "Confirm the statement through a separate channel with the speaker",
        "Compare against verified recordings of the same voice",
    ],
}

ANALYSIS_KEYS = {
    "image": "imageAnalysis",
    "video": "videoAnalysis",
    "audio": "audioAnalysis",
}


def _numeric_metrics(section: Dict, prefix: str = "") -> Dict[str, float]:
    metrics = {}
    for key, value in (section or {}).items():
        name = f"{prefix}.{key}" if prefix else key
        if isinstance(value, bool):
            continue
        if isinstance(value, (int, float)):
            metrics[name] = float(value)
        elif isinstance(value, dict):
            metrics.update(_numeric_metrics(value, name))
    return metrics


def build_report(result: Dict) -> AnalysisReport:
    """
    Summarise a wire-format (camelCase) AnalysisResult.

    Key findings are the confidence factors that counted against authenticity,
    followed by any processing warnings.
    """
    media_type = result.get("type", "image")
    details = result.get("processingDetails") or {}
    recommendations: List[str] = result.get("recommendations") or []

    key_findings = [
        f"{factor['factor']}: {factor['description']}"
        for factor in details.get("confidenceFactors", [])
        if factor.get("impact") == "NEGATIVE"
    ]
    key_findings.extend(f"Warning: {w}" for w in details.get("processingWarnings") or [])
    if not key_findings:
        key_findings.append("No significant manipulation indicators found")

    analysis = result.get(ANALYSIS_KEYS.get(media_type, "")) or {}
    quality_metrics = {"qualityScore": float(details.get("qualityScore", 0.0))}
    for section, values in analysis.items():
        if section in ("manipulationIndicators", "syntheticIndicators", "voiceCharacteristics", "qualityMetrics"):
            quality_metrics.update(_numeric_metrics(values, section))

    return AnalysisReport(
        summary={
            "overall_risk": result.get("riskLevel", "LOW"),
            "confidence": float(result.get("confidence", 0.0)),
            "recommendation": recommendations[0] if recommendations else "No recommendation available",
            "key_findings": key_findings,
        },
        technical_details={
            "processing_time": int(result.get("analysisTime", 0)),
            "api_used": details.get("apiProvider", "unknown"),
            "models_applied": details.get("modelsUsed", []),
            "quality_metrics": quality_metrics,
        },
        user_guidance={
            "next_steps": recommendations[1:],
            "caution_notes": result.get("limitations") or [],
            "verification_tips": VERIFICATION_TIPS.get(media_type, []),
        },
    )
