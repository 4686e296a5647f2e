"""
API models shared between the analysis pipeline and the HTTP layer.

Field names are snake_case in Python and camelCase on the wire, matching what
the dashboard client reads.
"""

from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

RiskLevel = Literal["LOW", "MEDIUM", "HIGH", "CRITICAL"]
ConfidenceCategory = Literal["VERY_LOW", "LOW", "MEDIUM", "HIGH", "VERY_HIGH"]
AnalysisQuality = Literal["DEMO", "API", "ENHANCED"]
Impact = Literal["POSITIVE", "NEGATIVE", "NEUTRAL"]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class ConfidenceFactor(CamelModel):
    factor: str
    weight: float
    description: str
    impact: Impact


class ProcessingDetails(CamelModel):
    api_provider: str
    models_used: List[str]
    processing_method: str
    quality_score: float
    confidence_factors: List[ConfidenceFactor]
    processing_warnings: Optional[List[str]] = None


class ModelBreakdown(CamelModel):
    gen_ai: float = Field(alias="genAI")
    face_manipulation: float
    diffusion: Dict[str, float]
    gan: Dict[str, float]
    other: Dict[str, float]


# Image

class FaceDetection(CamelModel):
    faces_detected: int
    face_quality: float
    facial_features: List[str]


class ImageManipulationIndicators(CamelModel):
    compression_artifacts: float
    editing_signs: float
    metadata_inconsistencies: float


class ImageTechnicalAnalysis(CamelModel):
    resolution: str
    color_depth: int
    compression_type: str
    exif_data: Optional[Dict[str, Any]] = None


class ImageAnalysis(CamelModel):
    face_detection: FaceDetection
    manipulation_indicators: ImageManipulationIndicators
    technical_analysis: ImageTechnicalAnalysis


# Video

class FrameAnalysis(CamelModel):
    total_frames: int
    frame_scores: List[float]
    max_score: float
    average_score: float


class VideoManipulationIndicators(CamelModel):
    temporal_inconsistencies: float
    frame_editing_signs: float
    compression_artifacts: float
    audio_video_sync: float


class VideoTechnicalAnalysis(CamelModel):
    resolution: str
    duration: Union[float, str]
    fps: Union[float, str]
    frames_analyzed: int
    max_frame_score: float


class VideoAnalysis(CamelModel):
    frame_analysis: FrameAnalysis
    manipulation_indicators: VideoManipulationIndicators
    technical_analysis: VideoTechnicalAnalysis


# Audio

class VoiceCharacteristics(CamelModel):
    naturalness: float
    consistency: float
    background_noise: float


class SyntheticIndicators(CamelModel):
    artificial_patterns: float
    frequency_anomalies: float
    temporal_inconsistencies: float


class AudioQualityMetrics(CamelModel):
    clarity: float
    stability: float


class AudioTechnicalAnalysis(CamelModel):
    duration: Union[float, str]
    sample_rate: Union[int, str]
    channels: Union[int, str]


class AudioAnalysis(CamelModel):
    voice_characteristics: VoiceCharacteristics
    synthetic_indicators: SyntheticIndicators
    quality_metrics: AudioQualityMetrics
    technical_analysis: AudioTechnicalAnalysis


# Results

class BaseAnalysisResult(CamelModel):
    is_deepfake: bool
    confidence: float = Field(ge=0.0, le=1.0)
    analysis_time: int = 0
    metadata: Dict[str, Any] = Field(default_factory=dict)
    risk_level: RiskLevel
    confidence_category: ConfidenceCategory
    analysis_quality: AnalysisQuality
    processing_details: ProcessingDetails
    recommendations: List[str]
    limitations: List[str]
    model_breakdown: Optional[ModelBreakdown] = None


class ImageAnalysisResult(BaseAnalysisResult):
    type: Literal["image"] = "image"
    sightengine_data: Optional[Dict[str, Any]] = None
    image_analysis: ImageAnalysis


class VideoAnalysisResult(BaseAnalysisResult):
    type: Literal["video"] = "video"
    sightengine_data: Optional[Dict[str, Any]] = None
    video_analysis: VideoAnalysis


class AudioAnalysisResult(BaseAnalysisResult):
    type: Literal["audio"] = "audio"
    resemble_data: Optional[Dict[str, Any]] = None
    audio_analysis: AudioAnalysis


AnalysisResult = Annotated[
    Union[ImageAnalysisResult, VideoAnalysisResult, AudioAnalysisResult],
    Field(discriminator="type"),
]


class AnalysisResponse(CamelModel):
    success: bool
    result: Optional[AnalysisResult] = None
    error: Optional[str] = None
    analysis_id: str
    timestamp: str
    version: str
    processing_notes: Optional[List[str]] = None


# Reports

class ReportSummary(CamelModel):
    overall_risk: RiskLevel
    confidence: float
    recommendation: str
    key_findings: List[str]


class ReportTechnicalDetails(CamelModel):
    processing_time: int
    api_used: str
    models_applied: List[str]
    quality_metrics: Dict[str, float]


class ReportUserGuidance(CamelModel):
    next_steps: List[str]
    caution_notes: List[str]
    verification_tips: List[str]


class AnalysisReport(CamelModel):
    summary: ReportSummary
    technical_details: ReportTechnicalDetails
    user_guidance: ReportUserGuidance
