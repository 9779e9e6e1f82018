"""
Request/response models.

Rationale:
- Envelopes are Pydantic models so the frontend knows exactly what to expect.
- The analysis record is a TypedDict: the parser passes the model's JSON through
  as-is, so there is nothing to validate, only keys to document.
"""

from typing import Literal, Optional, TypedDict, Union

from pydantic import BaseModel

Confidence = Literal["High", "Medium", "Low"]
Trend = Literal["Bullish", "Bearish", "Sideways"]
Number = Union[int, float]


class ImagePayload(BaseModel):
    data: bytes
    media_type: str
    filename: Optional[str] = None

    @property
    def size(self) -> int:
        return len(self.data)


class AnalysisRecord(TypedDict, total=False):
    pattern: str
    confidence: Confidence
    timeframe: Optional[str]
    trend: Trend
    entryPoint: Optional[Number]
    stopLoss: Optional[Number]
    target: Optional[Number]
    riskReward: Optional[str]
    explanation: str


class ImageInfo(BaseModel):
    source: Literal["sample", "upload"]
    filename: Optional[str] = None
    size: int
    media_type: str


class AnalysisResponse(BaseModel):
    success: bool
    analysis: Optional[str] = None
    error: Optional[str] = None
    details: Optional[str] = None
    timestamp: Optional[str] = None
    image_info: Optional[ImageInfo] = None


class HealthResponse(BaseModel):
    status: str = "ok"
    model: str
