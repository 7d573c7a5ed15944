from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from .options import SynthesisOptions
from .voice import Voice


class SpeechRequest(BaseModel):
    text: str = Field(..., min_length=1, description="Text to speak")
    lang: Optional[str] = Field(None, description="BCP-47 language tag")
    pitch: Optional[float] = Field(None, gt=0, description="Pitch multiplier")
    rate: Optional[float] = Field(None, gt=0, description="Rate multiplier")
    volume: Optional[float] = Field(None, ge=0, le=1, description="Volume in [0, 1]")
    voice: Optional[str] = Field(None, description="Backend-specific voice name")

    def to_options(self) -> SynthesisOptions:
        return SynthesisOptions(
            lang=self.lang,
            pitch=self.pitch,
            rate=self.rate,
            volume=self.volume,
            voice=self.voice,
        )


class SpeechAcceptedResponse(BaseModel):
    status: Literal["accepted"] = "accepted"
    backend: str


class BackendsResponse(BaseModel):
    backends: List[str]
    active: str


class VoicesResponse(BaseModel):
    voices: List[Voice]


class HealthResponse(BaseModel):
    status: str
