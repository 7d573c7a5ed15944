from __future__ import annotations

from typing import List, Literal

from pydantic import BaseModel, ConfigDict, Field


SsmlGender = Literal["MALE", "FEMALE", "NEUTRAL", "SSML_VOICE_GENDER_UNSPECIFIED"]


class Voice(BaseModel):
    """A voice offered by a remote provider's catalog."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    name: str
    language_codes: List[str] = Field(default_factory=list, alias="languageCodes")
    ssml_gender: SsmlGender = Field(
        "SSML_VOICE_GENDER_UNSPECIFIED", alias="ssmlGender"
    )
    natural_sample_rate_hertz: int = Field(0, alias="naturalSampleRateHertz")

    def supports(self, language: str) -> bool:
        return language in self.language_codes


class VoiceCatalog(BaseModel):
    """Envelope returned by the voice listing endpoint."""

    voices: List[Voice] = Field(default_factory=list)
