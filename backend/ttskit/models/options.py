from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Mapping, Optional


DEFAULT_LANGUAGE = "zh-CN"
DEFAULT_PITCH = 1.0
DEFAULT_RATE = 1.0
DEFAULT_VOLUME = 1.0


@dataclass(frozen=True)
class SynthesisOptions:
    """Per-call synthesis parameters.

    Fields left as None fall back to the defaults above when the options are
    resolved, so every backend shapes its request from the same values
    whether the caller spelled them out or not. `voice` is the exception:
    each backend picks its own default voice.
    """

    lang: Optional[str] = None
    pitch: Optional[float] = None
    rate: Optional[float] = None
    volume: Optional[float] = None
    voice: Optional[str] = None

    def __post_init__(self) -> None:
        # JSON bodies must not differ between 1 and 1.0.
        for name in ("pitch", "rate", "volume"):
            value = getattr(self, name)
            if value is not None:
                object.__setattr__(self, name, float(value))
        if self.volume is not None and not 0.0 <= self.volume <= 1.0:
            raise ValueError(f"volume must be within [0, 1], got {self.volume}")
        if self.rate is not None and self.rate <= 0:
            raise ValueError(f"rate must be positive, got {self.rate}")
        if self.pitch is not None and self.pitch <= 0:
            raise ValueError(f"pitch must be positive, got {self.pitch}")

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> "SynthesisOptions":
        """Build options from a loose mapping, ignoring unknown and None keys."""
        if not data:
            return cls()
        known = ("lang", "pitch", "rate", "volume", "voice")
        return cls(**{k: data[k] for k in known if data.get(k) is not None})

    def resolved(self) -> "SynthesisOptions":
        return replace(
            self,
            lang=self.lang or DEFAULT_LANGUAGE,
            pitch=DEFAULT_PITCH if self.pitch is None else self.pitch,
            rate=DEFAULT_RATE if self.rate is None else self.rate,
            volume=DEFAULT_VOLUME if self.volume is None else self.volume,
        )


@dataclass(frozen=True)
class BoundaryEvent:
    """Progress marker emitted while the local engine speaks."""

    name: str
    char_index: int
