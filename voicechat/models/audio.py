"""Audio-related data models."""

from dataclasses import dataclass
from enum import Enum


@dataclass(frozen=True)
class AmplitudeSample:
    """Instantaneous microphone loudness, normalized to 0.0-1.0."""
    level: float

    def __post_init__(self):
        # Clamp between 0 and 1
        object.__setattr__(self, "level", min(max(float(self.level), 0.0), 1.0))


SILENCE = AmplitudeSample(0.0)


class AudioEncoding(Enum):
    """Container/codec pairs the capture can write, as (format, subtype)."""
    OPUS = ("OGG", "OPUS")
    VORBIS = ("OGG", "VORBIS")
    WAV = ("WAV", "PCM_16")

    @property
    def container(self) -> str:
        return self.value[0]

    @property
    def codec(self) -> str:
        return self.value[1]
