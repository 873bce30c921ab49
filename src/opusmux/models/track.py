"""Track data models."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class TrackType(Enum):
    """Stream types found in a container."""

    VIDEO = "video"
    AUDIO = "audio"
    SUBTITLE = "subtitle"
    ATTACHMENT = "attachment"


@dataclass(frozen=True)
class TrackInfo:
    """Merged view of one stream, built from all three probes."""

    stream_index: int  # Demux order, addresses the stream for extraction
    track_id: int  # Container track ID, used for mkvmerge selection
    type: TrackType
    codec: str  # Lowercase codec name (e.g. "dts", "h264")
    channel_count: Optional[int] = None  # Audio only
    language: str = "und"
    title: Optional[str] = None
    delay_ms: int = 0  # Signed A/V sync delay

    @property
    def is_audio(self) -> bool:
        return self.type is TrackType.AUDIO

    def __str__(self) -> str:
        """Human-readable representation."""
        title_part = f" ({self.title})" if self.title else ""
        channels = f" {self.channel_count}ch" if self.channel_count else ""
        return (
            f"Stream {self.stream_index} [id {self.track_id}]: "
            f"{self.type.value} {self.codec}{channels} {self.language}{title_part}"
        )
