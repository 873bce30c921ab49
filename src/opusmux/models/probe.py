"""Typed views of the three external probe outputs.

* ``StreamProbe``: ``ffprobe -show_streams -print_format json``
* ``ContainerProbe``: ``mkvmerge -J``
* ``DelayProbe``: ``mediainfo --Output=JSON``

Only the fields opusmux reads are declared; everything else is ignored.
"""

import json
from typing import Any, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from opusmux.errors import ProbeError

ProbeModel = TypeVar("ProbeModel", bound=BaseModel)


# ffprobe
class FFProbeStream(BaseModel):
    """One stream as reported by ffprobe."""

    index: int
    codec_type: str
    codec_name: Optional[str] = None
    channels: Optional[int] = None
    disposition: dict[str, int] = Field(default_factory=dict)
    tags: dict[str, str] = Field(default_factory=dict)

    @property
    def is_attachment(self) -> bool:
        """Attachment streams, including cover art exposed as an attached picture."""
        return self.codec_type == "attachment" or bool(self.disposition.get("attached_pic"))

    @property
    def language(self) -> Optional[str]:
        return self.tags.get("language") or self.tags.get("LANGUAGE")

    @property
    def title(self) -> Optional[str]:
        return self.tags.get("title") or self.tags.get("TITLE")


class StreamProbe(BaseModel):
    """ffprobe stream listing."""

    streams: list[FFProbeStream] = Field(default_factory=list)


# mkvmerge -J
class MkvTrackProperties(BaseModel):
    """Subset of mkvmerge track properties."""

    track_name: Optional[str] = None
    language: Optional[str] = None


class MkvTrack(BaseModel):
    """One track as reported by mkvmerge."""

    id: int
    type: str  # video | audio | subtitles
    codec: Optional[str] = None
    properties: MkvTrackProperties = Field(default_factory=MkvTrackProperties)


class MkvAttachment(BaseModel):
    """One attachment as reported by mkvmerge."""

    id: int
    file_name: Optional[str] = None
    content_type: Optional[str] = None


class ContainerProbe(BaseModel):
    """mkvmerge identification output."""

    tracks: list[MkvTrack] = Field(default_factory=list)
    attachments: list[MkvAttachment] = Field(default_factory=list)


# mediainfo
class MediaInfoTrack(BaseModel):
    """One mediainfo track entry."""

    model_config = ConfigDict(populate_by_name=True)

    type: str = Field(..., alias="@type")
    stream_order: Optional[int] = Field(default=None, alias="StreamOrder")
    video_delay: Optional[str] = Field(default=None, alias="Video_Delay")

    @field_validator("stream_order", mode="before")
    @classmethod
    def parse_stream_order(cls, v: Any) -> Any:
        """Accept "3" as well as program-qualified forms such as "0-3"."""
        if isinstance(v, str):
            v = v.strip()
            if not v:
                return None
            return v.rsplit("-", 1)[-1]
        return v

    @field_validator("video_delay", mode="before")
    @classmethod
    def normalize_delay(cls, v: Any) -> Optional[str]:
        """Keep delays as decimal strings so rounding stays exact."""
        if v is None:
            return None
        if isinstance(v, bool):
            raise ValueError("Video_Delay must be a number")
        v = str(v).strip()
        return v or None


class MediaInfoMedia(BaseModel):
    """The ``media`` object of mediainfo output."""

    track: list[MediaInfoTrack] = Field(default_factory=list)


class DelayProbe(BaseModel):
    """mediainfo JSON output."""

    media: Optional[MediaInfoMedia] = None

    @property
    def tracks(self) -> list[MediaInfoTrack]:
        return self.media.track if self.media else []

    def audio_tracks(self) -> list[MediaInfoTrack]:
        return [t for t in self.tracks if t.type == "Audio"]


def parse_probe(model: Type[ProbeModel], payload: str | bytes | dict, probe: str) -> ProbeModel:
    """Decode raw probe output into its typed model.

    Args:
        model: Target pydantic model
        payload: Raw JSON text or an already decoded dict
        probe: Probe name, used in error messages

    Returns:
        Model instance

    Raises:
        ProbeError: If the payload is not valid JSON or does not fit the model
    """
    try:
        data = json.loads(payload) if isinstance(payload, (str, bytes)) else payload
        return model.model_validate(data)
    except json.JSONDecodeError as e:
        raise ProbeError(probe, f"not valid JSON ({e})") from e
    except ValidationError as e:
        raise ProbeError(probe, str(e)) from e
