"""Planning models: classification decisions, downmix formulas, artifacts and the mux plan."""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from opusmux.models.track import TrackInfo


@dataclass(frozen=True)
class Remux:
    """Copy the audio track into the output unchanged."""

    track_id: int


@dataclass(frozen=True)
class Transcode:
    """Run the audio track through extract, normalize and encode."""

    track: TrackInfo

    @property
    def track_id(self) -> int:
        return self.track.track_id


@dataclass(frozen=True)
class FallbackRemux:
    """Copy the audio track unchanged because its codec is not handled."""

    track_id: int
    reason: str


ClassificationDecision = Union[Remux, Transcode, FallbackRemux]


@dataclass(frozen=True)
class TrackPartition:
    """Classifier output: non-audio track IDs by type plus one decision per audio track."""

    video_ids: tuple[int, ...] = ()
    subtitle_ids: tuple[int, ...] = ()
    attachment_ids: tuple[int, ...] = ()
    audio: tuple[ClassificationDecision, ...] = ()

    @property
    def remux_audio_ids(self) -> tuple[int, ...]:
        """Audio track IDs copied from the original container, in encounter order."""
        return tuple(d.track_id for d in self.audio if isinstance(d, (Remux, FallbackRemux)))

    @property
    def transcode_tracks(self) -> tuple[TrackInfo, ...]:
        """Audio tracks to transcode, in encounter order."""
        return tuple(d.track for d in self.audio if isinstance(d, Transcode))

    @property
    def warnings(self) -> tuple[str, ...]:
        return tuple(
            f"track {d.track_id}: {d.reason}" for d in self.audio if isinstance(d, FallbackRemux)
        )


Coefficients = tuple[tuple[str, float], ...]


@dataclass(frozen=True)
class DownmixFormula:
    """Linear mix of input channels into a stereo pair.

    Channel names follow ffmpeg's layout names (FL, FR, FC, BL, BR, SL, SR).
    A formula without coefficients is the uniform N to 2 downmix left to the
    encoder's own channel reduction.
    """

    name: str
    left: Coefficients = ()
    right: Coefficients = ()

    @property
    def is_uniform(self) -> bool:
        return not self.left and not self.right

    def weight(self, output: str, channel: str) -> Optional[float]:
        """Weight of ``channel`` in output ``"left"`` or ``"right"``, None if unused."""
        terms = self.left if output == "left" else self.right
        for name, weight in terms:
            if name == channel:
                return weight
        return None

    def pan_expression(self) -> str:
        """Render as an ffmpeg ``pan`` filter."""

        def side(terms: Coefficients) -> str:
            return "+".join(
                name if weight == 1.0 else f"{weight:.2f}*{name}" for name, weight in terms
            )

        return f"pan=stereo|FL={side(self.left)}|FR={side(self.right)}"

    def filter_args(self) -> list[str]:
        """ffmpeg arguments applying this formula."""
        if self.is_uniform:
            return ["-ac", "2"]
        return ["-af", self.pan_expression()]


@dataclass(frozen=True)
class TranscodeJob:
    """Everything needed to transcode one track; built before any tool runs."""

    track: TrackInfo
    formula: Optional[DownmixFormula]
    bitrate_kbps: int
    extract_path: Path
    normalized_path: Path
    output_path: Path


@dataclass(frozen=True)
class ProcessedArtifact:
    """A transcoded track waiting to be muxed."""

    file_path: Path
    language: str
    title: Optional[str]
    delay_ms: int
    stream_index: int


@dataclass(frozen=True)
class MuxPlan:
    """Ordered mkvmerge arguments (without the executable)."""

    output_path: Path
    args: tuple[str, ...]

    def command(self, mkvmerge: str) -> list[str]:
        return [mkvmerge, *self.args]
