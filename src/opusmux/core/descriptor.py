"""Merge the three probe outputs into one validated track listing."""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Iterator, Optional

from opusmux.errors import DescriptorMismatch, ProbeError
from opusmux.models.probe import (
    ContainerProbe,
    DelayProbe,
    FFProbeStream,
    MkvTrack,
    StreamProbe,
)
from opusmux.models.track import TrackInfo, TrackType
from opusmux.utils.logger import get_logger

logger = get_logger(__name__)

# ffprobe codec_type -> TrackType
STREAM_TYPES = {
    "video": TrackType.VIDEO,
    "audio": TrackType.AUDIO,
    "subtitle": TrackType.SUBTITLE,
    "attachment": TrackType.ATTACHMENT,
}

# mkvmerge track type -> TrackType
CONTAINER_TYPES = {
    "video": TrackType.VIDEO,
    "audio": TrackType.AUDIO,
    "subtitles": TrackType.SUBTITLE,
}


def delay_to_ms(value: Optional[str]) -> int:
    """Convert a delay in seconds to whole milliseconds.

    Rounds half away from zero. A missing value means no delay.

    Args:
        value: Decimal string in seconds, or None

    Returns:
        Signed delay in milliseconds
    """
    if value is None or value == "":
        return 0
    try:
        seconds = Decimal(str(value))
    except InvalidOperation as e:
        raise ProbeError("mediainfo", f"invalid Video_Delay {value!r}") from e
    return int((seconds * 1000).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class MediaDescriptor:
    """Immutable, ordered collection of TrackInfo keyed by stream index."""

    def __init__(self, tracks: list[TrackInfo]):
        self._tracks = tuple(sorted(tracks, key=lambda t: t.stream_index))
        self._by_index = {t.stream_index: t for t in self._tracks}
        if len(self._by_index) != len(self._tracks):
            raise DescriptorMismatch("Duplicate stream index in merged descriptor")

    def __iter__(self) -> Iterator[TrackInfo]:
        return iter(self._tracks)

    def __len__(self) -> int:
        return len(self._tracks)

    def __getitem__(self, stream_index: int) -> TrackInfo:
        return self._by_index[stream_index]

    def __contains__(self, stream_index: object) -> bool:
        return stream_index in self._by_index

    @property
    def tracks(self) -> tuple[TrackInfo, ...]:
        return self._tracks

    @property
    def audio_tracks(self) -> tuple[TrackInfo, ...]:
        """Audio tracks in encounter order."""
        return self.of_type(TrackType.AUDIO)

    def of_type(self, track_type: TrackType) -> tuple[TrackInfo, ...]:
        return tuple(t for t in self._tracks if t.type is track_type)

    def track_ids(self, track_type: TrackType) -> tuple[int, ...]:
        """Container track IDs of one type, in container order."""
        return tuple(t.track_id for t in self.of_type(track_type))


def _audio_delays(delay_probe: DelayProbe, audio_indexes: set[int]) -> dict[int, int]:
    """Map audio stream index to delay, validating the mediainfo view."""
    entries = delay_probe.audio_tracks()
    if len(entries) != len(audio_indexes):
        raise DescriptorMismatch(
            f"Audio track count differs: streams report {len(audio_indexes)}, "
            f"delay probe reports {len(entries)}"
        )

    delays: dict[int, int] = {}
    for entry in entries:
        if entry.stream_order is None or entry.stream_order not in audio_indexes:
            raise DescriptorMismatch(
                f"Delay probe audio entry StreamOrder={entry.stream_order} "
                f"does not match any audio stream"
            )
        if entry.stream_order in delays:
            raise DescriptorMismatch(
                f"Delay probe lists audio stream {entry.stream_order} twice"
            )
        delays[entry.stream_order] = delay_to_ms(entry.video_delay)
    return delays


def _track_info(
    stream: FFProbeStream,
    track_type: TrackType,
    track_id: int,
    container_track: Optional[MkvTrack],
    delay_ms: int,
) -> TrackInfo:
    channel_count = None
    if track_type is TrackType.AUDIO:
        if not stream.channels or stream.channels < 1:
            raise ProbeError("ffprobe", f"audio stream {stream.index} has no channel count")
        channel_count = stream.channels

    title = None
    language = stream.language
    if container_track is not None:
        title = container_track.properties.track_name
        language = language or container_track.properties.language
    title = title or stream.title

    return TrackInfo(
        stream_index=stream.index,
        track_id=track_id,
        type=track_type,
        codec=(stream.codec_name or "unknown").lower(),
        channel_count=channel_count,
        language=language or "und",
        title=title,
        delay_ms=delay_ms,
    )


def build_descriptor(
    stream_probe: StreamProbe,
    container_probe: ContainerProbe,
    delay_probe: DelayProbe,
) -> MediaDescriptor:
    """Correlate the three probes into one descriptor.

    ffprobe tracks line up positionally with mkvmerge tracks, and ffprobe
    attachment streams with mkvmerge attachments. Cover art that ffprobe
    reports as an attached-picture video stream counts as an attachment.
    Audio delays are looked up by mediainfo's StreamOrder.

    Raises:
        DescriptorMismatch: If the probes disagree on count, type or index
        ProbeError: If a stream lacks data required for its type
    """
    streams = sorted(stream_probe.streams, key=lambda s: s.index)
    indexes = [s.index for s in streams]
    if len(set(indexes)) != len(indexes):
        raise DescriptorMismatch("Stream probe reports duplicate stream indexes")

    media_streams = [s for s in streams if not s.is_attachment]
    attachment_streams = [s for s in streams if s.is_attachment]

    if len(media_streams) != len(container_probe.tracks):
        raise DescriptorMismatch(
            f"Track count differs: stream probe reports {len(media_streams)}, "
            f"container probe reports {len(container_probe.tracks)}"
        )
    if len(attachment_streams) != len(container_probe.attachments):
        raise DescriptorMismatch(
            f"Attachment count differs: stream probe reports {len(attachment_streams)}, "
            f"container probe reports {len(container_probe.attachments)}"
        )

    audio_indexes = {s.index for s in media_streams if s.codec_type == "audio"}
    delays = _audio_delays(delay_probe, audio_indexes)

    tracks: list[TrackInfo] = []
    for stream, container_track in zip(media_streams, container_probe.tracks):
        stream_type = STREAM_TYPES.get(stream.codec_type)
        container_type = CONTAINER_TYPES.get(container_track.type)
        if stream_type is None or stream_type is not container_type:
            raise DescriptorMismatch(
                f"Stream {stream.index} is '{stream.codec_type}' but container "
                f"track {container_track.id} is '{container_track.type}'"
            )
        tracks.append(
            _track_info(
                stream,
                stream_type,
                container_track.id,
                container_track,
                delays.get(stream.index, 0),
            )
        )

    for stream, attachment in zip(attachment_streams, container_probe.attachments):
        tracks.append(_track_info(stream, TrackType.ATTACHMENT, attachment.id, None, 0))

    descriptor = MediaDescriptor(tracks)

    logger.debug(
        "Descriptor built",
        tracks=len(descriptor),
        audio=[t.stream_index for t in descriptor.audio_tracks],
        delays={t.stream_index: t.delay_ms for t in descriptor.audio_tracks if t.delay_ms},
    )
    return descriptor
