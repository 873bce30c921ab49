"""Audio track classification: pass through, transcode, or fall back to pass-through."""

from opusmux.core.descriptor import MediaDescriptor
from opusmux.models.plan import (
    ClassificationDecision,
    FallbackRemux,
    Remux,
    Transcode,
    TrackPartition,
)
from opusmux.models.track import TrackInfo, TrackType
from opusmux.utils.logger import get_logger

logger = get_logger(__name__)

# Single source of truth for the remux/transcode boundary
REMUX_CODECS = frozenset({"aac", "opus"})
TRANSCODE_CODECS = frozenset({"dts", "ac3", "eac3", "flac"})

UNSUPPORTED_CODEC = "unsupported codec"


def classify_track(track: TrackInfo) -> ClassificationDecision:
    """Decide what happens to one audio track.

    Args:
        track: An audio track

    Returns:
        Remux, Transcode or FallbackRemux

    Raises:
        ValueError: If the track is not audio
    """
    if not track.is_audio:
        raise ValueError(f"Only audio tracks are classified, got {track.type.value}")

    codec = track.codec.lower()
    if codec in REMUX_CODECS:
        return Remux(track.track_id)
    if codec in TRANSCODE_CODECS:
        return Transcode(track)

    logger.warning(
        "Unsupported codec, copying track unchanged",
        stream_index=track.stream_index,
        track_id=track.track_id,
        codec=codec,
    )
    return FallbackRemux(track.track_id, UNSUPPORTED_CODEC)


def classify(descriptor: MediaDescriptor) -> TrackPartition:
    """Partition a container's tracks for muxing.

    Non-audio tracks are grouped by type. Every audio track gets exactly one
    decision, in encounter order.
    """
    decisions = tuple(classify_track(t) for t in descriptor.audio_tracks)

    partition = TrackPartition(
        video_ids=descriptor.track_ids(TrackType.VIDEO),
        subtitle_ids=descriptor.track_ids(TrackType.SUBTITLE),
        attachment_ids=descriptor.track_ids(TrackType.ATTACHMENT),
        audio=decisions,
    )

    logger.info(
        "Tracks classified",
        remux=list(partition.remux_audio_ids),
        transcode=[t.track_id for t in partition.transcode_tracks],
        fallback=len(partition.warnings),
    )
    return partition
