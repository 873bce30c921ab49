"""Unit tests for audio track classification."""

import pytest

from opusmux.core.classifier import classify, classify_track
from opusmux.core.descriptor import MediaDescriptor
from opusmux.models.plan import FallbackRemux, Remux, Transcode
from opusmux.models.track import TrackInfo, TrackType


def _audio(stream_index, codec, channels=2, language="eng"):
    return TrackInfo(
        stream_index=stream_index,
        track_id=stream_index,
        type=TrackType.AUDIO,
        codec=codec,
        channel_count=channels,
        language=language,
    )


class TestClassifyTrack:
    """Test the codec table."""

    @pytest.mark.parametrize("codec", ["aac", "opus", "AAC", "Opus"])
    @pytest.mark.parametrize("channels", [1, 2, 6, 8])
    def test_remux_codecs(self, codec, channels):
        """AAC and Opus are always passed through."""
        decision = classify_track(_audio(1, codec, channels, language="fre"))
        assert decision == Remux(1)

    @pytest.mark.parametrize("codec", ["dts", "ac3", "eac3", "flac", "DTS", "EAC3"])
    def test_transcode_codecs(self, codec):
        """DTS, AC-3, E-AC-3 and FLAC are always transcoded."""
        track = _audio(3, codec, 6)
        decision = classify_track(track)
        assert isinstance(decision, Transcode)
        assert decision.track is track
        assert decision.track_id == 3

    @pytest.mark.parametrize("codec", ["truehd", "mp3", "pcm_s16le", "dts-hd", "unknown"])
    def test_unsupported_codecs_fall_back(self, codec):
        """Any other codec is copied with a reason."""
        decision = classify_track(_audio(2, codec))
        assert decision == FallbackRemux(2, "unsupported codec")

    def test_rejects_non_audio(self):
        """Non-audio tracks are never classified."""
        video = TrackInfo(0, 0, TrackType.VIDEO, "h264")
        with pytest.raises(ValueError, match="Only audio"):
            classify_track(video)


class TestClassify:
    """Test partitioning a whole descriptor."""

    @pytest.fixture
    def descriptor(self):
        return MediaDescriptor(
            [
                TrackInfo(0, 0, TrackType.VIDEO, "hevc"),
                _audio(1, "dts", 6),
                _audio(2, "aac", 2),
                _audio(3, "truehd", 8),
                _audio(4, "ac3", 6),
                TrackInfo(5, 5, TrackType.SUBTITLE, "subrip"),
                TrackInfo(6, 6, TrackType.SUBTITLE, "ass"),
                TrackInfo(7, 1, TrackType.ATTACHMENT, "ttf"),
            ]
        )

    def test_one_decision_per_audio_track(self, descriptor):
        """Every audio track yields exactly one decision, in encounter order."""
        partition = classify(descriptor)

        assert len(partition.audio) == 4
        assert [d.track_id for d in partition.audio] == [1, 2, 3, 4]

    def test_groups_non_audio_by_type(self, descriptor):
        """Non-audio tracks are grouped by type."""
        partition = classify(descriptor)

        assert partition.video_ids == (0,)
        assert partition.subtitle_ids == (5, 6)
        assert partition.attachment_ids == (1,)

    def test_remux_and_transcode_sets_are_disjoint(self, descriptor):
        """A track is either copied or transcoded, never both."""
        partition = classify(descriptor)

        transcode_ids = {t.track_id for t in partition.transcode_tracks}
        assert partition.remux_audio_ids == (2, 3)
        assert transcode_ids == {1, 4}
        assert not transcode_ids & set(partition.remux_audio_ids)

    def test_fallback_records_warning(self, descriptor):
        """Unsupported codecs leave a warning on the partition."""
        partition = classify(descriptor)
        assert partition.warnings == ("track 3: unsupported codec",)

    def test_empty_groups(self):
        """Containers without a type produce empty groups."""
        partition = classify(MediaDescriptor([_audio(0, "aac")]))

        assert partition.video_ids == ()
        assert partition.subtitle_ids == ()
        assert partition.attachment_ids == ()
        assert partition.remux_audio_ids == (0,)
        assert partition.transcode_tracks == ()
