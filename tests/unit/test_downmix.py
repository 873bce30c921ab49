"""Unit tests for downmix planning and bitrate policy."""

import pytest

from opusmux.core.bitrate import resolve_bitrate
from opusmux.core.downmix import GENERIC_STEREO, SURROUND_5_1, SURROUND_7_1, plan_downmix


class TestPlanDownmix:
    """Test formula selection."""

    def test_5_1_dialogue_boost(self):
        """5.1 keeps the center at full gain and weights the rest at 0.30."""
        formula = plan_downmix(6, True)

        assert formula is SURROUND_5_1
        assert formula.weight("left", "FC") == 1.0
        assert formula.weight("right", "FC") == 1.0
        assert formula.weight("left", "FL") == 0.30
        assert formula.weight("left", "BL") == 0.30
        assert formula.weight("right", "FR") == 0.30
        assert formula.weight("right", "BR") == 0.30
        assert formula.weight("left", "FR") is None

    def test_5_1_filter(self):
        """5.1 renders as an ffmpeg pan filter."""
        assert plan_downmix(6, True).filter_args() == [
            "-af",
            "pan=stereo|FL=FC+0.30*FL+0.30*BL|FR=FC+0.30*FR+0.30*BR",
        ]

    def test_7_1_adds_side_channels(self):
        """7.1 weights three channel pairs at 0.30 plus the center."""
        formula = plan_downmix(8, True)

        assert formula is SURROUND_7_1
        left_weighted = [name for name, w in formula.left if w == 0.30]
        right_weighted = [name for name, w in formula.right if w == 0.30]
        assert left_weighted == ["FL", "BL", "SL"]
        assert right_weighted == ["FR", "BR", "SR"]
        assert formula.weight("left", "FC") == 1.0
        assert formula.pan_expression() == (
            "pan=stereo|FL=FC+0.30*FL+0.30*BL+0.30*SL|FR=FC+0.30*FR+0.30*BR+0.30*SR"
        )

    @pytest.mark.parametrize("channels", [7, 10, 12])
    def test_irregular_layouts_use_generic_downmix(self, channels):
        """Other layouts of 6+ channels get a plain reduction to stereo."""
        formula = plan_downmix(channels, True)

        assert formula is GENERIC_STEREO
        assert formula.is_uniform
        assert formula.filter_args() == ["-ac", "2"]

    @pytest.mark.parametrize("channels", [1, 2, 4, 5])
    def test_below_threshold_keeps_layout(self, channels):
        """Fewer than 6 channels are never mixed."""
        assert plan_downmix(channels, True) is None

    @pytest.mark.parametrize("channels", [2, 6, 7, 8])
    def test_not_requested(self, channels):
        """Without a request the layout is preserved."""
        assert plan_downmix(channels, False) is None


class TestResolveBitrate:
    """Test the bitrate table."""

    @pytest.mark.parametrize(
        "channels,expected",
        [(2, 128), (6, 256), (8, 384), (1, 192), (4, 192), (7, 192)],
    )
    def test_by_channel_count(self, channels, expected):
        """Without downmix the source layout decides."""
        assert resolve_bitrate(channels, False) == expected

    @pytest.mark.parametrize("channels", [1, 2, 4, 6, 7, 8])
    def test_downmix_requested(self, channels):
        """A downmix request always means 128 kbps."""
        assert resolve_bitrate(channels, True) == 128

    def test_request_wins_over_applied_layout(self):
        """A 4 channel track keeps its layout but still gets the stereo rate."""
        assert plan_downmix(4, True) is None
        assert resolve_bitrate(4, True) == 128
