"""Downmix formula selection."""

from typing import Optional

from opusmux.models.plan import DownmixFormula

# Surround weight; the center channel always passes at full gain
DIALOGUE_BOOST_WEIGHT = 0.30

DOWNMIX_MIN_CHANNELS = 6

SURROUND_5_1 = DownmixFormula(
    name="5.1-dialogue",
    left=(("FC", 1.0), ("FL", DIALOGUE_BOOST_WEIGHT), ("BL", DIALOGUE_BOOST_WEIGHT)),
    right=(("FC", 1.0), ("FR", DIALOGUE_BOOST_WEIGHT), ("BR", DIALOGUE_BOOST_WEIGHT)),
)

SURROUND_7_1 = DownmixFormula(
    name="7.1-dialogue",
    left=(
        ("FC", 1.0),
        ("FL", DIALOGUE_BOOST_WEIGHT),
        ("BL", DIALOGUE_BOOST_WEIGHT),
        ("SL", DIALOGUE_BOOST_WEIGHT),
    ),
    right=(
        ("FC", 1.0),
        ("FR", DIALOGUE_BOOST_WEIGHT),
        ("BR", DIALOGUE_BOOST_WEIGHT),
        ("SR", DIALOGUE_BOOST_WEIGHT),
    ),
)

# Irregular layouts: plain channel reduction, no custom weighting
GENERIC_STEREO = DownmixFormula(name="generic-stereo")


def plan_downmix(channel_count: int, downmix_requested: bool) -> Optional[DownmixFormula]:
    """Select the downmix for a track.

    Args:
        channel_count: Source channel count
        downmix_requested: Whether the user asked for stereo output

    Returns:
        The formula to apply, or None to keep the original layout
    """
    if not downmix_requested or channel_count < DOWNMIX_MIN_CHANNELS:
        return None
    if channel_count == 6:
        return SURROUND_5_1
    if channel_count == 8:
        return SURROUND_7_1
    return GENERIC_STEREO
