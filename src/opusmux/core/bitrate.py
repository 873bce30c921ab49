"""Target bitrate selection."""

DOWNMIX_KBPS = 128
FALLBACK_KBPS = 192
CHANNEL_KBPS = {
    2: 128,
    6: 256,
    8: 384,
}


def resolve_bitrate(channel_count: int, downmix_requested: bool) -> int:
    """Target Opus bitrate in kbps.

    Keyed on the requested flag, not on whether a downmix formula was
    actually applied: a 4 channel track with downmix requested keeps its
    layout but still gets the stereo rate.
    """
    if downmix_requested:
        return DOWNMIX_KBPS
    return CHANNEL_KBPS.get(channel_count, FALLBACK_KBPS)
