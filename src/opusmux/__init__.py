"""opusmux - transcode surround audio tracks to Opus and remux the container."""

__version__ = "0.1.0"
