"""Shared pytest fixtures for opusmux tests."""

import json
import subprocess
from pathlib import Path
from typing import NamedTuple, Optional
from unittest.mock import patch

import pytest

from opusmux.config import Config, ProcessingConfig
from opusmux.models.track import TrackInfo, TrackType

TOOL_NAMES = ("ffprobe", "ffmpeg", "mkvmerge", "mediainfo", "sox", "opusenc")


class ProbePayloads(NamedTuple):
    """Raw JSON as printed by ffprobe, mkvmerge -J and mediainfo."""

    ffprobe: str
    mkvmerge: str
    mediainfo: str


def build_payloads(tracks: list[dict]) -> ProbePayloads:
    """Build consistent probe output for a list of track descriptions.

    Each description has a ``type`` (video, audio, subtitle, attachment, cover)
    and optionally ``codec``, ``channels``, ``language``, ``title`` and
    ``delay`` (seconds, as mediainfo prints it). A ``cover`` is an image
    attachment that ffprobe reports as an attached-picture video stream.
    Attachments and covers must come last.
    """
    streams = []
    mkv_tracks = []
    attachments = []
    mi_tracks = [{"@type": "General"}]
    mi_types = {"video": "Video", "audio": "Audio", "subtitle": "Text"}

    for index, track in enumerate(tracks):
        kind = track["type"]
        stream = {
            "index": index,
            "codec_type": "video" if kind == "cover" else kind,
            "codec_name": track.get("codec"),
            "tags": {},
        }
        if kind == "cover":
            stream["disposition"] = {"default": 0, "attached_pic": 1}
        if track.get("language"):
            stream["tags"]["language"] = track["language"]
        if kind == "audio":
            stream["channels"] = track.get("channels", 2)
        streams.append(stream)

        if kind in ("attachment", "cover"):
            default_name = "cover.jpg" if kind == "cover" else "font.ttf"
            attachments.append(
                {"id": len(attachments) + 1, "file_name": track.get("title", default_name)}
            )
            continue

        properties = {"track_name": track["title"]} if track.get("title") else {}
        mkv_tracks.append(
            {
                "id": len(mkv_tracks),
                "type": "subtitles" if kind == "subtitle" else kind,
                "codec": track.get("codec"),
                "properties": properties,
            }
        )

        entry = {"@type": mi_types[kind], "StreamOrder": str(index)}
        if track.get("delay") is not None:
            entry["Video_Delay"] = track["delay"]
        mi_tracks.append(entry)

    return ProbePayloads(
        ffprobe=json.dumps({"streams": streams}),
        mkvmerge=json.dumps({"tracks": mkv_tracks, "attachments": attachments}),
        mediainfo=json.dumps({"media": {"@ref": "input.mkv", "track": mi_tracks}}),
    )


class FakeTools:
    """Stand-in for ``subprocess.run`` that answers like the real tools.

    ``fail`` maps a tool name to the exit status it should return. For
    mkvmerge the failure only applies to muxing, not to ``-J``.
    """

    def __init__(self, payloads: ProbePayloads, fail: Optional[dict[str, int]] = None):
        self.payloads = payloads
        self.fail = fail or {}
        self.calls: list[list[str]] = []

    def __call__(self, cmd, **kwargs):
        cmd = list(cmd)
        self.calls.append(cmd)
        name = Path(cmd[0]).name
        identify = name == "mkvmerge" and "-J" in cmd

        if name in self.fail and not identify:
            return subprocess.CompletedProcess(cmd, self.fail[name], "", f"{name} error")

        stdout = ""
        if name == "ffprobe":
            stdout = self.payloads.ffprobe
        elif identify:
            stdout = self.payloads.mkvmerge
        elif name == "mediainfo":
            stdout = self.payloads.mediainfo
        return subprocess.CompletedProcess(cmd, 0, stdout, "")

    def calls_to(self, name: str) -> list[list[str]]:
        return [c for c in self.calls if Path(c[0]).name == name]


@pytest.fixture
def probe_payloads():
    """Factory building probe output from track descriptions."""
    return build_payloads


@pytest.fixture
def fake_tools(monkeypatch):
    """Factory installing FakeTools as subprocess.run for a container layout."""

    def install(tracks: list[dict], fail: Optional[dict[str, int]] = None) -> FakeTools:
        tools = FakeTools(build_payloads(tracks), fail)
        monkeypatch.setattr(subprocess, "run", tools)
        return tools

    return install


@pytest.fixture
def resolved_tools():
    """Tool map as returned by require_tools."""
    return {name: f"/usr/bin/{name}" for name in TOOL_NAMES}


@pytest.fixture
def tools_on_path():
    """Pretend every external tool is installed."""
    with patch("shutil.which", side_effect=lambda name: f"/usr/bin/{name}"):
        yield


@pytest.fixture
def input_file(tmp_path):
    """An input container (content is never read by the fake tools)."""
    path = tmp_path / "movie.mkv"
    path.write_bytes(b"\x1a\x45\xdf\xa3")
    return path


@pytest.fixture
def config(tmp_path):
    """Configuration with the workspace under tmp_path."""
    return Config(processing=ProcessingConfig(temp_dir=str(tmp_path / "work")))


@pytest.fixture
def dts_track():
    """A 5.1 DTS track with a title and a sync delay."""
    return TrackInfo(
        stream_index=1,
        track_id=1,
        type=TrackType.AUDIO,
        codec="dts",
        channel_count=6,
        language="eng",
        title="Surround 5.1",
        delay_ms=34,
    )


@pytest.fixture
def aac_track():
    """A stereo AAC track."""
    return TrackInfo(
        stream_index=2,
        track_id=2,
        type=TrackType.AUDIO,
        codec="aac",
        channel_count=2,
        language="jpn",
    )
