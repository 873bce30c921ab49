"""Run the three external probes and decode their JSON."""

from pathlib import Path
from typing import Optional

from opusmux.core.descriptor import MediaDescriptor, build_descriptor
from opusmux.core.runner import run_tool
from opusmux.models.probe import ContainerProbe, DelayProbe, StreamProbe, parse_probe
from opusmux.utils.logger import get_logger

logger = get_logger(__name__)


class MediaProber:
    """Probe a container with ffprobe, mkvmerge and mediainfo."""

    def __init__(self, tools: dict[str, str], timeout: Optional[int] = None):
        """Initialize the prober.

        Args:
            tools: Resolved executables by role (see ``require_tools``)
            timeout: Per-probe timeout in seconds
        """
        self.tools = tools
        self.timeout = timeout

    def probe_streams(self, file_path: Path) -> StreamProbe:
        """Codec, channel and language data per stream."""
        cmd = [
            self.tools["ffprobe"],
            "-v",
            "quiet",
            "-print_format",
            "json",
            "-show_streams",
            str(file_path),
        ]
        result = run_tool(cmd, stage="probe", timeout=self.timeout)
        return parse_probe(StreamProbe, result.stdout, "ffprobe")

    def probe_container(self, file_path: Path) -> ContainerProbe:
        """Track typing, IDs and titles."""
        cmd = [self.tools["mkvmerge"], "-J", str(file_path)]
        result = run_tool(cmd, stage="probe", timeout=self.timeout)
        return parse_probe(ContainerProbe, result.stdout, "mkvmerge")

    def probe_delays(self, file_path: Path) -> DelayProbe:
        """Per-stream delay data."""
        cmd = [self.tools["mediainfo"], "--Output=JSON", str(file_path)]
        result = run_tool(cmd, stage="probe", timeout=self.timeout)
        return parse_probe(DelayProbe, result.stdout, "mediainfo")

    def describe(self, file_path: Path) -> MediaDescriptor:
        """Run all probes and merge them.

        Raises:
            ExternalToolFailure: If a probe exits with an error
            ProbeError: If probe output cannot be decoded
            DescriptorMismatch: If the probes disagree
        """
        logger.debug("Probing container", file=str(file_path))

        descriptor = build_descriptor(
            self.probe_streams(file_path),
            self.probe_container(file_path),
            self.probe_delays(file_path),
        )

        logger.info(
            "Container probed",
            file=str(file_path),
            track_count=len(descriptor),
            audio_codecs=[t.codec for t in descriptor.audio_tracks],
            languages=[t.language for t in descriptor.audio_tracks],
        )
        return descriptor
