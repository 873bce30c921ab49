"""Exception hierarchy for opusmux.

Every fatal condition derives from :class:`OpusmuxError`. Unsupported codecs
are not errors: they degrade to a fallback remux with a warning.
"""

from pathlib import Path
from typing import Optional


class OpusmuxError(Exception):
    """Base class for all fatal opusmux errors."""

    stage: str = "setup"


class ToolMissing(OpusmuxError):
    """A required external tool is not installed or not on PATH."""

    def __init__(self, tool: str, executable: str):
        self.tool = tool
        self.executable = executable
        super().__init__(f"Required tool not found: {tool} ({executable})")


class InputNotFound(OpusmuxError):
    """The input container does not exist or is not a regular file."""

    def __init__(self, path: Path):
        self.path = path
        super().__init__(f"Input file not found: {path}")


class ProbeError(OpusmuxError):
    """A probe produced output that could not be decoded."""

    stage = "probe"

    def __init__(self, probe: str, message: str):
        self.probe = probe
        super().__init__(f"{probe} output invalid: {message}")


class DescriptorMismatch(OpusmuxError):
    """The three probes disagree on track identity or count."""

    stage = "describe"


class ExternalToolFailure(OpusmuxError):
    """An external tool exited with a failure status or timed out."""

    def __init__(
        self,
        stage: str,
        tool: str,
        returncode: Optional[int],
        stderr: str = "",
        stream_index: Optional[int] = None,
        timed_out: bool = False,
    ):
        self.stage = stage
        self.tool = tool
        self.returncode = returncode
        self.stderr = stderr
        self.stream_index = stream_index
        self.timed_out = timed_out

        where = f" for stream {stream_index}" if stream_index is not None else ""
        if timed_out:
            status = "timed out"
        elif returncode is None:
            status = "could not be started"
        else:
            status = f"exited with {returncode}"
        message = f"{stage} failed{where}: {tool} {status}"
        if stderr:
            message += f": {stderr.strip()[:500]}"
        super().__init__(message)
