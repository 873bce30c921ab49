"""External tool discovery and invocation."""

import shutil
import subprocess
from typing import Optional, Sequence

from opusmux.config import ToolsConfig
from opusmux.errors import ExternalToolFailure, ToolMissing
from opusmux.utils.logger import get_logger

logger = get_logger(__name__)


def require_tools(tools: ToolsConfig) -> dict[str, str]:
    """Resolve every required tool to an executable path.

    Args:
        tools: Tool configuration

    Returns:
        Map of tool role to resolved executable

    Raises:
        ToolMissing: For the first tool that cannot be found
    """
    resolved = {}
    for role, executable in tools.required().items():
        path = shutil.which(executable)
        if not path:
            logger.error("Required tool not found", tool=role, executable=executable)
            raise ToolMissing(role, executable)
        resolved[role] = path

    logger.debug("Tools resolved", tools=resolved)
    return resolved


def run_tool(
    cmd: Sequence[str],
    *,
    stage: str,
    stream_index: Optional[int] = None,
    timeout: Optional[int] = None,
    ok_codes: tuple[int, ...] = (0,),
) -> subprocess.CompletedProcess:
    """Run an external tool with an argument list (never through a shell).

    Args:
        cmd: Executable followed by its arguments
        stage: Pipeline stage, for error context
        stream_index: Stream being processed, if any
        timeout: Seconds before the call is abandoned, None to wait indefinitely
        ok_codes: Exit statuses treated as success

    Returns:
        The completed process

    Raises:
        ExternalToolFailure: On a non-accepted exit status, a timeout, or if
            the executable cannot be started
    """
    cmd = [str(part) for part in cmd]
    tool = cmd[0]

    logger.debug("Running tool", stage=stage, stream_index=stream_index, command=cmd)

    try:
        result = subprocess.run(
            cmd, capture_output=True, encoding="utf-8", errors="replace", timeout=timeout
        )
    except subprocess.TimeoutExpired as e:
        logger.error(
            "Tool timeout", stage=stage, tool=tool, stream_index=stream_index, timeout=timeout
        )
        raise ExternalToolFailure(
            stage, tool, None, stream_index=stream_index, timed_out=True
        ) from e
    except OSError as e:
        logger.error("Tool could not be started", stage=stage, tool=tool, error=str(e))
        raise ExternalToolFailure(stage, tool, None, str(e), stream_index) from e

    if result.returncode not in ok_codes:
        logger.error(
            "Tool failed",
            stage=stage,
            tool=tool,
            stream_index=stream_index,
            returncode=result.returncode,
            stderr=(result.stderr or "")[:500],
        )
        raise ExternalToolFailure(
            stage, tool, result.returncode, result.stderr or "", stream_index
        )

    if result.returncode != 0:
        logger.warning(
            "Tool finished with warnings",
            stage=stage,
            tool=tool,
            returncode=result.returncode,
            output=(result.stdout or "")[-500:],
        )

    return result
