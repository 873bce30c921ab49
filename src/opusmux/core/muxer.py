"""Build and run the mkvmerge command that reassembles the container."""

from pathlib import Path
from typing import Optional, Sequence

from opusmux.core.runner import run_tool
from opusmux.models.plan import MuxPlan, ProcessedArtifact, TrackPartition
from opusmux.utils.logger import get_logger

logger = get_logger(__name__)

# mkvmerge exits with 1 when it only emitted warnings
MKVMERGE_OK_CODES = (0, 1)


def _id_list(ids: Sequence[int]) -> str:
    return ",".join(str(i) for i in ids)


class MuxPlanBuilder:
    """Assemble mkvmerge arguments for one output container."""

    def build(
        self,
        partition: TrackPartition,
        input_path: Path,
        output_path: Path,
        artifacts: Sequence[ProcessedArtifact],
    ) -> MuxPlan:
        """Build the plan.

        Original tracks are selected per type from the input file; each
        transcoded artifact is appended after it with its language, title
        and sync delay.

        Args:
            partition: Classifier output
            input_path: Original container
            output_path: Container to write
            artifacts: Transcoded tracks in audio-stream encounter order

        Returns:
            The mux plan

        Raises:
            ValueError: If the artifacts do not match the transcode set of
                the partition, in order
        """
        expected = [t.stream_index for t in partition.transcode_tracks]
        received = [a.stream_index for a in artifacts]
        if expected != received:
            raise ValueError(
                f"Artifacts {received} do not match transcoded streams {expected}"
            )

        args: list[str] = ["-o", str(output_path)]

        for flag, ids in (
            ("-d", partition.video_ids),
            ("-s", partition.subtitle_ids),
            ("-t", partition.attachment_ids),
        ):
            if ids:
                args.extend([flag, _id_list(ids)])

        if partition.remux_audio_ids:
            args.extend(["-a", _id_list(partition.remux_audio_ids)])
        else:
            args.append("--no-audio")

        args.append(str(input_path))

        for artifact in artifacts:
            args.extend(["--language", f"0:{artifact.language}"])
            if artifact.title:
                args.extend(["--track-name", f"0:{artifact.title}"])
            if artifact.delay_ms != 0:
                args.extend(["--sync", f"0:{artifact.delay_ms}"])
            args.append(str(artifact.file_path))

        plan = MuxPlan(output_path=output_path, args=tuple(args))
        logger.debug("Mux plan built", args=list(plan.args))
        return plan


def run_mux(plan: MuxPlan, mkvmerge: str, timeout: Optional[int] = None) -> None:
    """Execute a mux plan.

    Raises:
        ExternalToolFailure: If mkvmerge reports an error
    """
    logger.info("Muxing output", output=str(plan.output_path))
    plan.output_path.parent.mkdir(parents=True, exist_ok=True)
    run_tool(plan.command(mkvmerge), stage="mux", timeout=timeout, ok_codes=MKVMERGE_OK_CODES)
