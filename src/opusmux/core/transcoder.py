"""Per-track extract, normalize and encode stages."""

from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Optional, Sequence

from opusmux.core.bitrate import resolve_bitrate
from opusmux.core.downmix import plan_downmix
from opusmux.core.runner import run_tool
from opusmux.core.workspace import Workspace
from opusmux.models.plan import ProcessedArtifact, TranscodeJob
from opusmux.models.track import TrackInfo
from opusmux.utils.logger import get_logger

logger = get_logger(__name__)

INTERMEDIATE_SUFFIX = ".flac"
OUTPUT_SUFFIX = ".opus"


class TranscodePipeline:
    """Turns transcode-classified tracks into Opus files inside a workspace.

    Stages run strictly in order for a track and any failure aborts the run:

    1. extract: ffmpeg demuxes the stream to FLAC, applying the downmix
    2. normalize: sox scales to the configured peak with clipping guard
    3. encode: opusenc in VBR mode at the resolved bitrate
    """

    def __init__(
        self,
        input_path: Path,
        tools: dict[str, str],
        workspace: Workspace,
        normalize_db: float = -1.0,
        timeout: Optional[int] = None,
        workers: int = 1,
    ):
        """Initialize the pipeline.

        Args:
            input_path: Source container
            tools: Resolved executables by role
            workspace: Active workspace owning every produced file
            normalize_db: Peak level passed to ``sox --norm``
            timeout: Per-stage timeout in seconds, None to wait indefinitely
            workers: Number of tracks processed concurrently
        """
        self.input_path = input_path
        self.tools = tools
        self.workspace = workspace
        self.normalize_db = normalize_db
        self.timeout = timeout
        self.workers = workers

    def plan(self, track: TrackInfo, downmix_requested: bool) -> TranscodeJob:
        """Resolve formula, bitrate and file names for one track."""
        formula = plan_downmix(track.channel_count, downmix_requested)
        bitrate = resolve_bitrate(track.channel_count, downmix_requested)
        idx = track.stream_index

        job = TranscodeJob(
            track=track,
            formula=formula,
            bitrate_kbps=bitrate,
            extract_path=self.workspace.path_for(idx, "extract", INTERMEDIATE_SUFFIX),
            normalized_path=self.workspace.path_for(idx, "normalize", INTERMEDIATE_SUFFIX),
            output_path=self.workspace.path_for(idx, "encode", OUTPUT_SUFFIX),
        )

        logger.info(
            "Track planned",
            stream_index=idx,
            codec=track.codec,
            channels=track.channel_count,
            downmix=formula.name if formula else None,
            bitrate_kbps=bitrate,
        )
        return job

    def extract_command(self, job: TranscodeJob) -> list[str]:
        cmd = [
            self.tools["ffmpeg"],
            "-hide_banner",
            "-nostdin",
            "-v",
            "error",
            "-y",
            "-i",
            str(self.input_path),
            "-map",
            f"0:{job.track.stream_index}",
            "-vn",
            "-sn",
            "-dn",
        ]
        if job.formula is not None:
            cmd.extend(job.formula.filter_args())
        cmd.extend(["-c:a", "flac", str(job.extract_path)])
        return cmd

    def normalize_command(self, job: TranscodeJob) -> list[str]:
        return [
            self.tools["sox"],
            "-G",
            f"--norm={self.normalize_db:g}",
            str(job.extract_path),
            str(job.normalized_path),
        ]

    def encode_command(self, job: TranscodeJob) -> list[str]:
        return [
            self.tools["opusenc"],
            "--quiet",
            "--vbr",
            "--bitrate",
            str(job.bitrate_kbps),
            str(job.normalized_path),
            str(job.output_path),
        ]

    def run(self, job: TranscodeJob) -> ProcessedArtifact:
        """Run all three stages for one track.

        Raises:
            ExternalToolFailure: If any stage fails
        """
        idx = job.track.stream_index
        stages = (
            ("extract", self.extract_command(job)),
            ("normalize", self.normalize_command(job)),
            ("encode", self.encode_command(job)),
        )
        for stage, cmd in stages:
            logger.debug("Stage started", stage=stage, stream_index=idx)
            run_tool(cmd, stage=stage, stream_index=idx, timeout=self.timeout)

        logger.info("Track transcoded", stream_index=idx, output=str(job.output_path))
        return self.artifact_for(job)

    @staticmethod
    def artifact_for(job: TranscodeJob) -> ProcessedArtifact:
        """The artifact a job produces, carrying the track's metadata for muxing."""
        return ProcessedArtifact(
            file_path=job.output_path,
            language=job.track.language,
            title=job.track.title,
            delay_ms=job.track.delay_ms,
            stream_index=job.track.stream_index,
        )

    def run_all(self, jobs: Sequence[TranscodeJob]) -> list[ProcessedArtifact]:
        """Transcode every job, returning artifacts in the order given.

        With more than one worker, tracks run concurrently; the first failure
        cancels jobs that have not started yet and is re-raised.
        """
        if self.workers <= 1 or len(jobs) <= 1:
            return [self.run(job) for job in jobs]

        with ThreadPoolExecutor(max_workers=self.workers) as pool:
            futures = [pool.submit(self.run, job) for job in jobs]
            try:
                return [future.result() for future in futures]
            except BaseException:
                for future in futures:
                    future.cancel()
                raise
