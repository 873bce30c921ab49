"""Processing pipeline orchestrator."""

import time
from pathlib import Path
from typing import Optional

from opusmux.config import Config
from opusmux.core.classifier import classify
from opusmux.core.muxer import MuxPlanBuilder, run_mux
from opusmux.core.prober import MediaProber
from opusmux.core.runner import require_tools
from opusmux.core.transcoder import TranscodePipeline
from opusmux.core.workspace import Workspace
from opusmux.errors import InputNotFound, OpusmuxError
from opusmux.models.result import ProcessResult
from opusmux.utils.logger import get_logger

logger = get_logger(__name__)


class Pipeline:
    """Orchestrates one container through probing, transcoding and muxing."""

    def __init__(self, config: Config):
        """Initialize the pipeline with configuration.

        Args:
            config: Application configuration
        """
        self.config = config
        self.builder = MuxPlanBuilder()

    def run(
        self, input_path: Path, output_path: Path, downmix: Optional[bool] = None
    ) -> ProcessResult:
        """Process a container, raising on any fatal error.

        Pipeline steps:
        1. Validation (input exists, output differs from input)
        2. Tool check
        3. Probing and descriptor merge
        4. Classification
        5. Transcoding of each transcode-classified track
        6. Mux plan and mkvmerge run

        Steps 5 and 6 run inside a Workspace that is removed on every exit path.

        Args:
            input_path: Container to read
            output_path: Container to write
            downmix: Downmix surround tracks to stereo (None uses the config default)

        Returns:
            ProcessResult with status "success" or "dry_run"

        Raises:
            OpusmuxError: On any fatal condition
        """
        start_time = time.time()
        if downmix is None:
            downmix = self.config.encoding.downmix
        dry_run = self.config.execution.dry_run

        logger.info(
            "Processing file",
            file=str(input_path),
            output=str(output_path),
            downmix=downmix,
            dry_run=dry_run,
        )

        if not input_path.is_file():
            logger.error("Input file not found", file=str(input_path))
            raise InputNotFound(input_path)

        if output_path.resolve() == input_path.resolve():
            raise OpusmuxError(f"Output path must differ from input: {output_path}")

        tools = require_tools(self.config.tools)
        timeout = self.config.processing.timeout_seconds

        descriptor = MediaProber(tools, timeout).describe(input_path)
        partition = classify(descriptor)

        with Workspace(self.config.processing.temp_dir) as workspace:
            transcoder = TranscodePipeline(
                input_path,
                tools,
                workspace,
                normalize_db=self.config.encoding.normalize_db,
                timeout=timeout,
                workers=self.config.processing.workers,
            )
            jobs = [transcoder.plan(t, downmix) for t in partition.transcode_tracks]

            if dry_run:
                artifacts = [transcoder.artifact_for(job) for job in jobs]
            else:
                artifacts = transcoder.run_all(jobs)

            plan = self.builder.build(partition, input_path, output_path, artifacts)
            command = plan.command(tools["mkvmerge"])

            if dry_run:
                logger.info("DRY RUN: Would mux output", command=command)
                return ProcessResult(
                    status="dry_run",
                    file_path=input_path,
                    output_path=output_path,
                    artifacts=artifacts,
                    remuxed_track_ids=list(partition.remux_audio_ids),
                    warnings=list(partition.warnings),
                    mux_command=command,
                )

            run_mux(plan, tools["mkvmerge"], timeout)

        duration_ms = int((time.time() - start_time) * 1000)
        logger.info(
            "File processed successfully",
            file=str(input_path),
            output=str(output_path),
            transcoded=len(artifacts),
            remuxed=len(partition.remux_audio_ids),
            duration_ms=duration_ms,
        )

        return ProcessResult(
            status="success",
            file_path=input_path,
            output_path=output_path,
            artifacts=artifacts,
            remuxed_track_ids=list(partition.remux_audio_ids),
            warnings=list(partition.warnings),
            mux_command=command,
        )

    def process(
        self, input_path: Path, output_path: Path, downmix: Optional[bool] = None
    ) -> ProcessResult:
        """Process a container, reporting fatal errors as a failed result.

        Returns:
            ProcessResult; status "failed" carries the error text and stage
        """
        try:
            return self.run(input_path, output_path, downmix)
        except OpusmuxError as e:
            logger.error(
                "Pipeline failed",
                file=str(input_path),
                stage=e.stage,
                error=str(e),
            )
            return ProcessResult(
                status="failed",
                file_path=input_path,
                output_path=output_path,
                error=str(e),
                stage=e.stage,
            )
