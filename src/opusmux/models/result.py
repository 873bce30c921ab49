"""Run result model."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal, Optional

from opusmux.models.plan import ProcessedArtifact


@dataclass
class ProcessResult:
    """Result of processing a single container."""

    status: Literal["success", "failed", "dry_run"]
    file_path: Path
    output_path: Optional[Path] = None
    artifacts: list[ProcessedArtifact] = field(default_factory=list)
    remuxed_track_ids: list[int] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    mux_command: list[str] = field(default_factory=list)
    error: Optional[str] = None
    stage: Optional[str] = None  # Stage that failed

    def __str__(self) -> str:
        """Human-readable representation."""
        if self.status == "success":
            return (
                f"{self.file_path.name} -> {self.output_path}: "
                f"{len(self.artifacts)} transcoded, {len(self.remuxed_track_ids)} copied"
            )
        elif self.status == "dry_run":
            return (
                f"{self.file_path.name}: would transcode {len(self.artifacts)} "
                f"and copy {len(self.remuxed_track_ids)} audio track(s) (dry run)"
            )
        else:
            return f"{self.file_path.name}: Failed during {self.stage} ({self.error})"
