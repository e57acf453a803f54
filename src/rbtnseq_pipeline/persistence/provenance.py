"""Provenance tracking for analysis reproducibility."""

import hashlib
import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional


class ProvenanceTracker:
    """
    Tracks provenance metadata for analysis runs.

    Records package version, input files (with SHA-256 checksums of the
    ones present on disk), analysis thresholds, config hash and processing
    steps so an output directory can be traced back to the exact tables
    and parameters that produced it.
    """

    def __init__(self, pipeline_version: str, config: "PipelineConfig"):
        """
        Initialize provenance tracker.

        Args:
            pipeline_version: Package version string (e.g., "0.1.0")
            config: PipelineConfig instance
        """
        self.pipeline_version = pipeline_version
        self.config_hash = config.config_hash()
        self.inputs = config.inputs.model_dump(mode="json")
        self.thresholds = config.thresholds.model_dump(mode="json")
        self.input_checksums = _input_checksums(config)
        self.processing_steps = []
        self.created_at = datetime.now(timezone.utc)

    def record_step(self, step_name: str, details: Optional[dict] = None) -> None:
        """
        Record a processing step.

        Args:
            step_name: Name of the processing step
            details: Optional dictionary of additional details
        """
        step = {
            "step_name": step_name,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        if details:
            step["details"] = details
        self.processing_steps.append(step)

    def get_steps(self) -> list[dict]:
        """Get all recorded processing steps."""
        return self.processing_steps

    def create_metadata(self) -> dict:
        """
        Create full provenance metadata dictionary.

        Returns:
            Dictionary with all provenance information
        """
        return {
            "pipeline_version": self.pipeline_version,
            "config_hash": self.config_hash,
            "inputs": self.inputs,
            "input_checksums": self.input_checksums,
            "thresholds": self.thresholds,
            "created_at": self.created_at.isoformat(),
            "processing_steps": self.processing_steps,
        }

    def save_sidecar(self, output_path: Path) -> Path:
        """
        Save provenance metadata as a JSON sidecar file.

        Args:
            output_path: Path to the main output file or directory.
                         Sidecar will be saved as {path}.provenance.json

        Returns:
            Path to the sidecar file
        """
        sidecar_path = output_path.with_suffix(".provenance.json")
        sidecar_path.parent.mkdir(parents=True, exist_ok=True)

        with open(sidecar_path, "w") as f:
            json.dump(self.create_metadata(), f, indent=2, default=str)
        return sidecar_path

    @staticmethod
    def load_sidecar(sidecar_path: Path) -> dict:
        """Load provenance metadata from a sidecar file."""
        with open(sidecar_path) as f:
            return json.load(f)

    @classmethod
    def from_config(
        cls,
        config: "PipelineConfig",
        version: Optional[str] = None
    ) -> "ProvenanceTracker":
        """
        Create ProvenanceTracker from a PipelineConfig.

        Args:
            config: PipelineConfig instance
            version: Version string. If None, uses rbtnseq_pipeline.__version__

        Returns:
            ProvenanceTracker instance
        """
        if version is None:
            from rbtnseq_pipeline import __version__
            version = __version__

        return cls(version, config)


def _file_sha256(path: Path) -> str:
    digest = hashlib.sha256()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(1 << 20), b""):
            digest.update(chunk)
    return digest.hexdigest()


def _input_checksums(config: "PipelineConfig") -> dict[str, str]:
    """SHA-256 of each configured input file; directories and missing paths are skipped."""
    checksums = {}
    for name in type(config.inputs).model_fields:
        path = config.resolve(getattr(config.inputs, name))
        if path is not None and path.is_file():
            checksums[name] = _file_sha256(path)
    return checksums
