"""Pydantic models for pipeline configuration."""

import hashlib
import json
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator


class InputFiles(BaseModel):
    """Paths to the upstream tables consumed by the analysis."""

    poolfile: Path = Field(
        ...,
        description="Barcode -> genomic location reference (C_necator_poolfile.tsv)",
    )
    poolcount: Path | None = Field(
        default=None,
        description="Wide barcode x sample read count table (result.poolcount)",
    )
    colsum: Path | None = Field(
        default=None,
        description="Per-sample read summary (result.colsum)",
    )
    codes_dir: Path | None = Field(
        default=None,
        description="Directory (or single file) of raw *.codes barcode counts",
    )
    fitness: Path = Field(
        ...,
        description="Per-gene, per-condition, per-replicate fitness table",
    )
    annotation: Path = Field(
        ...,
        description="Genome annotation CSV keyed by locus_tag",
    )
    essentiality: Path | None = Field(
        default=None,
        description="Independent steady-state fitness table used for essentiality calls",
    )


class AnalysisThresholds(BaseModel):
    """Cutoffs and selection sizes used by the ranking and classification steps."""

    essential_cutoff: float = Field(
        default=-2.5,
        le=0.0,
        description="Genes with mean normalized fitness strictly below this are essential",
    )
    essential_timepoint: str | None = Field(
        default=None,
        description="Restrict essentiality calls to this timepoint/fraction (e.g. '8gen')",
    )
    top_n: int = Field(
        default=20,
        ge=1,
        description="Number of genes reported per ranked table",
    )
    depletion_threshold: float | None = Field(
        default=None,
        description="Keep depleted genes with combined score <= threshold (overrides top_n)",
    )
    enrichment_threshold: float | None = Field(
        default=None,
        description="Keep enriched genes with combined score >= threshold (overrides top_n)",
    )
    exclude_essential: bool = Field(
        default=True,
        description="Drop genes essential in a compared substrate from rankings",
    )
    plot_sample_size: int = Field(
        default=2000,
        ge=1,
        description="Maximum background points drawn in scatter plots",
    )
    random_seed: int = Field(
        default=42,
        description="Seed for plot decluttering samples",
    )


class Comparison(BaseModel):
    """Two conditions compared at one density fraction."""

    name: str
    condition_a: str
    condition_b: str
    fraction: str
    value_column: Literal["mean_fitness", "median_fitness", "mean_log2fc"] = "mean_fitness"
    substrates: list[str] = Field(
        default_factory=list,
        description="Substrates checked for essentiality (empty checks every substrate)",
    )


class StringDBConfig(BaseModel):
    """STRING protein interaction API settings."""

    base_url: str = Field(
        default="https://string-db.org/api",
        description="STRING API root",
    )
    species: int = Field(
        default=381666,
        description="NCBI taxon ID (381666 = Cupriavidus necator H16)",
    )
    required_score: int = Field(
        default=400,
        ge=0,
        le=1000,
        description="Minimum combined score (0-1000)",
    )
    timeout_seconds: int = Field(
        default=30,
        ge=1,
        description="Request timeout in seconds",
    )
    caller_identity: str = Field(
        default="rbtnseq_pipeline",
        description="Identifier sent with every STRING request",
    )


class PipelineConfig(BaseModel):
    """Main pipeline configuration."""

    data_dir: Path = Field(
        ...,
        description="Directory holding the upstream input tables",
    )
    output_dir: Path = Field(
        ...,
        description="Directory for tables and plots",
    )
    inputs: InputFiles = Field(
        ...,
        description="Input table locations",
    )
    thresholds: AnalysisThresholds = Field(
        default_factory=AnalysisThresholds,
        description="Ranking and essentiality parameters",
    )
    comparisons: list[Comparison] = Field(
        default_factory=list,
        description="Condition pairs to rank",
    )
    string_db: StringDBConfig = Field(
        default_factory=StringDBConfig,
        description="STRING client configuration",
    )

    @field_validator("output_dir")
    @classmethod
    def create_directory(cls, v: Path) -> Path:
        """Create directory if it doesn't exist."""
        v.mkdir(parents=True, exist_ok=True)
        return v

    def resolve(self, path: Path | None) -> Path | None:
        """Resolve an input path relative to data_dir."""
        if path is None:
            return None
        return path if path.is_absolute() else self.data_dir / path

    def get_comparison(self, name: str) -> Comparison:
        """Look up a configured comparison by name.

        Raises:
            KeyError: If no comparison has that name
        """
        for comparison in self.comparisons:
            if comparison.name == name:
                return comparison
        raise KeyError(f"Unknown comparison: {name}")

    def config_hash(self) -> str:
        """
        Compute SHA-256 hash of the configuration.

        Returns a deterministic hash based on all config values,
        useful for tracking which parameters produced an output.
        """
        config_dict = self.model_dump(mode="python")
        config_json = json.dumps(
            config_dict,
            sort_keys=True,
            default=str,
        )
        return hashlib.sha256(config_json.encode()).hexdigest()
