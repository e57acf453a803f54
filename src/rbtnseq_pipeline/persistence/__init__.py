"""Provenance tracking for analysis outputs."""

from rbtnseq_pipeline.persistence.provenance import ProvenanceTracker

__all__ = ["ProvenanceTracker"]
