"""Protein interaction network lookups (STRING)."""

from rbtnseq_pipeline.interactions.string_db import (
    DEFAULT_SPECIES,
    STRING_API_BASE,
    fetch_string_network,
    fetch_string_network_from_config,
    parse_string_tsv,
)

__all__ = [
    "DEFAULT_SPECIES",
    "STRING_API_BASE",
    "fetch_string_network",
    "fetch_string_network_from_config",
    "parse_string_tsv",
]
