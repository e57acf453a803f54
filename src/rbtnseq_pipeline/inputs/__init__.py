"""Upstream table parsing.

Reads the pool file, result.poolcount, result.colsum, *.codes, fitness tables
and the genome annotation into polars DataFrames with standardized columns.
"""

from rbtnseq_pipeline.inputs.models import (
    AnnotationRecord,
    CodesRecord,
    ColsumRecord,
    EssentialityFlag,
    FitnessRecord,
    InputFormatError,
    PoolEntry,
    ReadCountRecord,
)
from rbtnseq_pipeline.inputs.readers import (
    read_annotation,
    read_codes,
    read_colsum,
    read_fitness_table,
    read_poolcount,
    read_poolfile,
    standardize_columns,
)

__all__ = [
    "AnnotationRecord",
    "CodesRecord",
    "ColsumRecord",
    "EssentialityFlag",
    "FitnessRecord",
    "InputFormatError",
    "PoolEntry",
    "ReadCountRecord",
    "read_annotation",
    "read_codes",
    "read_colsum",
    "read_fitness_table",
    "read_poolcount",
    "read_poolfile",
    "standardize_columns",
]
