"""Fetch protein interaction edges from the STRING REST API."""

import io

import httpx
import polars as pl
import structlog
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
)

from rbtnseq_pipeline.config.schema import StringDBConfig

logger = structlog.get_logger()

STRING_API_BASE = "https://string-db.org/api"

# C. necator H16
DEFAULT_SPECIES = 381666

EDGE_COLUMNS = ["protein_a", "protein_b", "combined_score"]


def _empty_edges() -> pl.DataFrame:
    return pl.DataFrame(
        schema={"protein_a": pl.String, "protein_b": pl.String, "combined_score": pl.Float64}
    )


def parse_string_tsv(text: str) -> pl.DataFrame:
    """Parse a STRING ``tsv/network`` response into an edge list.

    Uses the preferred (gene) names when present, falling back to STRING
    identifiers. Duplicate undirected edges are collapsed.

    Args:
        text: Response body with a header line

    Returns:
        DataFrame with protein_a, protein_b, combined_score (0-1) sorted by
        combined_score descending, then protein_a, protein_b
    """
    if not text.strip():
        return _empty_edges()

    raw = pl.read_csv(io.StringIO(text), separator="\t", infer_schema_length=0)
    name_a = "preferredName_A" if "preferredName_A" in raw.columns else "stringId_A"
    name_b = "preferredName_B" if "preferredName_B" in raw.columns else "stringId_B"

    a_first = pl.col(name_a) <= pl.col(name_b)
    edges = raw.select(
        pl.when(a_first).then(pl.col(name_a)).otherwise(pl.col(name_b)).alias("protein_a"),
        pl.when(a_first).then(pl.col(name_b)).otherwise(pl.col(name_a)).alias("protein_b"),
        pl.col("score").cast(pl.Float64).alias("combined_score"),
    )

    return (
        edges.group_by(["protein_a", "protein_b"])
        .agg(pl.col("combined_score").max())
        .sort(["combined_score", "protein_a", "protein_b"], descending=[True, False, False])
    )


@retry(
    stop=stop_after_attempt(5),
    wait=wait_exponential(multiplier=1, min=4, max=60),
    retry=retry_if_exception_type(
        (httpx.HTTPStatusError, httpx.ConnectError, httpx.TimeoutException)
    ),
)
def fetch_string_network(
    identifiers: list[str],
    species: int = DEFAULT_SPECIES,
    required_score: int = 400,
    base_url: str = STRING_API_BASE,
    timeout: float = 30.0,
    caller_identity: str = "rbtnseq_pipeline",
) -> pl.DataFrame:
    """Query STRING for the interaction network among a gene list.

    Args:
        identifiers: Locus tags or gene names
        species: NCBI taxon ID
        required_score: Minimum combined score on STRING's 0-1000 scale
        base_url: STRING API root
        timeout: Request timeout in seconds
        caller_identity: Identifier sent to STRING

    Returns:
        Edge list from parse_string_tsv (empty for an empty identifier list)

    Raises:
        httpx.HTTPStatusError: On HTTP errors (after retries)
        httpx.ConnectError: On connection errors (after retries)
        httpx.TimeoutException: On timeout (after retries)
    """
    if not identifiers:
        return _empty_edges()

    logger.info(
        "string_fetch_start",
        identifier_count=len(identifiers),
        species=species,
        required_score=required_score,
    )

    url = f"{base_url.rstrip('/')}/tsv/network"
    data = {
        "identifiers": "\r".join(identifiers),
        "species": species,
        "required_score": required_score,
        "caller_identity": caller_identity,
    }

    with httpx.Client(timeout=timeout) as client:
        response = client.post(url, data=data)
        response.raise_for_status()
        text = response.text

    edges = parse_string_tsv(text)

    logger.info("string_fetch_complete", edges=edges.height)
    return edges


def fetch_string_network_from_config(
    identifiers: list[str],
    config: StringDBConfig,
) -> pl.DataFrame:
    """fetch_string_network with settings from the string_db config section."""
    return fetch_string_network(
        identifiers,
        species=config.species,
        required_score=config.required_score,
        base_url=config.base_url,
        timeout=float(config.timeout_seconds),
        caller_identity=config.caller_identity,
    )
