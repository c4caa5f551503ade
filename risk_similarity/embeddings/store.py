"""Embedding maintenance for stored risks.

Embeddings are computed on the write path and cached on the risk row so
that similarity requests only need to embed the query. Both operations
here are best effort: a failed embedding never blocks the risk itself.
"""

import logging
from typing import Any, Optional

from risk_similarity.embeddings.normalizer import DEFAULT_MAX_LENGTH, normalize_risk_text
from risk_similarity.models import BackfillSummary

logger = logging.getLogger(__name__)


def compute_and_store_embedding(
    repository: Any,
    embedding_client: Any,
    risk_id: str,
    title: str,
    threat_description: Optional[str] = None,
    description: Optional[str] = None,
    max_length: int = DEFAULT_MAX_LENGTH,
) -> Optional[list[float]]:
    """Compute the embedding for a risk and store it.

    Args:
        repository: Risk repository exposing update_embedding().
        embedding_client: Object exposing embed(text).
        risk_id: Id of the risk to update.
        title: Risk title.
        threat_description: Optional threat description.
        description: Optional description.
        max_length: Maximum normalized text length.

    Returns:
        The stored embedding, or None if none could be computed or stored.
    """
    text = normalize_risk_text(title, threat_description, description, max_length)
    embedding = embedding_client.embed(text)
    if embedding is None:
        logger.error("Failed to generate embedding for risk %s", risk_id)
        return None

    try:
        repository.update_embedding(risk_id, embedding)
    except KeyError:
        logger.error("Cannot store embedding: risk %s no longer exists", risk_id)
        return None
    return embedding


def backfill_risk_embeddings(
    repository: Any,
    embedding_client: Any,
    batch_size: int = 10,
    dry_run: bool = False,
    max_length: int = DEFAULT_MAX_LENGTH,
) -> BackfillSummary:
    """Compute embeddings for every risk that lacks one.

    Safe to re-run: only risks without an embedding are picked up.

    Args:
        repository: Risk repository.
        embedding_client: Object exposing embed(text).
        batch_size: Risks processed between progress log lines.
        dry_run: Count the risks that would be processed without embedding.
        max_length: Maximum normalized text length.

    Returns:
        Processed/succeeded/failed counters.
    """
    summary = BackfillSummary()
    pending = repository.find_missing_embeddings()
    logger.info(
        "Starting backfill of %d risks (batch_size=%d, dry_run=%s)",
        len(pending),
        batch_size,
        dry_run,
    )

    for batch_start in range(0, len(pending), batch_size):
        batch = pending[batch_start:batch_start + batch_size]
        for risk in batch:
            summary.processed += 1
            if dry_run:
                summary.succeeded += 1
                continue

            embedding = compute_and_store_embedding(
                repository,
                embedding_client,
                risk["id"],
                risk.get("title") or "",
                risk.get("threat_description"),
                risk.get("description"),
                max_length=max_length,
            )
            if embedding is not None:
                summary.succeeded += 1
            else:
                summary.failed += 1

        logger.info(
            "Backfill progress: processed=%d, succeeded=%d, failed=%d",
            summary.processed,
            summary.succeeded,
            summary.failed,
        )

    logger.info(
        "Backfill complete: processed=%d, succeeded=%d, failed=%d",
        summary.processed,
        summary.succeeded,
        summary.failed,
    )
    return summary
