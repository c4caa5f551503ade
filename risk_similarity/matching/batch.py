"""Batch similarity matching of one query risk against stored candidates.

The query is embedded once; candidates are scored against their stored
embeddings only, so a request costs a single inference call regardless of
how many candidates there are.
"""

import logging
from typing import Any, Optional

from risk_similarity.matching.lexical import title_in_text
from risk_similarity.matching.vector import cosine_similarity, map_to_score, to_percent
from risk_similarity.models import TITLE, RiskCandidate, SimilarityResult

logger = logging.getLogger(__name__)


class BatchMatcher:
    """Ranks candidate risks by embedding similarity to a query text."""

    def __init__(self, embedding_client: Any):
        """Initialize with any object exposing embed(text) -> vector | None."""
        self.embedding_client = embedding_client

    def find_similar_risks(
        self,
        query_text: str,
        candidates: list[RiskCandidate],
        query_embedding: Optional[list[float]] = None,
        embedding_text: Optional[str] = None,
    ) -> list[SimilarityResult]:
        """Score candidates against the query, highest score first.

        Args:
            query_text: Raw query text, used for matched-field detection.
            candidates: Candidate risks with their stored embeddings.
            query_embedding: Precomputed query embedding, if available.
            embedding_text: Text to embed when no query_embedding is given.
                Defaults to query_text.

        Returns:
            One result per candidate that has an embedding, sorted by
            descending score (ties keep input order). Empty if there are no
            candidates or no query embedding could be obtained.

        Raises:
            ValueError: If a candidate embedding has a different dimension
                than the query embedding.
        """
        if not candidates:
            return []

        if query_embedding is None:
            text = embedding_text if embedding_text is not None else query_text
            if not (text or "").strip():
                logger.debug("Query text is empty; nothing to compare")
                return []
            query_embedding = self.embedding_client.embed(text)
            if query_embedding is None:
                logger.error(
                    "Embeddings not available for query; skipping %d candidates",
                    len(candidates),
                )
                return []

        results = []
        skipped = 0
        for candidate in candidates:
            if not candidate.embedding:
                skipped += 1
                logger.debug("Skipping risk %s - no stored embedding", candidate.id)
                continue

            cosine = cosine_similarity(query_embedding, candidate.embedding)
            score = to_percent(map_to_score(cosine))

            matched_fields = []
            if title_in_text(candidate.title, query_text):
                matched_fields.append(TITLE)

            logger.debug(
                "Risk %s (%.50s): cosine=%.3f, score=%d",
                candidate.id,
                candidate.title,
                cosine,
                score,
            )
            results.append(
                SimilarityResult(
                    risk_id=candidate.id,
                    score=score,
                    matched_fields=matched_fields,
                )
            )

        if skipped:
            logger.info(
                "Scored %d of %d candidates (%d without embeddings)",
                len(results),
                len(candidates),
                skipped,
            )

        # sorted() is stable, so ties keep candidate order
        return sorted(results, key=lambda r: r.score, reverse=True)
