"""Similarity orchestrator: the entry point used by the rest of the register.

Ties together the similarity stages:
1. Load the query risk and its candidates from the repository
2. Normalize text -> embed the query -> cosine score stored candidate embeddings
3. Filter by the configured threshold, attach full candidate records, truncate

Similarity is advisory. Once the query risk is known, any failure degrades to
an empty result so that risk creation and viewing never break.
"""

import logging
from typing import Any, Iterable, Optional

from risk_similarity.embeddings.normalizer import (
    DEFAULT_MAX_LENGTH,
    combine_risk_text,
    normalize_risk_text,
    normalize_supplier_text,
)
from risk_similarity.llm.scorer import ChatFallbackScorer
from risk_similarity.matching.batch import BatchMatcher
from risk_similarity.models import (
    RiskCandidate,
    RiskText,
    SimilarityResult,
    SimilarRiskResult,
    SupplierRiskSuggestion,
)

logger = logging.getLogger(__name__)


class RiskNotFoundError(LookupError):
    """Raised when a similarity request names a risk that does not exist."""


class SupplierNotFoundError(LookupError):
    """Raised when a supplier suggestion request has no supplier record."""


def _display_record(row: dict[str, Any]) -> dict[str, Any]:
    """Candidate record as shown to users, without the raw embedding."""
    return {key: value for key, value in row.items() if key != "embedding"}


class SimilarityOrchestrator:
    """Finds likely duplicates of new and existing risks."""

    def __init__(
        self,
        repository: Any,
        embedding_client: Any,
        config: dict[str, Any],
        chat_scorer: Optional[ChatFallbackScorer] = None,
    ):
        """Initialize the orchestrator.

        Args:
            repository: Risk repository (find_by_id, find_many).
            embedding_client: Object exposing embed(text).
            config: Application configuration dict. Thresholds are read from
                it on every call.
            chat_scorer: Scorer for one-off pairwise checks.
        """
        self.repository = repository
        self.matcher = BatchMatcher(embedding_client)
        self.config = config
        self.chat_scorer = chat_scorer

    # ── Settings (read at call time) ───────────────────────────────

    @property
    def threshold(self) -> int:
        return self.config.get("similarity", {}).get("threshold", 70)

    @property
    def max_text_length(self) -> int:
        return self.config.get("llm", {}).get(
            "max_embedding_text_length", DEFAULT_MAX_LENGTH
        )

    # ── Entry points ───────────────────────────────────────────────

    def for_existing_risk(self, risk_id: str, limit: int = 10) -> list[SimilarRiskResult]:
        """Find risks similar to a stored risk.

        Args:
            risk_id: Id of the risk to compare.
            limit: Maximum number of results.

        Returns:
            Results at or above the threshold, best first.

        Raises:
            RiskNotFoundError: If no risk has this id.
        """
        risk = self.repository.find_by_id(risk_id)
        if risk is None:
            raise RiskNotFoundError(f"Risk not found: {risk_id}")

        try:
            candidates = self.repository.find_many(exclude_ids=[risk_id])
            return self._rank(
                RiskText.from_record(risk),
                candidates,
                limit,
                query_embedding=risk.get("embedding") or None,
            )
        except Exception as e:
            logger.error(
                "Error finding similar risks for %s: %s", risk_id, e, exc_info=True
            )
            return []

    def for_draft_risk(self, risk_data: dict[str, Any], limit: int = 5) -> list[SimilarRiskResult]:
        """Check a risk being created or edited against stored risks.

        Args:
            risk_data: Mapping with title, threat_description, description and
                an optional exclude_id (the risk being edited).
            limit: Maximum number of results.

        Returns:
            Results at or above the threshold, best first. Empty when the
            title is too short to compare.
        """
        similarity_config = self.config.get("similarity", {})
        min_title_length = similarity_config.get("min_title_length", 3)
        title = (risk_data.get("title") or "").strip()
        if len(title) < min_title_length:
            return []

        try:
            exclude_id = risk_data.get("exclude_id")
            candidates = self.repository.find_many(
                exclude_ids=[exclude_id] if exclude_id else [],
                limit=similarity_config.get("draft_candidate_limit", 100),
            )
            return self._rank(RiskText.from_record(risk_data), candidates, limit)
        except Exception as e:
            logger.error("Error checking similarity for new risk: %s", e, exc_info=True)
            return []

    def for_supplier(
        self,
        supplier: Optional[dict[str, Any]],
        linked_risk_ids: Iterable[str] = (),
        limit: int = 15,
    ) -> list[SupplierRiskSuggestion]:
        """Suggest existing risks relevant to a supplier.

        Args:
            supplier: Supplier record (name, trading_name, supplier_type,
                service_description, risk_rationale, criticality_rationale).
            linked_risk_ids: Risks already linked to the supplier.
            limit: Maximum number of suggestions.

        Returns:
            Suggestions at or above the supplier threshold, best first.

        Raises:
            SupplierNotFoundError: If supplier is None.
        """
        if supplier is None:
            raise SupplierNotFoundError("Supplier not found")

        settings = self.config.get("supplier_suggestions", {})
        supplier_text = normalize_supplier_text(
            supplier.get("name"),
            supplier.get("trading_name"),
            supplier.get("supplier_type"),
            supplier.get("service_description"),
            supplier.get("risk_rationale"),
            supplier.get("criticality_rationale"),
            max_length=self.max_text_length,
        )
        if len(supplier_text.strip()) < settings.get("min_text_length", 10):
            logger.warning(
                "Insufficient supplier data for %s", supplier.get("id", "<unknown>")
            )
            return []

        try:
            linked = set(linked_risk_ids)
            rows = [
                row
                for row in self.repository.find_many(
                    limit=settings.get("candidate_limit", 100)
                )
                if row["id"] not in linked
            ]
            if not rows:
                return []

            results = self.matcher.find_similar_risks(
                supplier_text, [RiskCandidate.from_record(r) for r in rows]
            )
            minimum = settings.get("threshold", 50)
            rows_by_id = {row["id"]: _display_record(row) for row in rows}
            return [
                SupplierRiskSuggestion(
                    risk=rows_by_id[result.risk_id],
                    similarity_score=result.score,
                    matched_fields=result.matched_fields,
                )
                for result in results
                if result.score >= minimum
            ][:limit]
        except Exception as e:
            logger.error(
                "Error finding relevant risks for supplier %s: %s",
                supplier.get("id", "<unknown>"),
                e,
                exc_info=True,
            )
            return []

    def score_chat(self, risk_a: RiskText, risk_b: RiskText) -> SimilarityResult:
        """One-off pairwise judgment via the chat scorer."""
        if self.chat_scorer is None:
            raise RuntimeError("No chat scorer configured")
        return self.chat_scorer.score(risk_a, risk_b)

    # ── Internals ──────────────────────────────────────────────────

    def _rank(
        self,
        query: RiskText,
        rows: list[dict[str, Any]],
        limit: int,
        query_embedding: Optional[list[float]] = None,
    ) -> list[SimilarRiskResult]:
        """Match the query against candidate rows and shape the output."""
        if not rows:
            return []

        results = self.matcher.find_similar_risks(
            combine_risk_text(query.title, query.threat_description, query.description),
            [RiskCandidate.from_record(r) for r in rows],
            query_embedding=query_embedding,
            embedding_text=normalize_risk_text(
                query.title,
                query.threat_description,
                query.description,
                max_length=self.max_text_length,
            ),
        )

        threshold = self.threshold
        rows_by_id = {row["id"]: _display_record(row) for row in rows}
        ranked = [
            SimilarRiskResult(
                risk=rows_by_id[result.risk_id],
                score=result.score,
                fields=result.matched_fields,
            )
            for result in results
            if result.score >= threshold
        ]
        logger.info(
            "%d of %d scored risks at or above threshold %d",
            len(ranked),
            len(results),
            threshold,
        )
        return ranked[:limit]
