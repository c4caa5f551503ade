"""Pairwise risk similarity judged by a chat model.

Used for one-off duplicate checks when vector similarity is not usable.
Scoring runs an ordered list of strategies; the first one that applies
decides the result:

1. exact match: every field identical -> 100
2. title identical: lexical comparison of threat and description -> 95/85/70
3. semantic: ask the chat model, then apply conservative penalties

The scorer never raises; the worst case is a score of 0.
"""

import json
import logging
import math
import re
from typing import Any, Optional

from risk_similarity.llm.prompts import build_similarity_prompt
from risk_similarity.matching.lexical import is_generic_title, jaccard_similarity
from risk_similarity.models import (
    DESCRIPTION,
    THREAT_DESCRIPTION,
    TITLE,
    RiskText,
    SimilarityResult,
)

logger = logging.getLogger(__name__)

INCOMPLETE_PENALTY = 15
GENERIC_TITLE_PENALTY = 10
GENERIC_TITLE_THRESHOLD = 70
GENERIC_TITLE_FLOOR = 50

_INTEGER_PATTERN = re.compile(r"\b(\d{1,3})\b")
_JSON_DECODER = json.JSONDecoder()


def _clean(value: Optional[str]) -> str:
    return (value or "").strip().lower()


def _as_number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(number):
        return None
    return number


def parse_json_object(content: str) -> Optional[dict[str, Any]]:
    """Return the first JSON object embedded in the text, if any."""
    start = content.find("{")
    while start != -1:
        try:
            parsed, _ = _JSON_DECODER.raw_decode(content, start)
        except ValueError:
            parsed = None
        if isinstance(parsed, dict):
            return parsed
        start = content.find("{", start + 1)
    return None


def extract_integer(content: str) -> Optional[int]:
    """Return the first standalone 1-3 digit integer in the text, if any."""
    match = _INTEGER_PATTERN.search(content)
    return int(match.group(1)) if match else None


def parse_score_response(content: str) -> tuple[float, list[str], Optional[str]]:
    """Parse a chat reply into (score, matched_fields, reasoning).

    Tries the JSON object first. A JSON object without a numeric score
    scores 0; a bare integer is only used when no JSON object is found.
    """
    parsed = parse_json_object(content)
    if parsed is not None:
        score = _as_number(parsed.get("score"))
        if score is None:
            logger.warning("Chat reply JSON has no numeric score: %s", parsed)
            score = 0.0
        fields = parsed.get("matchedFields") or []
        if not isinstance(fields, list):
            fields = []
        matched = [f for f in fields if isinstance(f, str)]
        return score, matched, parsed.get("reasoning")

    score = extract_integer(content)
    logger.warning(
        "Could not parse JSON from chat reply, extracted score: %s", score
    )
    return float(score or 0), [], None


def adjust_score(
    score: float,
    risk_a: RiskText,
    risk_b: RiskText,
) -> int:
    """Clamp the model score and apply the incomplete/generic-title penalties."""
    adjusted = max(0.0, min(100.0, score))

    if not (risk_a.is_complete and risk_b.is_complete):
        adjusted = max(0.0, adjusted - INCOMPLETE_PENALTY)

    generic = is_generic_title(risk_a.title) or is_generic_title(risk_b.title)
    if generic and adjusted > GENERIC_TITLE_THRESHOLD:
        adjusted = max(adjusted - GENERIC_TITLE_PENALTY, GENERIC_TITLE_FLOOR)

    return int(adjusted + 0.5)


class ChatFallbackScorer:
    """Scores a pair of risks with lexical shortcuts and a chat model."""

    def __init__(self, llm_client: Any):
        """Initialize with any object exposing chat(prompt) -> str."""
        self.llm_client = llm_client
        self._strategies = (
            self._exact_match,
            self._title_identical,
            self._semantic,
        )

    def score(self, risk_a: RiskText, risk_b: RiskText) -> SimilarityResult:
        """Return a 0-100 similarity for two risks. Never raises."""
        for strategy in self._strategies:
            result = strategy(risk_a, risk_b)
            if result is not None:
                return result
        return SimilarityResult(risk_id=None, score=0)

    def _exact_match(self, risk_a: RiskText, risk_b: RiskText) -> Optional[SimilarityResult]:
        title = _clean(risk_a.title)
        threat = _clean(risk_a.threat_description)
        description = _clean(risk_a.description)

        if not title:
            return None
        if (
            title != _clean(risk_b.title)
            or threat != _clean(risk_b.threat_description)
            or description != _clean(risk_b.description)
        ):
            return None

        matched = [TITLE]
        if threat:
            matched.append(THREAT_DESCRIPTION)
        if description:
            matched.append(DESCRIPTION)
        return SimilarityResult(risk_id=None, score=100, matched_fields=matched)

    def _title_identical(self, risk_a: RiskText, risk_b: RiskText) -> Optional[SimilarityResult]:
        title = _clean(risk_a.title)
        if not title or title != _clean(risk_b.title):
            return None

        description_similarity = jaccard_similarity(
            _clean(risk_a.description), _clean(risk_b.description)
        )
        threat_similarity = jaccard_similarity(
            _clean(risk_a.threat_description), _clean(risk_b.threat_description)
        )
        logger.debug(
            "Identical titles: description=%.2f, threat=%.2f",
            description_similarity,
            threat_similarity,
        )

        if description_similarity > 0.8 and threat_similarity > 0.8:
            return SimilarityResult(
                risk_id=None,
                score=95,
                matched_fields=[TITLE, THREAT_DESCRIPTION, DESCRIPTION],
            )
        if description_similarity > 0.7 or threat_similarity > 0.7:
            return SimilarityResult(risk_id=None, score=85, matched_fields=[TITLE])
        return SimilarityResult(risk_id=None, score=70, matched_fields=[TITLE])

    def _semantic(self, risk_a: RiskText, risk_b: RiskText) -> SimilarityResult:
        prompt = build_similarity_prompt(risk_a, risk_b)
        try:
            content = self.llm_client.chat(prompt)
            raw_score, matched_fields, reasoning = parse_score_response(content)
            score = adjust_score(raw_score, risk_a, risk_b)
        except Exception as e:
            logger.error("Chat-based similarity calculation failed: %s", e)
            return SimilarityResult(risk_id=None, score=0)

        logger.info(
            "LLM score: %s -> adjusted: %d, reasoning: %s",
            raw_score,
            score,
            reasoning or "N/A",
        )
        return SimilarityResult(risk_id=None, score=score, matched_fields=matched_fields)


def score_chat(risk_a: RiskText, risk_b: RiskText, llm_client: Any) -> SimilarityResult:
    """Convenience wrapper around ChatFallbackScorer.score."""
    return ChatFallbackScorer(llm_client).score(risk_a, risk_b)
