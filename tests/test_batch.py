"""Tests for batch similarity matching."""

import math
import unittest
from unittest import mock

from risk_similarity.matching.batch import BatchMatcher
from risk_similarity.models import RiskCandidate

QUERY = [1.0, 0.0]


def _at_cosine(value):
    """Unit vector whose cosine with QUERY is value."""
    return [value, math.sqrt(1 - value * value)]


class TestBatchMatcher(unittest.TestCase):
    """Test ranking of candidates by stored embeddings."""

    def setUp(self):
        self.embedding_client = mock.Mock()
        self.embedding_client.embed.return_value = QUERY
        self.matcher = BatchMatcher(self.embedding_client)

    def test_ranks_and_skips_missing_embeddings(self):
        candidates = [
            RiskCandidate("r1", "Ransomware", embedding=_at_cosine(0.4)),
            RiskCandidate("r2", "Legacy risk", embedding=None),
            RiskCandidate("r3", "Phishing", embedding=_at_cosine(0.9)),
        ]
        results = self.matcher.find_similar_risks("Title: Phishing emails", candidates)

        self.assertEqual([r.risk_id for r in results], ["r3", "r1"])
        self.assertEqual([r.score for r in results], [90, 40])
        self.embedding_client.embed.assert_called_once_with("Title: Phishing emails")

    def test_empty_candidates_skip_backend(self):
        self.assertEqual(self.matcher.find_similar_risks("anything", []), [])
        self.embedding_client.embed.assert_not_called()

    def test_empty_query_skips_backend(self):
        candidates = [RiskCandidate("r1", "Phishing", embedding=QUERY)]
        self.assertEqual(self.matcher.find_similar_risks("   ", candidates), [])
        self.embedding_client.embed.assert_not_called()

    def test_unavailable_query_embedding(self):
        self.embedding_client.embed.return_value = None
        candidates = [RiskCandidate("r1", "Phishing", embedding=QUERY)]
        with self.assertLogs("risk_similarity.matching.batch", level="ERROR"):
            self.assertEqual(self.matcher.find_similar_risks("phishing", candidates), [])

    def test_precomputed_query_embedding(self):
        candidates = [RiskCandidate("r1", "Phishing", embedding=QUERY)]
        results = self.matcher.find_similar_risks(
            "phishing", candidates, query_embedding=QUERY
        )
        self.assertEqual(results[0].score, 100)
        self.embedding_client.embed.assert_not_called()

    def test_embedding_text_used_for_backend(self):
        candidates = [RiskCandidate("r1", "Phishing", embedding=QUERY)]
        self.matcher.find_similar_risks(
            "Title: Phishing", candidates, embedding_text="phishing"
        )
        self.embedding_client.embed.assert_called_once_with("phishing")

    def test_matched_fields_title_containment(self):
        candidates = [
            RiskCandidate("r1", "PHISHING emails", embedding=_at_cosine(0.2)),
            RiskCandidate("r2", "Ransomware", embedding=_at_cosine(0.95)),
        ]
        results = self.matcher.find_similar_risks(
            "Title: Phishing emails targeting staff", candidates
        )
        by_id = {r.risk_id: r for r in results}
        self.assertEqual(by_id["r1"].matched_fields, ["title"])
        self.assertEqual(by_id["r2"].matched_fields, [])

    def test_ties_keep_input_order(self):
        candidates = [
            RiskCandidate("a", "A", embedding=_at_cosine(0.5)),
            RiskCandidate("b", "B", embedding=_at_cosine(0.8)),
            RiskCandidate("c", "C", embedding=_at_cosine(0.5)),
        ]
        results = self.matcher.find_similar_risks("query", candidates)
        self.assertEqual([r.risk_id for r in results], ["b", "a", "c"])

    def test_negative_cosine_scores_zero(self):
        candidates = [RiskCandidate("r1", "Opposite", embedding=[-1.0, 0.0])]
        results = self.matcher.find_similar_risks("query", candidates)
        self.assertEqual(results[0].score, 0)

    def test_dimension_mismatch_raises(self):
        candidates = [RiskCandidate("r1", "Other model", embedding=[1.0, 0.0, 0.0])]
        with self.assertRaises(ValueError):
            self.matcher.find_similar_risks("query", candidates)

    def test_scores_bounded(self):
        candidates = [
            RiskCandidate(str(i), "X", embedding=[math.cos(i), math.sin(i)])
            for i in range(12)
        ]
        for result in self.matcher.find_similar_risks("query", candidates):
            self.assertGreaterEqual(result.score, 0)
            self.assertLessEqual(result.score, 100)


if __name__ == "__main__":
    unittest.main()
