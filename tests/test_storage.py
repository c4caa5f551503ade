"""Tests for the risk repository and embedding maintenance."""

import os
import tempfile
import unittest
from unittest import mock

from risk_similarity.embeddings.store import (
    backfill_risk_embeddings,
    compute_and_store_embedding,
)
from risk_similarity.storage.repository import (
    InMemoryRiskRepository,
    load_risks_file,
    save_risks_file,
)

RISKS_YAML = """
risks:
  - id: risk-1
    title: Phishing emails
    threat_description: Credential lures
    embedding: [0.1, 0.2]
    asset:
      id: asset-1
      asset_category: {id: cat-1, name: Laptops}
  - id: risk-2
    title: Ransomware
    archived: true
  - title: No id here
"""


class TestInMemoryRiskRepository(unittest.TestCase):
    """Test repository queries."""

    def setUp(self):
        self.repository = InMemoryRiskRepository([
            {"id": "b", "title": "B"},
            {"id": "a", "title": "A", "embedding": [1.0]},
            {"id": "c", "title": "C", "archived": True},
            {"id": "d", "title": "D"},
        ])

    def test_find_by_id(self):
        self.assertEqual(self.repository.find_by_id("a")["title"], "A")
        self.assertIsNone(self.repository.find_by_id("zzz"))

    def test_find_many_skips_archived(self):
        ids = [r["id"] for r in self.repository.find_many()]
        self.assertEqual(ids, ["b", "a", "d"])

    def test_find_many_filters(self):
        ids = [r["id"] for r in self.repository.find_many(exclude_ids=["a"], limit=1)]
        self.assertEqual(ids, ["b"])
        ids = [r["id"] for r in self.repository.find_many(include_archived=True)]
        self.assertEqual(ids, ["b", "a", "c", "d"])

    def test_returned_rows_are_copies(self):
        self.repository.find_by_id("a")["title"] = "changed"
        self.assertEqual(self.repository.find_by_id("a")["title"], "A")

    def test_find_missing_embeddings(self):
        ids = [r["id"] for r in self.repository.find_missing_embeddings()]
        self.assertEqual(ids, ["b", "c", "d"])

    def test_update_embedding(self):
        self.repository.update_embedding("b", [0.5, 0.5])
        self.assertEqual(self.repository.find_by_id("b")["embedding"], [0.5, 0.5])
        with self.assertRaises(KeyError):
            self.repository.update_embedding("zzz", [1.0])

    def test_integer_ids(self):
        repository = InMemoryRiskRepository([
            {"id": 1, "title": "Phishing emails"},
            {"id": 2, "title": "Ransomware"},
        ])
        self.assertEqual(repository.find_by_id(1)["title"], "Phishing emails")
        self.assertEqual(repository.find_by_id("1")["title"], "Phishing emails")
        self.assertEqual([r["id"] for r in repository.find_many(exclude_ids=[1])], [2])
        repository.update_embedding(1, [0.5])
        self.assertEqual(repository.find_by_id(1)["embedding"], [0.5])


class TestRisksFile(unittest.TestCase):
    """Test loading and saving risk exports."""

    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.path = os.path.join(self.tmpdir.name, "risks.yaml")
        with open(self.path, "w") as f:
            f.write(RISKS_YAML)

    def tearDown(self):
        self.tmpdir.cleanup()

    def test_load(self):
        with self.assertLogs("risk_similarity.storage.repository", level="WARNING"):
            repository = load_risks_file(self.path)
        self.assertEqual(len(repository), 2)
        risk = repository.find_by_id("risk-1")
        self.assertEqual(risk["embedding"], [0.1, 0.2])
        self.assertEqual(risk["asset"]["category"]["name"], "Laptops")

    def test_save_round_trip_keeps_updates(self):
        with self.assertLogs("risk_similarity.storage.repository", level="WARNING"):
            repository = load_risks_file(self.path)
        repository.update_embedding("risk-2", [0.3, 0.4])

        json_path = os.path.join(self.tmpdir.name, "risks.json")
        save_risks_file(repository, json_path)
        reloaded = load_risks_file(json_path)
        self.assertEqual(reloaded.find_by_id("risk-2")["embedding"], [0.3, 0.4])
        self.assertTrue(reloaded.find_by_id("risk-2")["archived"])


class TestEmbeddingStore(unittest.TestCase):
    """Test computing, storing and backfilling embeddings."""

    def setUp(self):
        self.repository = InMemoryRiskRepository([
            {"id": "r1", "title": "Phishing", "threat_description": "Lures"},
            {"id": "r2", "title": "Ransomware", "embedding": [0.9, 0.1]},
            {"id": "r3", "title": "Flooding"},
            {"id": "r4", "title": "Insider"},
        ])
        self.embedding_client = mock.Mock()
        self.embedding_client.embed.return_value = [0.1, 0.2]

    def test_compute_and_store(self):
        embedding = compute_and_store_embedding(
            self.repository, self.embedding_client, "r1", "Phishing", "Lures", max_length=100
        )
        self.assertEqual(embedding, [0.1, 0.2])
        self.embedding_client.embed.assert_called_once_with("phishing\n\nlures")
        self.assertEqual(self.repository.find_by_id("r1")["embedding"], [0.1, 0.2])

    def test_compute_failure_is_not_raised(self):
        self.embedding_client.embed.return_value = None
        with self.assertLogs("risk_similarity.embeddings.store", level="ERROR"):
            self.assertIsNone(
                compute_and_store_embedding(self.repository, self.embedding_client, "r1", "Phishing")
            )
        self.assertIsNone(self.repository.find_by_id("r1").get("embedding"))

    def test_store_for_deleted_risk(self):
        with self.assertLogs("risk_similarity.embeddings.store", level="ERROR"):
            self.assertIsNone(
                compute_and_store_embedding(self.repository, self.embedding_client, "gone", "X")
            )

    def test_backfill(self):
        self.embedding_client.embed.side_effect = [[0.1], None, [0.3]]
        with self.assertLogs("risk_similarity.embeddings.store", level="INFO"):
            summary = backfill_risk_embeddings(
                self.repository, self.embedding_client, batch_size=2
            )
        self.assertEqual((summary.processed, summary.succeeded, summary.failed), (3, 2, 1))
        self.assertEqual(self.repository.find_by_id("r1")["embedding"], [0.1])
        self.assertEqual(self.repository.find_by_id("r4")["embedding"], [0.3])
        self.assertEqual(self.repository.find_by_id("r2")["embedding"], [0.9, 0.1])

    def test_backfill_is_idempotent(self):
        backfill_risk_embeddings(self.repository, self.embedding_client)
        self.embedding_client.embed.reset_mock()
        summary = backfill_risk_embeddings(self.repository, self.embedding_client)
        self.assertEqual(summary.processed, 0)
        self.embedding_client.embed.assert_not_called()

    def test_backfill_dry_run(self):
        summary = backfill_risk_embeddings(
            self.repository, self.embedding_client, dry_run=True
        )
        self.assertEqual((summary.processed, summary.succeeded, summary.failed), (3, 3, 0))
        self.embedding_client.embed.assert_not_called()
        self.assertEqual(len(self.repository.find_missing_embeddings()), 3)

    def test_backfill_integer_ids(self):
        repository = InMemoryRiskRepository([
            {"id": 1, "title": "Phishing emails"},
            {"id": 2, "title": "Ransomware"},
        ])
        summary = backfill_risk_embeddings(repository, self.embedding_client)
        self.assertEqual((summary.processed, summary.succeeded, summary.failed), (2, 2, 0))
        self.assertEqual(repository.find_by_id(2)["embedding"], [0.1, 0.2])


if __name__ == "__main__":
    unittest.main()
