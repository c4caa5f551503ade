"""Risk repository used by the similarity service.

The register itself lives elsewhere; this module provides the narrow
read/write surface the similarity code needs, backed by an in-memory list
of risk rows that can be loaded from and saved to a YAML or JSON export.
"""

import copy
import json
import logging
from typing import Any, Iterable, Optional

import yaml

logger = logging.getLogger(__name__)


def _present(record: dict[str, Any]) -> dict[str, Any]:
    """Copy a stored row into the shape returned to callers.

    The asset's nested ``asset_category`` is exposed as ``category``.
    """
    row = copy.deepcopy(record)
    asset = row.get("asset")
    if isinstance(asset, dict) and "asset_category" in asset:
        asset["category"] = asset.pop("asset_category")
    return row


class InMemoryRiskRepository:
    """Risk rows held in memory, in insertion order."""

    def __init__(self, risks: Optional[Iterable[dict[str, Any]]] = None):
        self._risks: dict[str, dict[str, Any]] = {}
        for risk in risks or []:
            if not risk.get("id"):
                logger.warning("Skipping risk entry with no id: %s", risk)
                continue
            self._risks[str(risk["id"])] = dict(risk)

    def __len__(self) -> int:
        return len(self._risks)

    def find_by_id(self, risk_id: str) -> Optional[dict[str, Any]]:
        """Return the risk row, or None if there is no such risk."""
        risk = self._risks.get(str(risk_id))
        return _present(risk) if risk is not None else None

    def find_many(
        self,
        exclude_ids: Iterable[str] = (),
        include_archived: bool = False,
        limit: Optional[int] = None,
    ) -> list[dict[str, Any]]:
        """Return risk rows with their denormalized relations.

        Args:
            exclude_ids: Risk ids to leave out.
            include_archived: Whether archived risks are returned.
            limit: Maximum number of rows, or None for all.

        Returns:
            Matching rows in insertion order.
        """
        excluded = {str(i) for i in exclude_ids}
        rows = []
        for risk_id, risk in self._risks.items():
            if risk_id in excluded:
                continue
            if risk.get("archived") and not include_archived:
                continue
            rows.append(_present(risk))
            if limit is not None and len(rows) >= limit:
                break
        return rows

    def find_missing_embeddings(self) -> list[dict[str, Any]]:
        """Return every risk that has no stored embedding, ordered by id."""
        missing = [r for r in self._risks.values() if not r.get("embedding")]
        return [_present(r) for r in sorted(missing, key=lambda r: str(r["id"]))]

    def update_embedding(self, risk_id: str, embedding: list[float]) -> None:
        """Store an embedding on a risk.

        Raises:
            KeyError: If the risk does not exist.
        """
        key = str(risk_id)
        if key not in self._risks:
            raise KeyError(risk_id)
        self._risks[key]["embedding"] = list(embedding)

    def dump(self) -> list[dict[str, Any]]:
        """Return copies of the raw stored rows."""
        return [copy.deepcopy(r) for r in self._risks.values()]


def load_risks_file(path: str) -> InMemoryRiskRepository:
    """Load a risk export (YAML or JSON) into a repository.

    The file holds either a list of risk rows or a mapping with a ``risks``
    list.
    """
    logger.info("Loading risks from %s", path)
    with open(path) as f:
        data = yaml.safe_load(f) or []

    risks = data.get("risks", []) if isinstance(data, dict) else data
    repository = InMemoryRiskRepository(risks)
    logger.info("Loaded %d risks", len(repository))
    return repository


def save_risks_file(repository: InMemoryRiskRepository, path: str) -> None:
    """Write the repository back to a YAML or JSON file."""
    data = {"risks": repository.dump()}
    with open(path, "w") as f:
        if path.endswith(".json"):
            json.dump(data, f, indent=2)
        else:
            yaml.safe_dump(data, f, sort_keys=False)
    logger.info("Saved %d risks to %s", len(repository), path)
