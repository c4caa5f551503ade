"""Text normalization for risk embeddings and comparisons.

Two forms are kept:
- normalize_risk_text: lower-cased canonical text fed to the embedding model.
- combine_risk_text: labelled text used for matched-field detection and
  inside the chat prompt.
"""

import logging
from typing import Optional

logger = logging.getLogger(__name__)

DEFAULT_MAX_LENGTH = 1024

_FIELD_SEPARATOR = "\n\n"


def normalize_risk_text(
    title: Optional[str],
    threat_description: Optional[str] = None,
    description: Optional[str] = None,
    max_length: int = DEFAULT_MAX_LENGTH,
) -> str:
    """Collapse the risk fields into one canonical string for embedding.

    Each non-empty field is trimmed and lower-cased, joined by a blank line
    in the order title, threat, description, then truncated to max_length
    characters.

    Args:
        title: Risk title.
        threat_description: Optional threat description.
        description: Optional risk description.
        max_length: Maximum length of the result in characters.

    Returns:
        Normalized text, or "" when every field is empty.
    """
    parts = [
        (value or "").strip().lower()
        for value in (title, threat_description, description)
    ]
    combined = _FIELD_SEPARATOR.join(p for p in parts if p)

    if len(combined) > max_length:
        logger.debug(
            "Truncating normalized risk text from %d to %d chars",
            len(combined),
            max_length,
        )
        combined = combined[:max_length]
    return combined


def combine_risk_text(
    title: Optional[str],
    threat_description: Optional[str] = None,
    description: Optional[str] = None,
) -> str:
    """Combine risk fields into labelled text ("Title: ... Threat: ...")."""
    parts = []
    if title:
        parts.append(f"Title: {title}")
    if threat_description:
        parts.append(f"Threat: {threat_description}")
    if description:
        parts.append(f"Description: {description}")
    return " ".join(parts)


def normalize_supplier_text(
    name: Optional[str],
    trading_name: Optional[str] = None,
    supplier_type: Optional[str] = None,
    service_description: Optional[str] = None,
    risk_rationale: Optional[str] = None,
    criticality_rationale: Optional[str] = None,
    max_length: int = DEFAULT_MAX_LENGTH,
) -> str:
    """Combine supplier fields into lower-cased text for risk matching.

    The service description and rationales come first since they carry most
    of the risk-relevant signal; identity fields follow as context.
    """
    labelled = [
        ("Service Description", service_description),
        ("Risk Rationale", risk_rationale),
        ("Criticality Rationale", criticality_rationale),
        ("Supplier Name", name),
        ("Trading Name", trading_name),
        ("Supplier Type", supplier_type),
    ]
    parts = [
        f"{label}: {value.strip()}"
        for label, value in labelled
        if value and value.strip()
    ]

    combined = _FIELD_SEPARATOR.join(parts)
    if len(combined) > max_length:
        combined = combined[:max_length]
    return combined.lower()
