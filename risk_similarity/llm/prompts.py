"""Prompt templates for chat-based risk similarity scoring."""

from risk_similarity.embeddings.normalizer import combine_risk_text
from risk_similarity.models import RiskText

USER_PROMPT_TEMPLATE = """You are a risk management expert. Compare these two information security risks and determine if they describe the SAME SPECIFIC RISK or DIFFERENT risks.

CRITICAL: Risks are only similar if they describe the EXACT SAME threat, scenario, or security issue. Being in the same category (e.g., "both are security risks") is NOT enough for a high score.

Risk 1:
{risk_a}

Risk 2:
{risk_b}

Scoring rules (BE STRICT):
- 90-100: Risks describe the EXACT SAME threat/scenario (e.g., "Phishing emails targeting staff" = "Phishing emails targeting staff")
- 80-89: Risks describe the same threat but with minor variations (e.g., "Phishing emails" vs "Phishing attacks via email")
- 70-79: Risks are related but describe different aspects (e.g., "Phishing emails" vs "Malware from email attachments")
- 50-69: Risks are in the same category but clearly different (e.g., "Phishing" vs "Ransomware")
- 30-49: Risks are both security risks but unrelated
- 0-29: Completely different risks

IMPORTANT:
- If risk data is incomplete (missing threat description or description), be MORE conservative
- Generic risks (e.g., "Security risk" or "Data breach") should score LOW unless they're truly identical
- Different attack vectors, different assets, or different scenarios = DIFFERENT risks

Respond with ONLY a JSON object:
{{
  "score": <number 0-100>,
  "matchedFields": ["title", "threatDescription", "description"],
  "reasoning": "<brief explanation of why this score>"
}}"""


def _describe(risk: RiskText) -> str:
    text = combine_risk_text(risk.title, risk.threat_description, risk.description)
    return text or "N/A"


def build_similarity_prompt(risk_a: RiskText, risk_b: RiskText) -> str:
    """Build the user prompt asking for a 0-100 same-risk rating.

    Args:
        risk_a: First risk.
        risk_b: Second risk.

    Returns:
        Formatted prompt string.
    """
    return USER_PROMPT_TEMPLATE.format(risk_a=_describe(risk_a), risk_b=_describe(risk_b))
