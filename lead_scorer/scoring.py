from typing import Any, Dict, List, Tuple
from .config import load_rules
from .models import LEAD_FIELDS, Lead, Offer


MAX_RULE_SCORE = 50


def _contains_any(text: str, keywords: List[str]) -> bool:
    return any(k in text for k in keywords)


def compute_rule_score(lead: Lead, offer: Offer, rules: Dict[str, Any]) -> Tuple[int, List[str]]:
    score = 0
    reasons: List[str] = []

    role = (lead.role or "").lower()
    if _contains_any(role, rules.get("decision_maker_roles", [])):
        score += 20
        reasons.append("Decision maker role (+20)")
    elif _contains_any(role, rules.get("influencer_roles", [])):
        score += 10
        reasons.append("Influencer role (+10)")

    industry = (lead.industry or "").lower()
    use_cases = [u.lower() for u in offer.ideal_use_cases]
    use_cases_text = " ".join(use_cases)
    # an empty industry would be a substring of every use case
    if industry and any(industry in u or u in industry for u in use_cases):
        score += 20
        reasons.append("Exact industry match (+20)")
    elif any(k in industry and k in use_cases_text for k in rules.get("adjacent_industry_keywords", [])):
        score += 10
        reasons.append("Adjacent industry (+10)")

    if all(getattr(lead, f, None) for f in LEAD_FIELDS):
        score += 10
        reasons.append("Complete data (+10)")

    return min(score, MAX_RULE_SCORE), reasons


def score_rules(lead: Lead, offer: Offer) -> Tuple[int, List[str]]:
    return compute_rule_score(lead, offer, load_rules())


def combine_reasoning(rule_reasons: List[str], ai_reasoning: str) -> str:
    parts = []
    if rule_reasons:
        parts.append("Rules: " + ", ".join(rule_reasons))
    parts.append(f"AI: {ai_reasoning}")
    return ". ".join(parts)
