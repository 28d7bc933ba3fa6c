import json
import os
from typing import Any, Dict, Optional, Tuple
from pydantic import BaseModel
from .models import RulesModel


DEFAULT_RULES = {
    "decision_maker_roles": [
        "ceo",
        "cto",
        "cfo",
        "vp",
        "vice president",
        "director",
        "head of",
        "chief",
        "founder",
        "owner",
        "president",
        "general manager",
        "gm",
    ],
    "influencer_roles": [
        "manager",
        "senior",
        "lead",
        "principal",
        "architect",
        "specialist",
        "consultant",
        "analyst",
        "coordinator",
    ],
    "adjacent_industry_keywords": ["saas", "software", "tech", "b2b"],
}


class Settings(BaseModel):
    openai_api_key: Optional[str] = None
    openai_model: str = "gpt-4o-mini"
    classifier_timeout_seconds: float = 30.0
    classifier_max_concurrency: int = 5
    log_level: str = "INFO"


def load_settings() -> Settings:
    env = {
        "openai_api_key": os.getenv("OPENAI_API_KEY") or None,
        "openai_model": os.getenv("OPENAI_MODEL"),
        "classifier_timeout_seconds": os.getenv("CLASSIFIER_TIMEOUT_SECONDS"),
        "classifier_max_concurrency": os.getenv("CLASSIFIER_MAX_CONCURRENCY"),
        "log_level": os.getenv("LOG_LEVEL"),
    }
    return Settings.model_validate({k: v for k, v in env.items() if v is not None})


_CACHE: Dict[str, Tuple[float, Dict[str, Any]]] = {}


def _rules_path() -> str:
    # the package directory may be read-only once installed
    return os.getenv("LEAD_SCORER_RULES_PATH") or os.path.join(os.getcwd(), "rules.json")


def validate_rules(data: Dict[str, Any]) -> RulesModel:
    model = RulesModel.model_validate(data)
    for field in ("decision_maker_roles", "influencer_roles", "adjacent_industry_keywords"):
        keywords = getattr(model, field)
        if any(not k.strip() for k in keywords):
            raise ValueError(f"{field} must not contain blank keywords")
        # matching is case-insensitive, so keywords are stored lowercased
        setattr(model, field, [k.strip().lower() for k in keywords])
    return model


def load_rules() -> Dict[str, Any]:
    """Return the keyword rules, falling back to the defaults until a rules file is saved."""
    path = _rules_path()
    if not os.path.exists(path):
        return validate_rules(DEFAULT_RULES).model_dump()
    mtime = os.path.getmtime(path)
    cached = _CACHE.get(path)
    if cached and cached[0] == mtime:
        return cached[1]
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    rules = validate_rules(data).model_dump()
    _CACHE[path] = (mtime, rules)
    return rules


def save_rules(data: Dict[str, Any]) -> Dict[str, Any]:
    rules = validate_rules(data).model_dump()
    path = _rules_path()
    parent = os.path.dirname(path)
    if parent:
        os.makedirs(parent, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(rules, f, indent=2)
    _CACHE[path] = (os.path.getmtime(path), rules)
    return rules
