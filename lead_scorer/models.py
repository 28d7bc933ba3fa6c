import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field, field_validator, model_validator


LEAD_FIELDS = ("name", "role", "company", "industry", "location", "linkedin_bio")

AI_SCORES = {"High": 50, "Medium": 30, "Low": 10}


def _new_id() -> str:
    return str(uuid.uuid4())


def _now() -> datetime:
    return datetime.now(timezone.utc)


class Intent(str, Enum):
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


def _split_lines(value: Any) -> Any:
    if isinstance(value, str):
        return [s.strip() for s in value.split("\n") if s.strip()]
    if isinstance(value, list):
        return [s.strip() if isinstance(s, str) else s for s in value]
    return value


class OfferIn(BaseModel):
    name: str = Field(min_length=1)
    value_props: List[str] = Field(min_length=1)
    ideal_use_cases: List[str] = Field(min_length=1)

    @field_validator("name", mode="before")
    @classmethod
    def _strip_name(cls, v: Any) -> Any:
        return v.strip() if isinstance(v, str) else v

    @field_validator("value_props", "ideal_use_cases", mode="before")
    @classmethod
    def _lines_to_list(cls, v: Any) -> Any:
        return _split_lines(v)

    @field_validator("value_props", "ideal_use_cases")
    @classmethod
    def _no_blank_entries(cls, v: List[str]) -> List[str]:
        if any(not s for s in v):
            raise ValueError("entries must be non-empty strings")
        return v


class Offer(OfferIn):
    id: str = Field(default_factory=_new_id)
    created_at: datetime = Field(default_factory=_now)


class LeadIn(BaseModel):
    name: str = Field(min_length=1)
    role: str = Field(min_length=1)
    company: str = Field(min_length=1)
    industry: str = Field(min_length=1)
    location: str = Field(min_length=1)
    linkedin_bio: str = Field(min_length=1)

    @field_validator(*LEAD_FIELDS, mode="before")
    @classmethod
    def _strip(cls, v: Any) -> Any:
        return v.strip() if isinstance(v, str) else v


class Lead(LeadIn):
    id: str = Field(default_factory=_new_id)
    created_at: datetime = Field(default_factory=_now)


class IntentResult(BaseModel):
    intent: Intent
    reasoning: str
    score: int

    @classmethod
    def for_intent(cls, intent: Intent, reasoning: str) -> "IntentResult":
        return cls(intent=intent, reasoning=reasoning, score=AI_SCORES[intent.value])


class ScoredLead(BaseModel):
    id: str = Field(default_factory=_new_id)
    lead_id: str
    offer_id: str
    intent: Intent
    rule_score: int = Field(ge=0, le=50)
    ai_score: int
    score: int = Field(ge=0, le=100)
    reasoning: str
    created_at: datetime = Field(default_factory=_now)

    @field_validator("ai_score")
    @classmethod
    def _known_ai_score(cls, v: int) -> int:
        if v not in AI_SCORES.values():
            raise ValueError("ai_score must be one of 10, 30, 50")
        return v

    @model_validator(mode="after")
    def _total_matches_parts(self) -> "ScoredLead":
        if self.score != self.rule_score + self.ai_score:
            raise ValueError("score must equal rule_score + ai_score")
        return self


class ScoredLeadResult(BaseModel):
    id: str
    name: str
    role: str
    company: str
    industry: str
    location: str
    intent: Intent
    score: int
    rule_score: int
    ai_score: int
    reasoning: str


class RulesModel(BaseModel):
    decision_maker_roles: List[str] = Field(min_length=1)
    influencer_roles: List[str] = Field(min_length=1)
    adjacent_industry_keywords: List[str] = Field(min_length=1)


class ApiResponse(BaseModel):
    success: bool
    message: Optional[str] = None
    data: Optional[Any] = None
    errors: Optional[List[Dict[str, Any]]] = None
