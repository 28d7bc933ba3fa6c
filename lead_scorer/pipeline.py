import asyncio
import io
import json
import logging
import time
from typing import Any, Dict, Iterable, List, Optional, Union
import pandas as pd
from pydantic import ValidationError as PydanticValidationError
from .classifier import IntentClassifier
from .config import load_rules
from .errors import PreconditionError, ValidationError
from .models import Lead, LeadIn, Offer, OfferIn, ScoredLead, ScoredLeadResult
from .repository import Repository
from .scoring import combine_reasoning, compute_rule_score


logger = logging.getLogger("lead_scorer.pipeline")

CSV_COLUMNS = ["Name", "Role", "Company", "Industry", "Location", "Intent", "Score", "Reasoning"]


def _errors(e: PydanticValidationError) -> List[Dict[str, Any]]:
    return [{"loc": list(err["loc"]), "msg": err["msg"]} for err in e.errors()]


class ScoringPipeline:
    def __init__(self, repository: Repository, classifier: IntentClassifier, max_concurrency: int = 5):
        self.repository = repository
        self.classifier = classifier
        self.max_concurrency = max(1, max_concurrency)

    def submit_offer(self, data: Union[OfferIn, Dict[str, Any]]) -> Offer:
        try:
            offer_in = data if isinstance(data, OfferIn) else OfferIn.model_validate(data)
        except PydanticValidationError as e:
            raise ValidationError("Validation error", errors=_errors(e))
        offer = Offer(**offer_in.model_dump())
        self.repository.add_offer(offer)
        logger.info(json.dumps({"event": "offer_submitted", "offer_id": offer.id}))
        return offer

    def replace_leads(self, records: Iterable[Union[LeadIn, Dict[str, Any]]]) -> List[Lead]:
        leads: List[Lead] = []
        for i, r in enumerate(records):
            try:
                lead_in = r if isinstance(r, LeadIn) else LeadIn.model_validate(r)
            except PydanticValidationError as e:
                raise ValidationError(f"Invalid lead at position {i}", errors=_errors(e))
            leads.append(Lead(**lead_in.model_dump()))
        if not leads:
            raise ValidationError("At least one lead is required")
        created = self.repository.replace_leads(leads)
        logger.info(json.dumps({"event": "leads_replaced", "count": len(created)}))
        return created

    def delete_lead(self, lead_id: str) -> None:
        self.repository.delete_lead(lead_id)

    async def _score_one(
        self, lead: Lead, offer: Offer, rules: Dict[str, Any], semaphore: asyncio.Semaphore
    ) -> ScoredLead:
        rule_score, rule_reasons = compute_rule_score(lead, offer, rules)
        async with semaphore:
            ai = await self.classifier.classify(lead, offer)
        return ScoredLead(
            lead_id=lead.id,
            offer_id=offer.id,
            intent=ai.intent,
            rule_score=rule_score,
            ai_score=ai.score,
            score=rule_score + ai.score,
            reasoning=combine_reasoning(rule_reasons, ai.reasoning),
        )

    async def run_scoring_pipeline(self) -> int:
        offer = self.repository.get_latest_offer()
        if offer is None:
            raise PreconditionError("No product/offer found. Please create an offer first.")
        lead_version, leads = self.repository.get_lead_snapshot()
        if not leads:
            raise PreconditionError("No leads found. Please upload leads first.")

        start = time.time()
        rules = await asyncio.to_thread(load_rules)
        semaphore = asyncio.Semaphore(self.max_concurrency)
        scored = await asyncio.gather(*(self._score_one(lead, offer, rules, semaphore) for lead in leads))
        # one atomic swap: readers see the previous run or this one, never a mix
        self.repository.replace_scored_leads(list(scored), lead_version)
        logger.info(json.dumps({
            "event": "scoring_completed",
            "offer_id": offer.id,
            "scored": len(scored),
            "latency_ms": int((time.time() - start) * 1000),
        }))
        return len(scored)

    def get_ranked_results(self) -> List[ScoredLeadResult]:
        return self.repository.get_scored_results()

    def export_results_as_csv(self, results: Optional[List[ScoredLeadResult]] = None) -> str:
        if results is None:
            results = self.get_ranked_results()
        rows = [
            [r.name, r.role, r.company, r.industry, r.location, r.intent.value, r.score, r.reasoning]
            for r in results
        ]
        df = pd.DataFrame(rows, columns=CSV_COLUMNS)
        buf = io.StringIO()
        df.to_csv(buf, index=False, lineterminator="\n")
        return buf.getvalue()
