import threading
from typing import Dict, List, Optional, Tuple
from .errors import NotFoundError, RepositoryError
from .models import Lead, Offer, ScoredLead, ScoredLeadResult


class Repository:
    """Storage for offers, leads and scored leads. Implementations hold no scoring logic.

    Every ``replace_leads`` starts a new lead-set version. A scoring run reads
    its leads together with that version and hands it back to
    ``replace_scored_leads``, which refuses results computed for a lead set
    that has since been replaced. Deleting a single lead does not change the
    version; its scored lead is kept and left out of ``get_scored_results``.
    """

    def add_offer(self, offer: Offer) -> Offer:
        raise NotImplementedError

    def get_latest_offer(self) -> Optional[Offer]:
        raise NotImplementedError

    def replace_leads(self, leads: List[Lead]) -> List[Lead]:
        raise NotImplementedError

    def get_leads(self) -> List[Lead]:
        raise NotImplementedError

    def get_lead_snapshot(self) -> Tuple[int, List[Lead]]:
        raise NotImplementedError

    def get_lead(self, lead_id: str) -> Optional[Lead]:
        raise NotImplementedError

    def delete_lead(self, lead_id: str) -> None:
        raise NotImplementedError

    def replace_scored_leads(self, scored: List[ScoredLead], lead_version: int) -> List[ScoredLead]:
        raise NotImplementedError

    def get_scored_leads(self) -> List[ScoredLead]:
        raise NotImplementedError

    def get_scored_results(self) -> List[ScoredLeadResult]:
        raise NotImplementedError


class InMemoryRepository(Repository):
    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._offers: Dict[str, Offer] = {}
        self._leads: Dict[str, Lead] = {}
        self._lead_version = 0
        self._scored: Dict[str, ScoredLead] = {}

    def add_offer(self, offer: Offer) -> Offer:
        with self._lock:
            self._offers[offer.id] = offer
        return offer

    def get_latest_offer(self) -> Optional[Offer]:
        with self._lock:
            latest: Optional[Offer] = None
            # dicts iterate in insertion order, so >= lets the later insert win a tie
            for offer in self._offers.values():
                if latest is None or offer.created_at >= latest.created_at:
                    latest = offer
            return latest

    def replace_leads(self, leads: List[Lead]) -> List[Lead]:
        with self._lock:
            self._leads = {lead.id: lead for lead in leads}
            self._lead_version += 1
            self._scored = {}
        return list(leads)

    def get_leads(self) -> List[Lead]:
        with self._lock:
            return list(self._leads.values())

    def get_lead_snapshot(self) -> Tuple[int, List[Lead]]:
        with self._lock:
            return self._lead_version, list(self._leads.values())

    def get_lead(self, lead_id: str) -> Optional[Lead]:
        with self._lock:
            return self._leads.get(lead_id)

    def delete_lead(self, lead_id: str) -> None:
        with self._lock:
            if lead_id not in self._leads:
                raise NotFoundError(f"Lead {lead_id} not found")
            del self._leads[lead_id]

    def replace_scored_leads(self, scored: List[ScoredLead], lead_version: int) -> List[ScoredLead]:
        with self._lock:
            if lead_version != self._lead_version:
                raise RepositoryError("Leads were replaced while scoring was in progress")
            self._scored = {s.id: s for s in scored}
        return list(scored)

    def get_scored_leads(self) -> List[ScoredLead]:
        with self._lock:
            return list(self._scored.values())

    def get_scored_results(self) -> List[ScoredLeadResult]:
        with self._lock:
            results = []
            for s in self._scored.values():
                lead = self._leads.get(s.lead_id)
                if lead is None:
                    continue
                results.append(ScoredLeadResult(
                    id=s.id,
                    name=lead.name,
                    role=lead.role,
                    company=lead.company,
                    industry=lead.industry,
                    location=lead.location,
                    intent=s.intent,
                    score=s.score,
                    rule_score=s.rule_score,
                    ai_score=s.ai_score,
                    reasoning=s.reasoning,
                ))
        # sorted() is stable, so equal scores keep insertion order
        return sorted(results, key=lambda r: r.score, reverse=True)
