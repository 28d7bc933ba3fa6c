"""
Intent classification of a lead against an offer.

``IntentClassifier.classify`` never raises: any failure of the underlying
capability turns into the fixed low-intent fallback so one lead's network
error cannot abort a scoring run.
"""

import asyncio
import json
import logging
import textwrap
from typing import Any, Dict, Optional, Tuple
from openai import AsyncOpenAI
from .config import Settings
from .errors import ClassifierUnavailable
from .models import Intent, IntentResult, Lead, Offer


logger = logging.getLogger("lead_scorer.classifier")

FALLBACK_REASONING = "AI analysis unavailable - defaulting to low intent"
DEFAULT_REASONING = "AI analysis completed"

SYSTEM_PROMPT = (
    "You are a lead qualification expert. Analyze prospects and classify their buying intent "
    "based on role, company fit, and context. Always respond with valid JSON."
)


def normalize_intent(value: Any) -> Intent:
    try:
        return Intent(value)
    except ValueError:
        return Intent.LOW


def fallback_result() -> IntentResult:
    return IntentResult.for_intent(Intent.LOW, FALLBACK_REASONING)


class IntentClassifier:
    async def classify(self, lead: Lead, offer: Offer) -> IntentResult:
        try:
            intent, reasoning = await self._classify(lead, offer)
        except Exception as e:
            logger.warning(json.dumps({
                "event": "classifier_fallback",
                "lead_id": lead.id,
                "error": f"{type(e).__name__}: {e}"[:200],
            }))
            return fallback_result()
        return IntentResult.for_intent(normalize_intent(intent), str(reasoning) if reasoning else DEFAULT_REASONING)

    async def _classify(self, lead: Lead, offer: Offer) -> Tuple[Any, Optional[str]]:
        raise NotImplementedError


def build_prompt(lead: Lead, offer: Offer) -> str:
    return textwrap.dedent(f"""\
    You are an expert lead qualification analyst. Analyze this prospect against the product/offer and classify their buying intent.

    PRODUCT/OFFER:
    Name: {offer.name}
    Value Propositions: {", ".join(offer.value_props)}
    Ideal Use Cases: {", ".join(offer.ideal_use_cases)}

    PROSPECT:
    Name: {lead.name}
    Role: {lead.role}
    Company: {lead.company}
    Industry: {lead.industry}
    Location: {lead.location}
    LinkedIn Bio: {lead.linkedin_bio}

    Classify their intent as High, Medium, or Low and provide 1-2 sentences explaining your reasoning.

    Respond with JSON in this exact format:
    {{
      "intent": "High|Medium|Low",
      "reasoning": "Your 1-2 sentence explanation here"
    }}
    """)


def parse_response(text: Optional[str]) -> Dict[str, Any]:
    if not text:
        raise ClassifierUnavailable("empty response from model")
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ClassifierUnavailable(f"model returned invalid JSON: {e}")
    if not isinstance(data, dict):
        raise ClassifierUnavailable("model returned a non-object JSON payload")
    return data


class OpenAIIntentClassifier(IntentClassifier):
    def __init__(self, settings: Settings, client: Optional[Any] = None):
        self.settings = settings
        self._client = client

    @property
    def client(self) -> Any:
        if self._client is None:
            if not self.settings.openai_api_key:
                raise ClassifierUnavailable("OPENAI_API_KEY is not configured")
            self._client = AsyncOpenAI(api_key=self.settings.openai_api_key)
        return self._client

    async def _classify(self, lead: Lead, offer: Offer) -> Tuple[Any, Optional[str]]:
        resp = await asyncio.wait_for(
            self.client.chat.completions.create(
                model=self.settings.openai_model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": build_prompt(lead, offer)},
                ],
                response_format={"type": "json_object"},
                temperature=0.3,
            ),
            timeout=self.settings.classifier_timeout_seconds,
        )
        data = parse_response(resp.choices[0].message.content)
        return data.get("intent"), data.get("reasoning")
