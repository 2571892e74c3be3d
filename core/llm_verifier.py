# core/llm_verifier.py
from datetime import date
from typing import Optional
import httpx
from config.settings import settings
from core.anthropic_client import _content_text, _post_json, anthropic_headers
from core.entities import EntailmentResult
from model.claim import EntailmentVerdict
from util.constants import Reasoning
from util.functions import clip_words, fill_prompt, parse_json_object
import logging
from util.timing import timed

logger = logging.getLogger(__name__)


def _user_prompt(claim: str, evidence: str, source_date: Optional[str]) -> str:
    """
    Build the user message for NLI with claim, one evidence passage and dates.
    """
    return fill_prompt(
        settings.NLI_USER_TEMPLATE,
        claim=claim,
        evidence=clip_words(evidence, max_words=140),
        source_date=source_date or "Unknown",
        current_date=date.today().strftime("%B %d, %Y"),
    )


def parse_entailment(raw: str) -> EntailmentResult:
    """
    Normalize a model reply into an EntailmentResult. Anything unrecognized is NEUTRAL.
    """
    parsed = parse_json_object(raw)
    if parsed is None:
        return EntailmentResult(
            verdict=EntailmentVerdict.NEUTRAL, reasoning=Reasoning.UNPARSEABLE
        )

    verdict_raw = str(parsed.get("verdict", "")).strip().upper()
    try:
        verdict = EntailmentVerdict(verdict_raw)
    except ValueError:
        verdict = EntailmentVerdict.NEUTRAL

    reasoning = str(parsed.get("reasoning", "")).strip()
    return EntailmentResult(verdict=verdict, reasoning=reasoning)


class AnthropicEntailmentClassifier:
    """
    Judge one claim against one evidence passage. Transport errors propagate;
    the pipeline's entailment check turns them into NEUTRAL.
    """

    def __init__(
        self,
        *,
        api_key: str = settings.ANTHROPIC_API_KEY,
        model: str = settings.ANTHROPIC_MODEL,
        api_url: str = settings.ANTHROPIC_API_URL,
        timeout: float = settings.NLI_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._api_key = api_key
        self._model = model
        self._api_url = api_url
        self._timeout = timeout
        self._transport = transport

    async def classify(
        self, claim: str, evidence: str, source_date: Optional[str] = None
    ) -> EntailmentResult:
        payload = {
            "model": self._model,
            "max_tokens": 400,
            "system": settings.NLI_SYSTEM_PROMPT,
            "messages": [
                {"role": "user", "content": _user_prompt(claim, evidence, source_date)}
            ],
            "temperature": 0.0,
        }
        with timed(logger, "ai.nli", model=self._model):
            data = await _post_json(
                self._api_url,
                anthropic_headers(self._api_key),
                payload,
                timeout=self._timeout,
                transport=self._transport,
            )

        result = parse_entailment(_content_text(data))
        logger.info("ai.nli.result verdict=%s", result.verdict.value)
        return result
