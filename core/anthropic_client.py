# core/anthropic_client.py
from typing import Dict, Any, List, Optional
import httpx
from pydantic import BaseModel, Field, ValidationError
from config.settings import settings
from model.claim import ExtractedClaim
from util.errors import ProviderError
from util.functions import parse_json_object
import logging
from util.timing import timed

logger = logging.getLogger(__name__)


async def _post_json(
    url: str,
    headers: Dict[str, str],
    payload: Dict[str, Any],
    timeout: float = 60.0,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Dict[str, Any]:
    """
    Make a JSON POST to `url`. Raises for non-2xx. Returns parsed JSON dict or {} on parse failure.
    """
    async with httpx.AsyncClient(timeout=timeout, transport=transport) as client:
        r = await client.post(url, headers=headers, json=payload)
        r.raise_for_status()
        try:
            data = r.json()
        except ValueError:
            return {}
    return data if isinstance(data, dict) else {}


def _content_text(data: Dict[str, Any]) -> str:
    """
    First text block of a Messages API reply, "" when absent.
    """
    content = data.get("content") or []
    if content and isinstance(content, list):
        node = content[0]
        if isinstance(node, dict) and node.get("type") == "text":
            return node.get("text") or ""
    return ""


def anthropic_headers(api_key: str) -> Dict[str, str]:
    if not api_key:
        raise ProviderError("ANTHROPIC_API_KEY is not set")
    return {
        "x-api-key": api_key,
        "anthropic-version": settings.ANTHROPIC_VERSION,
        "content-type": "application/json",
    }


class _RawClaim(BaseModel):
    id: str = ""
    text: str = ""
    citedSources: List[int] = Field(default_factory=list)


def _parse_claims(raw: str) -> List[_RawClaim]:
    obj = parse_json_object(raw)
    if obj is None:
        logger.warning("ai.extract.unparseable")
        return []
    out: List[_RawClaim] = []
    for item in obj.get("claims") or []:
        try:
            claim = _RawClaim.model_validate(item)
        except ValidationError:
            # drop malformed entries (common when outputs truncate)
            continue
        if claim.text.strip():
            out.append(claim)
    return out


class AnthropicClaimExtractor:
    """
    Claim extraction over the Anthropic Messages API.
    Returns claims as the model numbered them; the pipeline renumbers and caps.
    """

    def __init__(
        self,
        *,
        api_key: str = settings.ANTHROPIC_API_KEY,
        model: str = settings.ANTHROPIC_MODEL,
        api_url: str = settings.ANTHROPIC_API_URL,
        timeout: float = settings.EXTRACT_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._api_key = api_key
        self._model = model
        self._api_url = api_url
        self._timeout = timeout
        self._transport = transport

    async def extract(self, answer: str) -> List[ExtractedClaim]:
        payload = {
            "model": self._model,
            "max_tokens": 2000,
            "system": settings.EXTRACT_SYSTEM_PROMPT,
            "messages": [
                {
                    "role": "user",
                    "content": f"TEXT TO ANALYZE:\n{answer}\n\nExtract the factual claims. Return JSON only.",
                }
            ],
            "temperature": 0.0,
        }
        with timed(logger, "ai.extract", model=self._model):
            data = await _post_json(
                self._api_url,
                anthropic_headers(self._api_key),
                payload,
                timeout=self._timeout,
                transport=self._transport,
            )

        claims = [
            ExtractedClaim(id=c.id, text=c.text, citedSources=c.citedSources)
            for c in _parse_claims(_content_text(data))
        ]
        logger.info("ai.extract.claims count=%d", len(claims))
        return claims
