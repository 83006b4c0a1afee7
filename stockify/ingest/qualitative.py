"""
Qualitative scoring client.

Asks an OpenAI-compatible chat endpoint (Groq by default) for a 0-100
qualitative outlook score per company. The HTTP call is blocking
(requests) and runs in a worker thread so the event loop stays free.

The client raises EnrichmentError on failure. It is an optional side
channel: the recommendation assembler bounds every call with a timeout
and degrades failures to the neutral score.
"""

import asyncio
import json
import logging
import math
from typing import Any, Protocol, runtime_checkable

import requests

from stockify.core.config import Settings, get_settings
from stockify.core.exceptions import EnrichmentError
from stockify.core.numeric import clamp

logger = logging.getLogger(__name__)


@runtime_checkable
class QualitativeScorer(Protocol):
    """Anything that can score a company qualitatively on 0-100."""

    async def score(self, name: str, industry: str) -> float | None:
        """Return a 0-100 score, or None when no opinion is available."""
        ...


PROMPT_TEMPLATE = """
Role: Senior Financial Strategist.
Task: Analyze the company "{name}" (Industry: {industry}) listed in India.
Use your internal knowledge.

Assess, decisively:
1. Government guidelines: are there strict regulations hindering growth?
2. Sector future: bullish, bearish or neutral outlook with key drivers.
3. Industry lifecycle: Startup, Growth, Shakeout, Maturity or Decline.
4. BCG matrix: Star, Cash Cow, Dog or Question Mark.

Output Format: JSON object with keys "guidelines", "future", "lifecycle",
"bcg" and "aiScore", where aiScore is an integer from 0 (avoid) to 100
(very attractive) summarizing the qualitative outlook.
"""


class GroqQualitativeScorer:
    """
    Qualitative scorer backed by the Groq chat completions API.

    Example:
        scorer = GroqQualitativeScorer(settings=get_settings())
        score = await scorer.score("Tata Elxsi", "IT - Software")
    """

    SOURCE_NAME = "groq"
    BASE_URL = "https://api.groq.com/openai/v1/chat/completions"

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        timeout: float | None = None,
        settings: Settings | None = None,
        session: requests.Session | None = None,
    ) -> None:
        """
        Initialize the client.

        Args:
            api_key: Groq API key (from settings if not provided)
            model: Chat model name
            timeout: HTTP timeout in seconds
            settings: Settings object
            session: requests session (created if not provided)
        """
        settings = settings or get_settings()
        self.api_key = api_key or settings.groq_api_key
        self.model = model or settings.qualitative_model
        self.timeout = timeout or settings.qualitative_timeout
        self.session = session or requests.Session()

    async def score(self, name: str, industry: str) -> float | None:
        """
        Qualitative score for one company.

        Args:
            name: Company name
            industry: Industry label

        Returns:
            Score in [0, 100], or None if the model gave no usable score

        Raises:
            EnrichmentError: On missing key, HTTP failure or bad payload
        """
        if not self.api_key:
            raise EnrichmentError("Missing GROQ_API_KEY", source=self.SOURCE_NAME)

        payload = await asyncio.to_thread(self._post, name, industry)
        return parse_ai_score(payload)

    def _post(self, name: str, industry: str) -> dict[str, Any]:
        """Blocking chat completion call; returns the parsed message content."""
        body = {
            "model": self.model,
            "messages": [
                {
                    "role": "user",
                    "content": PROMPT_TEMPLATE.format(name=name, industry=industry or "Unknown"),
                }
            ],
            "temperature": 0.3,
            "response_format": {"type": "json_object"},
        }
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.api_key}",
        }

        try:
            response = self.session.post(
                self.BASE_URL, headers=headers, json=body, timeout=self.timeout
            )
        except requests.RequestException as e:
            raise EnrichmentError(f"Request failed: {e}", source=self.SOURCE_NAME) from e

        if not response.ok:
            raise EnrichmentError(
                f"Groq API error: {response.status_code} {response.text[:200]}",
                source=self.SOURCE_NAME,
                status_code=response.status_code,
            )

        try:
            content = response.json()["choices"][0]["message"]["content"]
            return json.loads(content)
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise EnrichmentError(
                f"Failed to parse Groq response: {e}", source=self.SOURCE_NAME
            ) from e

    def close(self) -> None:
        self.session.close()


def parse_ai_score(payload: Any) -> float | None:
    """
    Extract aiScore from a model response.

    Args:
        payload: Parsed JSON content

    Returns:
        Score clamped to [0, 100], or None if absent or not numeric
    """
    if not isinstance(payload, dict):
        return None

    raw = payload.get("aiScore")
    if raw is None or isinstance(raw, bool):
        return None

    try:
        value = float(str(raw).strip().rstrip("%"))
    except ValueError:
        logger.debug(f"Unusable aiScore: {raw!r}")
        return None

    if not math.isfinite(value):
        return None
    return clamp(value)
