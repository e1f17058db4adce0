"""
AI legal assistant backed by the OpenAI chat completion API.
"""

import json
import logging
import time
from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Optional

from openai import AsyncOpenAI, OpenAIError
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception_type

from lawhelp.core.config import AIConfig, get_config
from lawhelp.core.constants import (
    CAMEROON_LAW_CONTEXT, CATEGORIZE_MAX_TOKENS, CATEGORIZE_PROMPT, DEFAULT_ANSWER, DEFAULT_CATEGORY,
    DEFAULT_CONFIDENCE, DEFAULT_DISCLAIMER, FALLBACK_ANSWER, FALLBACK_DISCLAIMER, LEGAL_CATEGORIES,
    LEGAL_QUERY_PROMPT, RETRY_MAX_WAIT, RETRY_MIN_WAIT, RETRY_MULTIPLIER,
)
from lawhelp.core.exceptions import AIServiceError

logger = logging.getLogger(__name__)


@dataclass
class LegalResponse:
    answer: str
    category: str
    confidence: float
    references: List[str] = field(default_factory=list)
    disclaimer: str = DEFAULT_DISCLAIMER

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def fallback_response() -> LegalResponse:
    return LegalResponse(
        answer=FALLBACK_ANSWER,
        category="System Error",
        confidence=0.0,
        references=[],
        disclaimer=FALLBACK_DISCLAIMER,
    )


def parse_legal_response(content: Optional[str]) -> LegalResponse:
    """Turn the model's JSON answer into a LegalResponse, filling in defaults."""
    try:
        result = json.loads(content or "{}")
    except json.JSONDecodeError as e:
        raise AIServiceError(f"Model returned invalid JSON: {e}") from e
    if not isinstance(result, dict):
        raise AIServiceError("Model returned a non-object JSON payload")

    try:
        confidence = float(result.get("confidence") or DEFAULT_CONFIDENCE)
    except (TypeError, ValueError):
        confidence = DEFAULT_CONFIDENCE

    references = result.get("references") or []
    if not isinstance(references, list):
        references = [str(references)]

    return LegalResponse(
        answer=result.get("answer") or DEFAULT_ANSWER,
        category=result.get("category") or DEFAULT_CATEGORY,
        confidence=max(0.0, min(1.0, confidence)),
        references=[str(ref) for ref in references],
        disclaimer=result.get("disclaimer") or DEFAULT_DISCLAIMER,
    )


class AILegalService:
    """Answers Cameroon-law questions as structured JSON."""

    def __init__(self, settings: Optional[AIConfig] = None, client: Optional[AsyncOpenAI] = None):
        self.settings = settings or get_config().ai
        self._client = client

    @property
    def client(self) -> AsyncOpenAI:
        # Created on first use so the app starts without an API key
        if self._client is None:
            if not self.settings.openai_api_key:
                raise AIServiceError("OPENAI_API_KEY is not configured")
            self._client = AsyncOpenAI(
                api_key=self.settings.openai_api_key,
                timeout=self.settings.ai_request_timeout,
                max_retries=0,
            )
        return self._client

    @staticmethod
    def build_prompt(question: str, context: Optional[str] = None, language: str = "en") -> str:
        context_line = f'Additional Context: "{context}"\n' if context else ""
        return LEGAL_QUERY_PROMPT.format(
            question=question,
            context_line=context_line,
            language="French" if language == "fr" else "English",
        )

    async def _complete(self, **kwargs) -> str:
        retrying = retry(
            stop=stop_after_attempt(self.settings.ai_max_retries),
            wait=wait_exponential(multiplier=RETRY_MULTIPLIER, min=RETRY_MIN_WAIT, max=RETRY_MAX_WAIT),
            retry=retry_if_exception_type(OpenAIError),
            reraise=True,
        )

        async def call() -> str:
            response = await self.client.chat.completions.create(model=self.settings.openai_model, **kwargs)
            return response.choices[0].message.content or ""

        return await retrying(call)()

    async def process_legal_query(
        self, question: str, context: Optional[str] = None, language: str = "en"
    ) -> LegalResponse:
        """
        Answer a legal question.

        Never raises: when the API is unreachable or keeps failing, the fixed
        "technical difficulties" response is returned instead.
        """
        start_time = time.time()
        try:
            content = await self._complete(
                messages=[
                    {"role": "system", "content": CAMEROON_LAW_CONTEXT},
                    {"role": "user", "content": self.build_prompt(question, context, language)},
                ],
                response_format={"type": "json_object"},
                temperature=self.settings.ai_temperature,
                max_tokens=self.settings.ai_max_tokens,
            )
            result = parse_legal_response(content)
            logger.info(
                f"Legal query answered in {time.time() - start_time:.2f}s "
                f"(category={result.category}, confidence={result.confidence:.2f})"
            )
            return result
        except (OpenAIError, AIServiceError) as e:
            logger.error(f"AI Legal Service Error: {e}")
            return fallback_response()

    async def categorize_query(self, question: str) -> str:
        try:
            content = await self._complete(
                messages=[
                    {"role": "system", "content": CATEGORIZE_PROMPT},
                    {"role": "user", "content": question},
                ],
                temperature=0.1,
                max_tokens=CATEGORIZE_MAX_TOKENS,
            )
        except (OpenAIError, AIServiceError) as e:
            logger.error(f"Query categorization error: {e}")
            return DEFAULT_CATEGORY

        category = content.strip().rstrip(".")
        for known in LEGAL_CATEGORIES:
            if known.lower() == category.lower():
                return known
        return DEFAULT_CATEGORY


ai_legal_service = AILegalService()


def get_ai_legal_service() -> AILegalService:
    """Get the shared AI legal service."""
    return ai_legal_service
