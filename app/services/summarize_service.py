"""
Line item description summarizer.

WHAT: Turns a long internal work note into a short client-facing line
item description.

WHY: Items keep the raw note for internal use (raw_description) while
the invoice shows a clean one-liner (description).

HOW: Calls a local Ollama model through its OpenAI-compatible endpoint
with the openai client. A low temperature and small token budget keep
answers short and stable. Connection failures are reported separately
so the UI can tell the user to start Ollama.
"""

import logging
import re
from dataclasses import dataclass
from typing import Optional

from openai import AsyncOpenAI, APIError, RateLimitError, APIConnectionError

from app.core.config import settings
from app.core.exceptions import (
    AIConnectionError,
    AIRateLimitError,
    AIServiceError,
    ValidationError,
)

logger = logging.getLogger(__name__)

MAX_DESCRIPTION_LENGTH = 5000

SUMMARY_SYSTEM_PROMPT = """You are a professional invoice line item summarizer. Your task is to convert detailed internal work descriptions into concise, client-friendly one-line summaries.

Guidelines:
- Keep summaries under 10 words when possible
- Use professional, clear language
- Focus on the deliverable/outcome, not internal details
- Remove technical jargon and internal references
- Be specific but brief

Examples:
Input: "Fixed critical bug in user authentication module where users couldn't reset passwords - spent 4 hours debugging JWT token validation and implemented proper error handling"
Output: "Authentication bug fix and error handling improvements"

Input: "Developed new REST API endpoint for user profile updates including validation middleware, database schema changes, and comprehensive unit tests"
Output: "User profile API endpoint development"

Input: "Project management and client communication for Q1 roadmap planning including 3 meetings and documentation"
Output: "Q1 roadmap planning and project coordination\""""

_SURROUNDING_QUOTES = re.compile(r"^[\"']+|[\"']+$")
_WHITESPACE = re.compile(r"\s+")


def clean_summary(text: Optional[str]) -> str:
    """Strip surrounding quotes and collapse whitespace onto one line."""
    summary = (text or "").strip()
    summary = _SURROUNDING_QUOTES.sub("", summary)
    return _WHITESPACE.sub(" ", summary).strip()


@dataclass
class SummaryResult:
    summary: str
    model: str


class SummarizeService:
    """
    Summarizes line item descriptions with a local model.

    Created once at startup; the AsyncOpenAI client keeps its own
    connection pool.
    """

    def __init__(
        self,
        client: Optional[AsyncOpenAI] = None,
        model: Optional[str] = None,
    ):
        """
        Args:
            client: OpenAI-compatible client (built for OLLAMA_URL if omitted)
            model: Model name (defaults to OLLAMA_MODEL)
        """
        self._model = model or settings.OLLAMA_MODEL
        self._client = client or AsyncOpenAI(
            base_url=f"{settings.OLLAMA_URL.rstrip('/')}/v1",
            # Ollama ignores the key but the client requires one
            api_key="ollama",
            timeout=settings.OLLAMA_TIMEOUT_SECONDS,
            max_retries=0,
        )

    async def summarize(
        self,
        raw_description: str,
        model: Optional[str] = None,
    ) -> SummaryResult:
        """
        Summarize one description.

        Args:
            raw_description: Internal work note
            model: Optional model override

        Returns:
            SummaryResult with the cleaned one-liner

        Raises:
            ValidationError: Empty or oversized description
            AIConnectionError: Ollama is not reachable
            AIRateLimitError: Upstream rate limit
            AIServiceError: Any other model failure or an empty answer
        """
        text = (raw_description or "").strip()
        if not text:
            raise ValidationError(message="Description is required")
        if len(text) > MAX_DESCRIPTION_LENGTH:
            raise ValidationError(
                message=f"Description too long (max {MAX_DESCRIPTION_LENGTH} characters)"
            )

        model_name = model or self._model
        logger.info(f"Summarizing description ({len(text)} chars) with {model_name}")

        try:
            response = await self._client.chat.completions.create(
                model=model_name,
                messages=[
                    {"role": "system", "content": SUMMARY_SYSTEM_PROMPT},
                    {
                        "role": "user",
                        "content": f'Now summarize this description:\n\n"{text}"\n\nOne-line summary:',
                    },
                ],
                temperature=0.3,
                top_p=0.9,
                max_tokens=50,
            )
        except RateLimitError as e:
            logger.warning(f"Ollama rate limit exceeded: {e}")
            raise AIRateLimitError()
        except APIConnectionError as e:
            logger.error(f"Ollama connection error: {e}")
            raise AIConnectionError(ollama_url=settings.OLLAMA_URL)
        except APIError as e:
            logger.error(f"Ollama API error: {e}")
            raise AIServiceError(
                message=f"AI service error: {e}",
                error_code=getattr(e, "code", None),
            )

        content = response.choices[0].message.content if response.choices else None
        summary = clean_summary(content)
        if not summary:
            raise AIServiceError(message="No response from the AI model")

        logger.info(
            "Summary generated",
            extra={"input_length": len(text), "output_length": len(summary)},
        )
        return SummaryResult(summary=summary, model=model_name)
