"""Language-model judge implementing the scoring capability."""

import base64
import logging
import os
from pathlib import Path
from typing import Any

import httpx
from openai import APITimeoutError, AsyncOpenAI, RateLimitError
from pydantic import BaseModel, Field, ValidationError
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from game_qa.core.exceptions import ScoringError
from game_qa.core.models import ExternalScore, ScoringContext, TokenUsage

logger = logging.getLogger(__name__)

DEFAULT_JUDGE_MODEL = "gpt-4o-mini"

SYSTEM_PROMPT = (
    "You are a QA expert analyzing browser game test sessions. Evaluate playability "
    "based on loading, controls, and completion. Respond with valid JSON matching this "
    'exact schema: { "playability_score": number (0-1), "issues": string[], '
    '"confidence": number (0-1) }'
)


class JudgeVerdict(BaseModel):
    """Schema the judge must answer with."""

    playability_score: float = Field(ge=0.0, le=1.0)
    issues: list[str] = Field(default_factory=list)
    confidence: float = Field(ge=0.0, le=1.0)


def build_user_prompt(context: ScoringContext) -> str:
    results = context.results
    failed = [r for r in results if not r.success]
    action_errors = [r.error for r in failed if r.error][:5]
    console_errors = [line for line in context.console_logs if "[error]" in line.lower()][:5]
    console_warnings = [line for line in context.console_logs if "[warning]" in line.lower()][:5]

    sections = [
        "Analyze this browser game test session:",
        "",
        f"Game Genre: {context.metadata.get('genre') or 'unknown'}",
        f"Total Actions: {len(results)}",
        f"Successful Actions: {len(results) - len(failed)}",
        f"Failed Actions: {len(failed)}",
        f"Heuristic Score: {context.heuristic_score:.2f}",
    ]
    if action_errors:
        sections += ["", "Action Errors:", *action_errors]
    if console_errors:
        sections += ["", "Console Errors:", *console_errors]
    if console_warnings:
        sections += ["", "Console Warnings:", *console_warnings]
    sections += [
        "",
        "Questions to answer:",
        "1. Did the game load successfully?",
        "2. Were controls responsive?",
        "3. Did the game complete without crashes?",
        "4. Are there any visible issues in the final screenshot?",
        "",
        'Respond with JSON: { "playability_score": number (0-1), "issues": string[], '
        '"confidence": number (0-1) }',
    ]
    return "\n".join(sections)


class LLMJudge:
    """OpenAI chat-completions judge.

    Without an API key the judge reports itself unavailable and the
    evaluation engine falls back to heuristic-only scoring.
    """

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        base_url: str | None = None,
        timeout: float = 60.0,
        temperature: float = 0.7,
        max_tokens: int = 500,
    ):
        self.api_key = api_key or os.environ.get("OPENAI_API_KEY")
        requested = model or os.environ.get("GAME_QA_JUDGE_MODEL", DEFAULT_JUDGE_MODEL)
        # "openai/gpt-4o-mini" style names carry a provider prefix
        self.model = requested.split("/", 1)[1] if "/" in requested else requested
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.client: AsyncOpenAI | None = None
        if self.api_key:
            self.client = AsyncOpenAI(api_key=self.api_key, base_url=base_url, timeout=timeout)
        else:
            logger.warning("OPENAI_API_KEY not set, LLM evaluation disabled")

    @property
    def available(self) -> bool:
        return self.client is not None

    def _user_content(self, context: ScoringContext) -> str | list[dict[str, Any]]:
        text = build_user_prompt(context)
        if not context.screenshot_path:
            return text
        try:
            encoded = base64.b64encode(Path(context.screenshot_path).read_bytes()).decode("utf-8")
        except OSError as e:
            logger.debug(f"Failed to read screenshot for evaluation: {e}")
            return text
        return [
            {"type": "text", "text": text},
            {"type": "image_url", "image_url": {"url": f"data:image/png;base64,{encoded}"}},
        ]

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_exception_type((RateLimitError, APITimeoutError, httpx.TimeoutException)),
        reraise=True,
    )
    async def _complete(self, messages: list[dict[str, Any]]):
        return await self.client.chat.completions.create(
            model=self.model,
            messages=messages,
            response_format={"type": "json_object"},
            temperature=self.temperature,
            max_tokens=self.max_tokens,
        )

    async def score(self, context: ScoringContext) -> ExternalScore:
        """Ask the model for a playability verdict.

        Raises:
            ScoringError: If the judge is unavailable, the call fails, or the
                answer does not match the verdict schema
        """
        if not self.available:
            raise ScoringError("LLM judge unavailable: no API key configured")

        messages = [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": self._user_content(context)},
        ]
        try:
            response = await self._complete(messages)
        except Exception as e:
            raise ScoringError(f"LLM evaluation failed: {e}", context={"model": self.model}) from e

        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise ScoringError("Empty response from judge", context={"model": self.model})

        try:
            verdict = JudgeVerdict.model_validate_json(content)
        except ValidationError as e:
            raise ScoringError(f"Judge returned an invalid verdict: {e}") from e

        usage = response.usage
        token_usage = TokenUsage(
            prompt_tokens=usage.prompt_tokens if usage else 0,
            completion_tokens=usage.completion_tokens if usage else 0,
            total_tokens=usage.total_tokens if usage else 0,
        )
        logger.info(
            f"🧑‍⚖️ Judge score {verdict.playability_score:.2f} "
            f"(confidence {verdict.confidence:.2f}, {token_usage.total_tokens} tokens)"
        )
        return ExternalScore(
            score=verdict.playability_score,
            issues=verdict.issues,
            confidence=verdict.confidence,
            token_usage=token_usage,
        )
