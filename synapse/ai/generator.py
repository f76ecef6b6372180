"""
Content generator - the single seam between the mastery core and a language model.

Contract: generate(prompt, schema) returns a dict carrying every key the schema
requires, or raises GenerationFailed. Timeouts count as failures.
"""

import asyncio
import json
import re
import time
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from synapse.ai.result_schemas import JsonSchema, schema_name
from synapse.config import Settings
from synapse.errors import GenerationFailed
from synapse.logging_config import get_logger

logger = get_logger(__name__)

_FENCE_RE = re.compile(r"^```(?:json)?\s*|\s*```$", re.I)


def parse_json_payload(raw: str, schema: JsonSchema) -> Dict[str, Any]:
    """Parse model output and check the schema's required keys are present."""
    name = schema_name(schema)
    text = _FENCE_RE.sub("", (raw or "").strip())
    if not text:
        raise GenerationFailed("empty response", schema_name=name)
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise GenerationFailed(f"response is not valid JSON ({exc.msg})", schema_name=name) from exc
    if not isinstance(data, dict):
        raise GenerationFailed("response is not a JSON object", schema_name=name)

    missing = [key for key in schema.get("required", []) if key not in data]
    if missing:
        raise GenerationFailed(f"missing required keys: {', '.join(missing)}", schema_name=name)
    return data


class ContentGenerator(ABC):
    """Base class: subclasses return raw text; parsing and timeouts live here."""

    def __init__(self, timeout_seconds: Optional[float] = None):
        self.timeout_seconds = timeout_seconds

    async def generate(self, prompt: str, schema: JsonSchema) -> Dict[str, Any]:
        name = schema_name(schema)
        start = time.perf_counter()
        try:
            if self.timeout_seconds:
                raw = await asyncio.wait_for(self._complete(prompt, schema), self.timeout_seconds)
            else:
                raw = await self._complete(prompt, schema)
        except asyncio.TimeoutError as exc:
            logger.warning(
                "Generation timed out",
                extra={"schema": name, "timeout_seconds": self.timeout_seconds},
            )
            raise GenerationFailed(
                f"timed out after {self.timeout_seconds:g}s", schema_name=name
            ) from exc

        data = parse_json_payload(raw, schema)
        logger.debug(
            "Generation complete",
            extra={"schema": name, "duration_ms": int((time.perf_counter() - start) * 1000)},
        )
        return data

    @abstractmethod
    async def _complete(self, prompt: str, schema: JsonSchema) -> str:
        """Return the model's raw text for prompt, asked to follow schema."""


class OpenAIContentGenerator(ContentGenerator):
    """Structured JSON generation through any OpenAI-compatible chat endpoint."""

    SYSTEM_PROMPT = (
        "You are the content engine of an academic mastery platform. "
        "Reply with a single JSON object that matches the requested schema. "
        "No prose outside the JSON."
    )

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o-mini",
        base_url: Optional[str] = None,
        timeout_seconds: Optional[float] = 60.0,
        client: Any = None,
    ):
        super().__init__(timeout_seconds=timeout_seconds)
        self.model = model
        if client is None:
            from openai import AsyncOpenAI

            client = AsyncOpenAI(api_key=api_key, base_url=base_url)
        self._client = client

    async def _complete(self, prompt: str, schema: JsonSchema) -> str:
        from openai import OpenAIError

        try:
            response = await self._client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": self.SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
                response_format={
                    "type": "json_schema",
                    "json_schema": {"name": schema_name(schema), "schema": schema},
                },
                temperature=0.4,
            )
        except OpenAIError as exc:
            logger.warning("Generation request failed: %s", exc, extra={"model": self.model})
            raise GenerationFailed(str(exc), schema_name=schema_name(schema)) from exc

        if not response.choices:
            raise GenerationFailed("no choices returned", schema_name=schema_name(schema))
        return response.choices[0].message.content or ""


class StubContentGenerator(ContentGenerator):
    """
    STUB: canned structured content for development without an API key.

    In production, OpenAIContentGenerator is used.
    """

    _STUBS: Dict[str, Dict[str, Any]] = {
        "mini_course": {
            "learningOutcome": "Analyze the core argument structure of this milestone.",
            "overview": "[Stub module] This unit situates the milestone within its field.",
            "concepts": ["Claim", "Evidence", "Warrant", "Counter-argument", "Scope"],
            "practicalGuide": "1. Restate the task.\n2. Map the key concepts.\n3. Draft a plan.",
            "formativeAction": "Write a 100-word summary linking two of the concepts.",
            "expertTip": "Examiners read limitations first; write them with care.",
        },
        "scaffolding_task": {
            "instruction": "Write ONE sentence describing what confuses you most.",
            "durationSeconds": 180,
        },
        "debate_turn": {
            "reply": "What evidence would convince you that your central assumption is wrong?",
        },
        "roadmap": {
            "title": "Untitled Assignment",
            "description": "[Stub analysis] Assignment description.",
            "learningOutcome": "Demonstrate structured reasoning on the assignment topic.",
            "diagnosticQuestions": [
                "What do you already know about this topic?",
                "Which part of the brief is least clear to you?",
                "What would a strong answer need to show?",
            ],
            "deadline": "",
            "course": "General",
            "rubrics": [],
            "milestones": [],
        },
    }

    async def _complete(self, prompt: str, schema: JsonSchema) -> str:
        stub = self._STUBS.get(schema_name(schema))
        if stub is None:
            raise GenerationFailed("no stub content for schema", schema_name=schema_name(schema))
        return json.dumps(stub)


def build_content_generator(settings: Settings) -> ContentGenerator:
    """Real generator when a key is configured, stub otherwise."""
    if settings.ai_configured:
        return OpenAIContentGenerator(
            api_key=settings.openai_api_key,
            model=settings.ai_model,
            base_url=settings.openai_base_url,
            timeout_seconds=settings.generation_timeout_seconds,
        )
    logger.warning("No AI key configured; using stub content generator")
    return StubContentGenerator(timeout_seconds=settings.generation_timeout_seconds)
