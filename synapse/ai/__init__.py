"""
Content generation - prompts, result schemas and generator implementations.

All generation goes through ContentGenerator.generate(prompt, schema); nothing
else in the package talks to a model.
"""

from synapse.ai.generator import (
    ContentGenerator,
    OpenAIContentGenerator,
    StubContentGenerator,
    build_content_generator,
    parse_json_payload,
)
from synapse.ai.result_schemas import (
    DEBATE_TURN_SCHEMA,
    MINI_COURSE_SCHEMA,
    ROADMAP_SCHEMA,
    SCAFFOLDING_TASK_SCHEMA,
)

__all__ = [
    "ContentGenerator",
    "OpenAIContentGenerator",
    "StubContentGenerator",
    "build_content_generator",
    "parse_json_payload",
    "DEBATE_TURN_SCHEMA",
    "MINI_COURSE_SCHEMA",
    "ROADMAP_SCHEMA",
    "SCAFFOLDING_TASK_SCHEMA",
]
