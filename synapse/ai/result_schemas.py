"""
JSON schemas for every structured generation call.

The "title" of each schema doubles as the response-format name sent to the
model and as the key the stub generator answers on.
"""

from typing import Any, Dict

JsonSchema = Dict[str, Any]

MINI_COURSE_SCHEMA: JsonSchema = {
    "title": "mini_course",
    "type": "object",
    "properties": {
        "learningOutcome": {"type": "string"},
        "overview": {"type": "string"},
        "concepts": {"type": "array", "items": {"type": "string"}},
        "practicalGuide": {"type": "string"},
        "formativeAction": {"type": "string"},
        "expertTip": {"type": "string"},
    },
    "required": [
        "learningOutcome",
        "overview",
        "concepts",
        "practicalGuide",
        "formativeAction",
        "expertTip",
    ],
}

SCAFFOLDING_TASK_SCHEMA: JsonSchema = {
    "title": "scaffolding_task",
    "type": "object",
    "properties": {
        "instruction": {"type": "string"},
        "durationSeconds": {"type": "integer"},
    },
    "required": ["instruction", "durationSeconds"],
}

DEBATE_TURN_SCHEMA: JsonSchema = {
    "title": "debate_turn",
    "type": "object",
    "properties": {
        "reply": {"type": "string"},
    },
    "required": ["reply"],
}

ROADMAP_SCHEMA: JsonSchema = {
    "title": "roadmap",
    "type": "object",
    "properties": {
        "title": {"type": "string"},
        "description": {"type": "string"},
        "learningOutcome": {"type": "string"},
        "diagnosticQuestions": {"type": "array", "items": {"type": "string"}},
        "deadline": {"type": "string"},
        "course": {"type": "string"},
        "rubrics": {"type": "array", "items": {"type": "string"}},
        "milestones": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "title": {"type": "string"},
                    "description": {"type": "string"},
                    "estimatedMinutes": {"type": "number"},
                    "deadline": {"type": "string"},
                },
                "required": ["title", "description", "estimatedMinutes", "deadline"],
            },
        },
    },
    "required": [
        "title",
        "description",
        "learningOutcome",
        "diagnosticQuestions",
        "deadline",
        "course",
        "milestones",
    ],
}


def schema_name(schema: JsonSchema) -> str:
    return str(schema.get("title") or "result")
