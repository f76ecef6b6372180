"""
Prompt builders for the four generation call sites: roadmap analysis,
mini-course, scaffolding micro-task and debate turns.

Every prompt carries the strict pedagogy preamble: guide the learning, never
do the student's work.
"""

from typing import Optional, Sequence

from synapse.schemas.assignment import DebateRole, DebateTurn


# ── Shared preamble ──────────────────────────────────────────────────────

STRICT_MODE_PREAMBLE = (
    "STRICT MODE: You are an educator, not a ghostwriter. Guide the learning process. "
    "Never provide finished answers, solutions or complete work the student must "
    "produce themselves."
)

_LANGUAGE_INSTRUCTIONS = {
    "en": "Response MUST be in formal academic English.",
    "id": "Respons HARUS dalam Bahasa Indonesia yang formal dan akademis.",
}


def language_instruction(language: str) -> str:
    return _LANGUAGE_INSTRUCTIONS.get(language, _LANGUAGE_INSTRUCTIONS["en"])


# ── Roadmap analysis ─────────────────────────────────────────────────────

def build_roadmap_prompt(assignment_text: str, language: str = "en") -> str:
    return (
        f"{STRICT_MODE_PREAMBLE}\n\n"
        f"{language_instruction(language)}\n\n"
        f"Analyze this assignment:\n{assignment_text}\n\n"
        "Act as a Senior Professor. Your task is to ANALYZE the assignment structure, "
        "NOT to solve it.\n\n"
        "EXTRACT ONLY:\n"
        "- title, description (describe, don't solve), deadline (ISO 8601), course, rubrics\n\n"
        "GENERATE:\n"
        "- learningOutcome: what the student should LEARN (not the answer)\n"
        "- diagnosticQuestions: 3 questions to check the student's current baseline\n"
        "- milestones: pedagogically sound learning steps, each with title, description, "
        "estimatedMinutes and an ISO 8601 deadline\n\n"
        "If the assignment contains questions or problems, extract the topics and concepts "
        "to learn and never the answers.\n\n"
        "Output in strict JSON."
    )


# ── Mini-course ──────────────────────────────────────────────────────────

def build_mini_course_prompt(
    milestone_title: str,
    milestone_description: str,
    assignment_context: str,
    roadmap_summary: Optional[str] = None,
    language: str = "en",
) -> str:
    roadmap = (
        f"Full Roadmap Sequence for Continuity: {roadmap_summary}\n"
        if roadmap_summary else ""
    )
    return (
        f"{STRICT_MODE_PREAMBLE}\n\n"
        f"{language_instruction(language)}\n\n"
        "Act as a Distinguished University Professor and Subject Matter Expert.\n"
        "Create a COMPREHENSIVE and RIGOROUS Academic Module for this milestone: "
        f"\"{milestone_title}\".\n\n"
        f"Description of this milestone: {milestone_description}\n"
        f"Context of the whole assignment: {assignment_context}\n"
        f"{roadmap}\n"
        "REQUIRED STRUCTURE:\n"
        "1. learningOutcome: use Bloom's Taxonomy verbs (Analyze, Evaluate, Synthesize).\n"
        "2. overview (the \"Why\"): connect this unit to the broader academic field.\n"
        "3. concepts (the \"What\"): 5-7 core theoretical concepts or technical terms.\n"
        "4. practicalGuide (the \"How\"): a detailed, step-by-step methodology.\n"
        "5. formativeAction: one specific, measurable task proving the module is understood.\n"
        "6. expertTip: a nuanced take only a practitioner in the field would know.\n\n"
        "Tone: formal, authoritative, encouraging and intellectually stimulating."
    )


# ── Scaffolding micro-task ───────────────────────────────────────────────

def build_scaffolding_prompt(assignment_context: str, language: str = "en") -> str:
    return (
        f"{language_instruction(language)}\n\n"
        "The student is experiencing \"Academic Freeze\" (0% progress and very close to "
        "the deadline). Generate ONE \"Micro-Burst\" task.\n"
        "It must be extremely low-friction and take under 5 minutes.\n\n"
        "The task should help them START working, not complete work for them. Good examples:\n"
        "- \"Write ONE sentence describing what confuses you most\"\n"
        "- \"List 3 keywords related to your topic\"\n"
        "- \"Open your notes and highlight ONE key concept\"\n\n"
        "Return the instruction and durationSeconds (a whole number of seconds, at most 300).\n\n"
        f"Assignment: {assignment_context}"
    )


# ── Debate ───────────────────────────────────────────────────────────────

OPENING_CHALLENGE = (
    "Open the debate. Challenge my understanding of the core concepts you just provided."
)

_ROLE_LABELS = {
    DebateRole.MODEL: "CHALLENGER",
    DebateRole.USER: "STUDENT",
}


def build_debate_prompt(
    milestone_title: str,
    formative_action: str,
    assignment_context: str,
    transcript: Sequence[DebateTurn],
    message: str,
    language: str = "en",
) -> str:
    """Continuation prompt: sparring instructions, transcript so far, next message."""
    lines = [
        f"{STRICT_MODE_PREAMBLE}",
        "",
        f"{language_instruction(language)}",
        "",
        "You are a \"Socratic Sparring Partner\".",
        f"Topic: {milestone_title}.",
        f"Assignment: {assignment_context}",
        f"The student completed: {formative_action}.",
        "Challenge assumptions. Press on weak reasoning, demand evidence and "
        "counter-examples, and never concede a point that has not been argued.",
        "",
    ]
    if transcript:
        lines.append("Debate so far:")
        for turn in transcript:
            lines.append(f"{_ROLE_LABELS[turn.role]}: {turn.text}")
        lines.append("")
    lines.append(f"STUDENT: {message}")
    lines.append("")
    lines.append("Respond as the CHALLENGER with your next move in the field \"reply\".")
    return "\n".join(lines)
