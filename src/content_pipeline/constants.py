"""Constants for the content pipeline — stage table, generation settings, input defaults, fallback brand."""

from __future__ import annotations

from typing import NamedTuple

# ---------------------------------------------------------------------------
# Model defaults
# ---------------------------------------------------------------------------
DEFAULT_MODEL = "claude-sonnet-4-5-20250929"
DEFAULT_TIMEOUT_SECONDS = 300.0
DEFAULT_MAX_TOKENS = 8000
DEFAULT_TEMPERATURE = 0.3

MODEL_PREFIXES = ("anthropic/", "claude/")

# Characters of raw model text kept on a MalformedOutputError
EXCERPT_CHARS = 200

# ---------------------------------------------------------------------------
# Pipeline input defaults
# ---------------------------------------------------------------------------
DEFAULT_TARGET_WORD_COUNT = 1500
DEFAULT_CONTENT_TYPE = "article"
DEFAULT_BRAND_NAME = "Brand"

CONTENT_TYPES = ("article", "blog-post", "guide", "how-to")

# ---------------------------------------------------------------------------
# Stage table
# ---------------------------------------------------------------------------


class StageSpec(NamedTuple):
    """One row of the stage table."""

    stage: str
    label: str
    weight: int
    running_message: str
    recoverable: bool = False


STAGES = (
    StageSpec("brand-analyzer", "Brand analysis", 10, "Analyzing brand DNA...", recoverable=True),
    StageSpec("content-planner", "Content planning", 15, "Creating content plan..."),
    StageSpec("writer", "Writing", 30, "Writing content..."),
    StageSpec("editor", "Editing", 25, "Editing and polishing content..."),
    StageSpec("schema-generator", "Schema generation", 10, "Generating structured data schema..."),
    StageSpec("output-generator", "Output rendering", 10, "Generating final outputs..."),
)

# Only the terminal ``complete`` event may report 100
MAX_STAGE_PROGRESS = 99


class GenerationSettings(NamedTuple):
    temperature: float
    max_tokens: int


STAGE_SETTINGS = {
    "brand-analyzer": GenerationSettings(temperature=0.2, max_tokens=4000),
    "content-planner": GenerationSettings(temperature=0.3, max_tokens=6000),
    "writer": GenerationSettings(temperature=0.4, max_tokens=12000),
    "editor": GenerationSettings(temperature=0.2, max_tokens=12000),
    "schema-generator": GenerationSettings(temperature=0.1, max_tokens=4000),
}

# ---------------------------------------------------------------------------
# Fallback brand analysis values
# ---------------------------------------------------------------------------
FALLBACK_INDUSTRY = "general"
FALLBACK_VOICE = {
    "tone": "professional",
    "personality": ["helpful", "knowledgeable"],
    "writing_style": "clear and informative",
    "vocabulary_level": "intermediate",
    "do_list": ["be helpful", "be accurate"],
    "dont_list": ["be vague", "make claims without evidence"],
}
FALLBACK_GUIDELINES = ["Write clearly", "Focus on value"]
