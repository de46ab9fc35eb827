# blueprint_coach/config/schema.py
"""
Pydantic configuration models for blueprint-coach.

All models use extra="ignore" to allow unknown YAML keys without crashing.
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_NON_ANSWERS = [
    "?",
    "??",
    "???",
    "idk",
    "i don't know",
    "i dont know",
    "dunno",
    "help",
    "no idea",
    "not sure",
    "skip",
    "pass",
    "nothing",
    "n/a",
    "na",
    "whatever",
    "hmm",
    "um",
]

DEFAULT_FORBIDDEN_PHRASES = [
    "please clarify",
    "could you clarify",
    "can you clarify",
    "can you elaborate",
    "could you elaborate",
    "tell me more",
    "what do you mean",
    "be more specific",
    "can you be more specific",
    "please provide more detail",
]


class RelayConfig(BaseModel):
    """LLM relay (serverless proxy) configuration."""

    model_config = ConfigDict(extra="ignore")

    base_url: str = Field(
        default="http://localhost:8888", description="Relay base URL"
    )
    endpoint: str = Field(
        default="/.netlify/functions/gemini",
        description="Relay path that accepts completion requests",
    )
    model: str | None = Field(
        default="gemini-1.5-flash", description="Model name forwarded to the relay"
    )
    timeout: float = Field(
        default=30.0, gt=0.0, description="Per-request timeout in seconds"
    )
    rate_limit_per_minute: int = Field(
        default=60,
        ge=1,
        description="Requests per minute the relay allows per client IP",
    )
    max_retries: int = Field(
        default=3, ge=1, le=10, description="Attempts before giving up on a request"
    )
    backoff_min: float = Field(
        default=2.0, ge=0.0, description="Minimum exponential backoff wait in seconds"
    )
    backoff_max: float = Field(
        default=30.0, ge=0.0, description="Maximum exponential backoff wait in seconds"
    )
    failure_threshold: int = Field(
        default=3,
        ge=1,
        description="Consecutive relay failures before switching to offline responses",
    )
    recovery_cooldown: float = Field(
        default=60.0,
        ge=0.0,
        description="Seconds to wait before checking whether the relay is back",
    )


class GenerationSettings(BaseModel):
    """Default sampling parameters sent with every completion request."""

    model_config = ConfigDict(extra="ignore")

    temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    max_output_tokens: int = Field(default=500, ge=1)
    top_p: float = Field(default=0.95, ge=0.0, le=1.0)
    top_k: int = Field(default=40, ge=1)


class ValidatorConfig(BaseModel):
    """Acceptance policy for user utterances."""

    model_config = ConfigDict(extra="ignore")

    force_accept_after: int = Field(
        default=3,
        ge=1,
        description="Attempt number at which any non-blank input is accepted",
    )
    min_meaningful_words: int = Field(
        default=2, ge=1, description="Words needed for accept-with-refinement"
    )
    non_answers: list[str] = Field(
        default_factory=lambda: list(DEFAULT_NON_ANSWERS),
        description="Utterances that never count as an answer",
    )
    forbidden_phrases: list[str] = Field(
        default_factory=lambda: list(DEFAULT_FORBIDDEN_PHRASES),
        description="Open-ended re-asks that must never be shown to the user",
    )


class ContextConfig(BaseModel):
    """Rolling conversation context limits."""

    model_config = ConfigDict(extra="ignore")

    max_history: int = Field(
        default=50, ge=1, description="Retained messages before trimming oldest"
    )
    recent_count: int = Field(
        default=3, ge=0, description="Most recent messages always sent"
    )
    max_relevant: int = Field(
        default=7, ge=0, description="Extra relevance-filtered messages per request"
    )
    theme_min_count: int = Field(
        default=3, ge=1, description="Occurrences before a keyword counts as a theme"
    )


class ParsingConfig(BaseModel):
    """Content parsing limits and minimum item counts."""

    model_config = ConfigDict(extra="ignore")

    max_input_chars: int = Field(
        default=10_000, ge=100, description="Input is truncated to this many characters"
    )
    strip_markdown: bool = Field(default=True)
    min_phases: int = Field(default=1, ge=1)
    min_activities: int = Field(default=1, ge=1)
    min_resources: int = Field(default=1, ge=1)
    min_milestones: int = Field(default=1, ge=1)
    min_rubric_criteria: int = Field(default=1, ge=1)
    min_impact_data: int = Field(default=1, ge=1)


class StorageConfig(BaseModel):
    """Blueprint persistence configuration."""

    model_config = ConfigDict(extra="ignore")

    db_path: str | None = Field(
        default=None,
        description="SQLite database path (None = user config dir/blueprints.db)",
    )


class OutputConfig(BaseModel):
    """Output configuration."""

    model_config = ConfigDict(extra="ignore")

    verbosity: Literal["quiet", "normal", "verbose"] = Field(
        default="normal", description="Logging verbosity level"
    )


class CoachConfig(BaseModel):
    """Root configuration for blueprint-coach."""

    model_config = ConfigDict(extra="ignore")

    relay: RelayConfig = Field(default_factory=RelayConfig)
    generation: GenerationSettings = Field(default_factory=GenerationSettings)
    validator: ValidatorConfig = Field(default_factory=ValidatorConfig)
    context: ContextConfig = Field(default_factory=ContextConfig)
    parsing: ParsingConfig = Field(default_factory=ParsingConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
