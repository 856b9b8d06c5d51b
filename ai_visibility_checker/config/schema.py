"""
Configuration schema models for AI Visibility Checker.

Pydantic v2 models for validating visibility.config.yaml and for carrying the
resolved runtime configuration into the pipeline.

Models:
    ModelConfig: Generative model settings (provider, model_name, env_api_key)
    ScoringWeights: Per-signal weights for the composite score
    ScoringConfig: All scorer heuristics (weights, caps, keyword lists)
    VisibilityConfig: Root configuration model (validates entire YAML)
    RuntimeModel: Resolved model configuration with API key and prompt texts
    RuntimeConfig: Runtime configuration passed to the runner
"""

from typing import Literal

from pydantic import BaseModel, Field, field_validator, model_validator

from .constants import (
    DEFAULT_ANSWER_SYSTEM_PROMPT,
    DEFAULT_API_KEY_ENV,
    DEFAULT_EXTRACTION_SYSTEM_PROMPT,
    DEFAULT_MODEL_NAME,
    DEFAULT_TIMEOUT_SECONDS,
    RELEVANCE_KEYWORDS,
    SENTIMENT_KEYWORDS,
)
from .validators import split_competitors, split_prompts


class ModelConfig(BaseModel):
    """
    Generative model configuration from visibility.config.yaml.

    One model serves both the answer call and the extraction call; they only
    differ by system prompt.

    Attributes:
        provider: LLM provider name (only "google" is supported)
        model_name: Gemini model identifier (e.g., "gemini-2.0-flash")
        env_api_key: Environment variable name containing the API key
        timeout_seconds: Deadline for each HTTP request
        answer_system_prompt: Relative path of the answer system prompt JSON
        extraction_system_prompt: Relative path of the extraction prompt JSON
    """

    provider: Literal["google"] = "google"
    model_name: str = DEFAULT_MODEL_NAME
    env_api_key: str = DEFAULT_API_KEY_ENV
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    answer_system_prompt: str = DEFAULT_ANSWER_SYSTEM_PROMPT
    extraction_system_prompt: str = DEFAULT_EXTRACTION_SYSTEM_PROMPT

    @field_validator("model_name")
    @classmethod
    def validate_model_name(cls, v: str) -> str:
        """Validate model_name is non-empty."""
        if not v or v.isspace():
            raise ValueError("model_name cannot be empty")
        return v

    @field_validator("env_api_key")
    @classmethod
    def validate_env_api_key(cls, v: str) -> str:
        """Validate env_api_key is non-empty."""
        if not v or v.isspace():
            raise ValueError("env_api_key cannot be empty")
        return v

    @field_validator("timeout_seconds")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        """Validate timeout is positive."""
        if v <= 0:
            raise ValueError(f"timeout_seconds must be positive, got: {v}")
        return v


class ScoringWeights(BaseModel):
    """
    Weights of the five sub-scores. Defaults sum to 1.0.

    The final score is clamped to [0, 1] regardless of the weights.
    """

    mention: float = Field(default=0.3, ge=0.0)
    position: float = Field(default=0.2, ge=0.0)
    leadership: float = Field(default=0.2, ge=0.0)
    relevance: float = Field(default=0.2, ge=0.0)
    sentiment: float = Field(default=0.1, ge=0.0)


class ScoringConfig(BaseModel):
    """
    Heuristic constants for the visibility scorer.

    Passed to VisibilityScorer at construction so weighting can be tuned or
    tested without code changes.

    Attributes:
        weights: Per-signal weights
        mention_saturation: Occurrence count at which the mention score hits 1
        leadership_per_statement: Score per matching leadership statement
        leadership_cap: Upper bound of the leadership score
        relevance_keywords: Product-category keywords
        relevance_per_match: Score per keyword occurrence
        relevance_keyword_cap: Upper bound of a single keyword's contribution
        sentiment_keywords: Positive/authority adjectives
        sentiment_per_match: Score per adjective/company co-occurrence
        sentiment_keyword_cap: Upper bound of a single adjective's contribution
        fuzzy_match_threshold: Optional rapidfuzz ratio (0-100) used when no
            company matches the domain by substring. None disables it.

    Example:
        scoring:
          weights:
            mention: 0.4
            sentiment: 0.0
          fuzzy_match_threshold: 85
    """

    weights: ScoringWeights = Field(default_factory=ScoringWeights)
    mention_saturation: float = Field(default=3.0, gt=0.0)
    leadership_per_statement: float = Field(default=0.2, ge=0.0)
    leadership_cap: float = Field(default=0.5, ge=0.0)
    relevance_keywords: list[str] = Field(default_factory=lambda: list(RELEVANCE_KEYWORDS))
    relevance_per_match: float = Field(default=0.05, ge=0.0)
    relevance_keyword_cap: float = Field(default=0.25, ge=0.0)
    sentiment_keywords: list[str] = Field(default_factory=lambda: list(SENTIMENT_KEYWORDS))
    sentiment_per_match: float = Field(default=0.1, ge=0.0)
    sentiment_keyword_cap: float = Field(default=0.2, ge=0.0)
    fuzzy_match_threshold: float | None = None

    @field_validator("relevance_keywords", "sentiment_keywords")
    @classmethod
    def validate_keywords(cls, v: list[str]) -> list[str]:
        """Drop blank keywords (an empty pattern would match everywhere)."""
        return [k.strip() for k in v if k and not k.isspace()]

    @field_validator("fuzzy_match_threshold")
    @classmethod
    def validate_fuzzy_threshold(cls, v: float | None) -> float | None:
        """Validate threshold is a rapidfuzz ratio."""
        if v is not None and not 0.0 < v <= 100.0:
            raise ValueError(f"fuzzy_match_threshold must be in (0, 100], got: {v}")
        return v


class VisibilityConfig(BaseModel):
    """
    Root configuration model for visibility.config.yaml.

    Example:
        model:
          model_name: gemini-2.0-flash
          env_api_key: GEMINI_API_KEY
        domain: oxylabs.io
        competitors: [brightdata.com, smartproxy.com]
        prompts:
          - best residential proxy provider
    """

    model: ModelConfig = Field(default_factory=ModelConfig)
    domain: str
    competitors: list[str] = []
    prompts: list[str]
    scoring: ScoringConfig = Field(default_factory=ScoringConfig)

    @field_validator("domain")
    @classmethod
    def validate_domain(cls, v: str) -> str:
        """Validate domain is non-empty."""
        if not v or v.isspace():
            raise ValueError("domain cannot be empty")
        return v.strip()

    @field_validator("competitors", mode="before")
    @classmethod
    def validate_competitors(cls, v):
        """Accept a comma-separated string or a list; drop blank entries."""
        if v is None:
            return []
        return split_competitors(v)

    @field_validator("prompts", mode="before")
    @classmethod
    def validate_prompts(cls, v):
        """Accept a newline-separated string or a list; require one prompt."""
        prompts = split_prompts(v)
        if not prompts:
            raise ValueError("At least one non-empty prompt is required")
        return prompts


class RuntimeModel(BaseModel):
    """
    Resolved model configuration with API key and system prompt texts.

    Attributes:
        provider: LLM provider name
        model_name: Gemini model identifier
        api_key: Resolved API key from environment (NEVER log this)
        timeout_seconds: Deadline for each HTTP request
        answer_system_prompt: Resolved answer framing text
        extraction_system_prompt: Resolved extraction instruction text
    """

    provider: str
    model_name: str
    api_key: str
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    answer_system_prompt: str
    extraction_system_prompt: str

    @field_validator("api_key")
    @classmethod
    def validate_api_key(cls, v: str) -> str:
        """Validate API key is non-empty."""
        if not v or v.isspace():
            raise ValueError("API key cannot be empty")
        return v

    @field_validator("answer_system_prompt", "extraction_system_prompt")
    @classmethod
    def validate_system_prompt(cls, v: str) -> str:
        """Validate system prompt is non-empty."""
        if not v or v.isspace():
            raise ValueError("System prompt cannot be empty")
        return v


class RuntimeConfig(BaseModel):
    """
    Runtime configuration with resolved API key.

    This is the contract passed to the runner.

    Attributes:
        model: Resolved model configuration
        domain: Primary domain (scored first)
        competitors: Competitor domains in caller order
        prompts: Prompts to evaluate
        scoring: Scorer heuristics
    """

    model: RuntimeModel
    domain: str
    competitors: list[str] = []
    prompts: list[str]
    scoring: ScoringConfig = Field(default_factory=ScoringConfig)

    @model_validator(mode="after")
    def validate_prompts_present(self) -> "RuntimeConfig":
        """Validate there is at least one prompt to run."""
        if not self.prompts:
            raise ValueError("At least one prompt must be configured")
        return self

    @property
    def domains(self) -> list[str]:
        """Primary domain first, then competitors in caller order."""
        return [self.domain, *self.competitors]
