"""
Configuration constants for AI Visibility Checker.

Defaults for the single generative model, the answer-prompt template, and the
keyword lists used by the visibility scorer. The scorer never reads these
directly; they seed ScoringConfig so every heuristic can be overridden from
the YAML config.
"""

# Single fixed model family (Google Gemini)
DEFAULT_PROVIDER = "google"
DEFAULT_MODEL_NAME = "gemini-2.0-flash"
DEFAULT_API_KEY_ENV = "GEMINI_API_KEY"

# Per-request deadline in seconds; expiry is a ServiceTimeoutError
DEFAULT_TIMEOUT_SECONDS = 30.0

# ~25k tokens at 4 chars/token average
MAX_PROMPT_LENGTH = 100_000

# System prompts bundled in ai_visibility_checker/system_prompts/
DEFAULT_ANSWER_SYSTEM_PROMPT = "answer/default"
DEFAULT_EXTRACTION_SYSTEM_PROMPT = "extraction/default"

# Wraps each user prompt before it is sent to the answer model
ANSWER_PROMPT_TEMPLATE = (
    'Given the query "{prompt}", provide a detailed analysis of proxy service providers.\n'
    "Consider features, reliability, infrastructure, and market presence of major "
    "players in the industry.\n"
    "Focus on technical capabilities and service offerings. Discuss strengths and "
    "weaknesses of different providers."
)

# Product-category keywords (relevance signal)
RELEVANCE_KEYWORDS = (
    "proxy",
    "proxies",
    "web scraping",
    "data collection",
    "residential ip",
    "datacenter proxy",
    "rotating proxy",
    "ip address",
    "geolocation",
    "anonymity",
    "data extraction",
)

# Positive/authority adjectives (sentiment signal)
SENTIMENT_KEYWORDS = (
    "leader",
    "best",
    "top",
    "reliable",
    "advanced",
    "innovative",
    "comprehensive",
    "excellent",
    "premier",
    "trusted",
)

# System instruction of the extraction client; the extraction prompt itself
# travels in the user message together with the text to analyze
EXTRACTION_CLIENT_SYSTEM_PROMPT = (
    "You are a precise information extraction assistant. "
    "Reply with a single JSON object and nothing else."
)
