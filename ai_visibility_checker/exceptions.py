"""
Custom exceptions for AI Visibility Checker.

This module provides a hierarchy of exceptions that enable type-safe error
handling throughout the scoring pipeline. All exceptions inherit from the base
VisibilityCheckerError for consistent catching.

Exception Hierarchy:
    VisibilityCheckerError (base)
    ├── ConfigurationError
    │   ├── ConfigFileNotFoundError
    │   ├── ConfigValidationError
    │   └── APIKeyMissingError
    ├── ValidationError
    ├── ServiceError
    │   ├── ServiceTimeoutError
    │   ├── ServiceResponseError
    │   └── ExtractionError
    └── ParseError

Failure scope:
    - ConfigurationError and ValidationError are fatal to the whole request and
      are raised before any model call is made.
    - ServiceError and ParseError are caught at the smallest enclosing unit
      (one prompt, or one domain score) and recorded instead of aborting
      sibling units.

Usage:
    from ai_visibility_checker.exceptions import ServiceError

    try:
        response = await client.generate_answer(prompt)
    except ServiceError as e:
        logger.error(f"Generation failed: {e}")
"""


class VisibilityCheckerError(Exception):
    """
    Base exception for all AI Visibility Checker errors.

    Example:
        try:
            report = await orchestrator.run(prompts, domains)
        except VisibilityCheckerError as e:
            logger.error(f"Application error: {e}")
    """

    pass


# ============================================================================
# Configuration Errors
# ============================================================================


class ConfigurationError(VisibilityCheckerError):
    """
    Base class for configuration-related errors.

    Should be caught and result in exit code 1 (configuration error).
    """

    pass


class ConfigFileNotFoundError(ConfigurationError):
    """
    Configuration file does not exist at the specified path.

    Example:
        raise ConfigFileNotFoundError("/path/to/visibility.config.yaml")
    """

    pass


class ConfigValidationError(ConfigurationError):
    """
    Configuration file is invalid (YAML syntax or schema validation failed).

    Example:
        raise ConfigValidationError("Field 'prompts' must be a non-empty list")
    """

    pass


class APIKeyMissingError(ConfigurationError):
    """
    Required API key environment variable is not set.

    Example:
        raise APIKeyMissingError("GEMINI_API_KEY environment variable not set")
    """

    pass


# ============================================================================
# Request Validation Errors
# ============================================================================


class ValidationError(VisibilityCheckerError):
    """
    Caller supplied missing or empty required inputs.

    Raised for a missing/blank domain, a missing competitor list, or an empty
    prompt list. Never retried, and no model call is attempted.

    Example:
        raise ValidationError("Missing required parameters: prompts")
    """

    pass


# ============================================================================
# Generative Service Errors
# ============================================================================


class ServiceError(VisibilityCheckerError):
    """
    The generative text service call failed or was unreachable.

    Terminal for its unit of work: no retry is attempted at any layer.
    """

    pass


class ServiceTimeoutError(ServiceError):
    """
    The generative service did not answer before the request deadline.

    Example:
        raise ServiceTimeoutError("Gemini API timeout after 30.0s")
    """

    pass


class ServiceResponseError(ServiceError):
    """
    The service answered, but the reply was blocked, empty, or malformed.

    Example:
        raise ServiceResponseError("Gemini response missing 'candidates' array")
    """

    pass


class ExtractionError(ServiceError):
    """
    The model call made by the entity extractor failed.

    Wraps the underlying ServiceError so callers can tell extraction failures
    apart from initial-answer failures.

    Example:
        raise ExtractionError("Failed to get analysis from Gemini: HTTP 503")
    """

    pass


# ============================================================================
# Parse Errors
# ============================================================================


class ParseError(VisibilityCheckerError):
    """
    The service's reply could not be interpreted as the expected JSON.

    Attributes:
        original_error: The underlying decode error, if any
        cleaned_text: Reply text after code-fence stripping

    Example:
        raise ParseError(
            "Failed to parse Gemini analysis: Expecting value",
            original_error=decode_error,
            cleaned_text="not json",
        )
    """

    def __init__(
        self,
        message: str,
        original_error: Exception | None = None,
        cleaned_text: str | None = None,
    ):
        super().__init__(message)
        self.original_error = original_error
        self.cleaned_text = cleaned_text
