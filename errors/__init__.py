"""Custom exception hierarchy for the site change agent."""

from errors.exceptions import (
    CommandError,
    MissingTargetError,
    PatchNotMatchedError,
    PlanGenerationError,
    PublishError,
    ResourceNotFoundError,
    SessionError,
    SessionNotFoundError,
    SessionParseError,
)

__all__ = [
    "CommandError",
    "MissingTargetError",
    "PatchNotMatchedError",
    "PlanGenerationError",
    "PublishError",
    "ResourceNotFoundError",
    "SessionError",
    "SessionNotFoundError",
    "SessionParseError",
]
