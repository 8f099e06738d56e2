"""Domain-specific exceptions for the site change agent.

These exceptions let the executor, undo/publish engines and API layer
distinguish between failure modes: a single command failing, a session
record that cannot be found or read, and plan generation failures.
"""

from __future__ import annotations


class CommandError(Exception):
    """Base class for a single command failing during execution."""

    def __init__(self, command_type: str, message: str) -> None:
        self.command_type = command_type
        super().__init__(message)


class MissingTargetError(CommandError):
    """A command's target id resolved to ``0`` (nothing declared, nothing produced)."""

    def __init__(self, command_type: str) -> None:
        super().__init__(command_type, "Target post ID is missing.")


class ResourceNotFoundError(CommandError):
    """The targeted post or page is not part of the discovered content."""

    def __init__(self, command_type: str, resource_id: int) -> None:
        self.resource_id = resource_id
        super().__init__(command_type, f"Post {resource_id} not found in cache.")


class PatchNotMatchedError(CommandError):
    """The fuzzy patcher refused to touch content because the text was not found.

    ``reason`` is ``"not_found"`` when the text is absent, or ``"unsafe"``
    when it is present but no replacement would keep the markup intact.
    ``user_message`` is the line reported back to the user in the
    execution results.
    """

    def __init__(self, post_id: int, reason: str = "not_found") -> None:
        self.post_id = post_id
        self.reason = reason
        if reason == "unsafe":
            self.user_message = (
                f"Error: Could not find the specific text to replace in post {post_id}. "
                "No changes were made to prevent overwriting the whole page."
            )
        else:
            self.user_message = (
                f"Error: The text you want to change was not found on page {post_id}. "
                "Nothing was modified."
            )
        super().__init__("patch_post_content", f"Search text not found in post {post_id}")


class SessionError(Exception):
    """Base class for session log failures (undo / publish)."""


class SessionNotFoundError(SessionError):
    """No session log exists with the requested id."""

    def __init__(self, session_id: int | None) -> None:
        self.session_id = session_id
        super().__init__("Session not found.")


class SessionParseError(SessionError):
    """Neither the content nor the excerpt of a session log is valid JSON."""

    def __init__(self, session_id: int | None) -> None:
        self.session_id = session_id
        super().__init__("Failed to parse session data.")


class PublishError(SessionError):
    """One or more resources of a session could not be published."""

    def __init__(self, session_id: int, failures: list[str]) -> None:
        self.session_id = session_id
        self.failures = failures
        super().__init__(
            f"Session {session_id} partially published; failed: {'; '.join(failures)}"
        )


class PlanGenerationError(Exception):
    """The planner could not produce a valid Plan."""
