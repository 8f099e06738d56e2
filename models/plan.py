"""Plan models — the structured change commands produced from a user prompt.

A Plan is the unit of work for one execution: a human-readable explanation
plus an ordered list of commands.  Commands form a discriminated union on
``type``; numeric id fields accept either strings or numbers.
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, HttpUrl

# target_post_id / post_id value meaning "use the id produced by the previous command"
PREVIOUS_RESULT = 0


class FailurePolicy(str, Enum):
    """What the executor does with the rest of the plan after a command fails."""

    SKIP = "skip"  # record the failure, continue with the next command
    ABORT = "abort"  # record the failure, stop processing the plan


class _CommandBase(BaseModel):
    model_config = ConfigDict(frozen=True)

    on_failure: FailurePolicy | None = None


class CreatePageCommand(_CommandBase):
    type: Literal["create_page"]
    title: str
    blocks: list[Any] = Field(default_factory=list)
    status: Literal["draft", "publish"] = "draft"


class InsertPatternCommand(_CommandBase):
    type: Literal["insert_pattern"]
    pattern_slug: str
    target_post_id: int
    context: dict[str, Any] | None = None


class UpdateGlobalStylesCommand(_CommandBase):
    type: Literal["update_global_styles"]
    styles: dict[str, Any]
    settings: dict[str, Any] | None = None


class UpdatePostCommand(_CommandBase):
    type: Literal["update_post"]
    post_id: int
    title: str | None = None
    content: str | None = None
    status: Literal["draft", "publish"] | None = None


class UpdateSettingsCommand(_CommandBase):
    type: Literal["update_settings"]
    title: str | None = None
    description: str | None = None
    timezone: str | None = None


class UploadMediaCommand(_CommandBase):
    type: Literal["upload_media"]
    url: HttpUrl
    alt_text: str | None = None
    caption: str | None = None


class PatchPostContentCommand(_CommandBase):
    type: Literal["patch_post_content"]
    post_id: int
    search: str = Field(min_length=1)
    replace: str


Command = Annotated[
    Union[
        CreatePageCommand,
        InsertPatternCommand,
        UpdateGlobalStylesCommand,
        UpdatePostCommand,
        UpdateSettingsCommand,
        UploadMediaCommand,
        PatchPostContentCommand,
    ],
    Field(discriminator="type"),
]


class Plan(BaseModel):
    """An immutable, validated sequence of commands."""

    model_config = ConfigDict(frozen=True)

    explanation: str
    commands: list[Command] = Field(default_factory=list)
    on_failure: FailurePolicy | None = None
