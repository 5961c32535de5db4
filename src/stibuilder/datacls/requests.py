"""
Request objects for build and validate invocations.

Requests are frozen pydantic models owned by the caller. Components read them
and never mutate them; derived requests are created with ``model_copy``.
"""

from pathlib import Path
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .. import constants


class Env(BaseModel):
    """A single NAME/VALUE environment entry rendered as an ``ENV`` directive."""
    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    value: str = ""


class Request(BaseModel):
    """Settings shared by every build and validate invocation."""
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    docker_url: str = constants.DEFAULT_DOCKER_URL
    timeout: int = Field(default=constants.DEFAULT_TIMEOUT, gt=0)
    working_dir: Path = Field(default_factory=Path.cwd)
    debug: bool = False
    base_image: str = Field(min_length=1)
    runtime_image: Optional[str] = None

    @field_validator("runtime_image")
    @classmethod
    def empty_runtime_is_absent(cls, value: Optional[str]) -> Optional[str]:
        return value or None

    @property
    def has_runtime_image(self) -> bool:
        return self.runtime_image is not None


class BuildSpec(Request):
    """Describes a request to build an image from a source tree."""

    source: str = Field(min_length=1)
    tag: str = Field(min_length=1)
    clean: bool = False
    validate_images: bool = False
    environment: List[Env] = Field(default_factory=list)
    # Receives build-log text as the engine streams it
    output: Optional[Any] = Field(default=None, exclude=True)


class ValidationSpec(Request):
    """Describes a request to validate images for use in a build."""

    incremental: bool = False
