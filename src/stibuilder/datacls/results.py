from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class BuildResult(BaseModel):
    success: bool = False
    messages: List[str] = Field(default_factory=list)


class ValidationCheck(BaseModel):
    """Outcome of validating one image in one role."""
    model_config = ConfigDict(frozen=True)

    subject: str
    image: str
    passed: bool


class ValidationResult(BaseModel):
    """
    Describes the result of a validation.

    ``valid`` stays true only while every recorded check passed.
    """
    valid: bool = True
    messages: List[str] = Field(default_factory=list)
    checks: List[ValidationCheck] = Field(default_factory=list)

    def record_validation(self, subject: str, image: str, passed: bool) -> None:
        self.checks.append(ValidationCheck(subject=subject, image=image, passed=passed))
        if passed:
            self.messages.append(f"{subject} {image} passes validation")
        else:
            self.valid = False
            self.messages.append(f"{subject} {image} failed validation")


class ImageInfo(BaseModel):
    """The subset of an image inspection the orchestrator relies on."""
    model_config = ConfigDict(frozen=True)

    name: str
    id: str = ""
    entrypoint: Optional[List[str]] = None

    @property
    def has_entrypoint(self) -> bool:
        return bool(self.entrypoint)


class HelperRun(BaseModel):
    """An exited helper container, valid only inside its lifecycle scope."""
    model_config = ConfigDict(frozen=True)

    container_id: str
    exit_code: int
