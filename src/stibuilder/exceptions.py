from typing import Dict, Optional, Type

from .constants import ErrorKind


class STIBuilderError(Exception):
    """Base exception for all application-specific errors."""

    pass


# --- 1. Errors related to loading and parsing the settings file ---
class ConfigurationError(STIBuilderError):
    """Base class for errors encountered while finding, reading, or parsing settings files."""

    pass


class ConfigFileMissingError(ConfigurationError):
    """Raised when the settings file cannot be found."""

    pass


class ConfigParsingError(ConfigurationError):
    """Raised when a YAML settings file is syntactically incorrect."""

    pass


class ConfigValidationError(ConfigurationError):
    """Raised when the settings fail structural validation (e.g., Pydantic)."""

    pass


# --- 2. Errors raised by external collaborators ---
class SourceRetrievalError(STIBuilderError):
    """Raised when the source tree cannot be cloned or copied into the build context."""

    pass


class EngineCallError(STIBuilderError):
    """
    Raised by engine client implementations when a single daemon call fails.

    Components translate it into an ``EngineOperationError`` kind where their
    contract names one.
    """

    pass


# --- 3. Orchestration failures, one class per ErrorKind ---
class EngineOperationError(STIBuilderError):
    """
    Base class for the closed failure taxonomy.

    Every subclass is bound to exactly one ``ErrorKind`` and carries its fixed
    message. Callers may add detail, which is appended to the message.
    """

    kind: ErrorKind

    def __init__(self, detail: Optional[str] = None):
        self.detail = detail
        message = self.kind.message if not detail else f"{self.kind.message}: {detail}"
        super().__init__(message)


class EngineConnectionFailedError(EngineOperationError):
    kind = ErrorKind.ENGINE_CONNECTION_FAILED


class NoSuchBaseImageError(EngineOperationError):
    kind = ErrorKind.NO_SUCH_BASE_IMAGE


class NoSuchRuntimeImageError(EngineOperationError):
    kind = ErrorKind.NO_SUCH_RUNTIME_IMAGE


class PullImageFailedError(EngineOperationError):
    kind = ErrorKind.PULL_IMAGE_FAILED


class SaveArtifactsFailedError(EngineOperationError):
    kind = ErrorKind.SAVE_ARTIFACTS_FAILED


class CreateManifestFailedError(EngineOperationError):
    kind = ErrorKind.CREATE_MANIFEST_FAILED


class CreateContainerFailedError(EngineOperationError):
    kind = ErrorKind.CREATE_CONTAINER_FAILED


class BuildFailedError(EngineOperationError):
    kind = ErrorKind.BUILD_FAILED


_ERRORS_BY_KIND: Dict[ErrorKind, Type[EngineOperationError]] = {
    cls.kind: cls for cls in EngineOperationError.__subclasses__()
}


def error_for(kind: ErrorKind) -> Type[EngineOperationError]:
    """Return the exception class bound to ``kind``."""
    return _ERRORS_BY_KIND[kind]
