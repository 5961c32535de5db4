"""
STIB (STI Builder) Framework

Builds reproducible container images from application sources: the sources
are added to a base image that knows how to prepare and run them, optionally
reusing artifacts saved by the previous image of the same tag.

Main modules:
- builder: Build strategy selection, validation, artifacts and context assembly
- engine: Container engine clients (Docker Engine API)
- io: Source retrieval, manifest locking and context archives
- datacls: Request and result data classes
- config: Settings file loading and validation
- utils: Logging and parsing helpers

Quick start example:
```python
from stibuilder import BuildSpec, build

result = build(BuildSpec(
    source="git://example.com/app.git",
    base_image="example/ruby-builder",
    tag="example/app",
    working_dir="/tmp/stib-app",
))
```
"""

from .protocols import EngineClient
from .datacls import (
    Request,
    BuildSpec,
    ValidationSpec,
    Env,
    BuildResult,
    ValidationResult,
)
from .builder import Builder, ImageValidator, build, validate
from .config import Config
from .constants import ErrorKind
from .exceptions import (
    STIBuilderError,
    ConfigurationError,
    SourceRetrievalError,
    EngineCallError,
    EngineOperationError,
    EngineConnectionFailedError,
    NoSuchBaseImageError,
    NoSuchRuntimeImageError,
    PullImageFailedError,
    SaveArtifactsFailedError,
    CreateManifestFailedError,
    CreateContainerFailedError,
    BuildFailedError,
)

__version__ = "0.1.0"

__all__ = [
    # Version
    '__version__',
    # Protocols
    'EngineClient',
    # Data classes
    'Request',
    'BuildSpec',
    'ValidationSpec',
    'Env',
    'BuildResult',
    'ValidationResult',
    # Operations
    'Builder',
    'ImageValidator',
    'build',
    'validate',
    # Config
    'Config',
    # Exceptions
    'ErrorKind',
    'STIBuilderError',
    'ConfigurationError',
    'SourceRetrievalError',
    'EngineCallError',
    'EngineOperationError',
    'EngineConnectionFailedError',
    'NoSuchBaseImageError',
    'NoSuchRuntimeImageError',
    'PullImageFailedError',
    'SaveArtifactsFailedError',
    'CreateManifestFailedError',
    'CreateContainerFailedError',
    'BuildFailedError',
]
