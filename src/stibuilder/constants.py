from enum import Enum

# --- Log and Debug ---
# Short aliases for module names to keep CLI/env concise
LOG_ALIAS_MAP = {
    "build": "stibuilder.builder.build",
    "bld": "stibuilder.builder.build",
    "validate": "stibuilder.builder.validate",
    "val": "stibuilder.builder.validate",
    "artifacts": "stibuilder.builder.artifacts",
    "art": "stibuilder.builder.artifacts",
    "context": "stibuilder.builder.context",
    "ctx": "stibuilder.builder.context",
    "lifecycle": "stibuilder.builder.lifecycle",
    "lc": "stibuilder.builder.lifecycle",
    "engine": "stibuilder.engine",
    "eng": "stibuilder.engine",
    "io": "stibuilder.io",
    "src": "stibuilder.io.source",
    "conf": "stibuilder.config",
}

# Top-level modules within stibuilder for auto-prefixing
KNOWN_TOP_MODULES = {
    "builder",
    "engine",
    "io",
    "utils",
    "datacls",
    "exceptions",
    "config",
    "cli",
}

LOG_LEVELS_ENV = "STIB_LOG_LEVELS"

# --- Engine defaults ---
DEFAULT_DOCKER_URL = "unix:///var/run/docker.sock"
DEFAULT_TIMEOUT = 30

# --- Filenames and Paths (host side) ---
MANIFEST_NAME = "Dockerfile"
SOURCE_SUBDIR = "src"
ARTIFACTS_SUBDIR = "artifacts"
STAGE_BUILD_SUBDIR = "build"
STAGE_RUNTIME_SUBDIR = "runtime"
WORKDIR_TEMP_PREFIX = "stib-"
ARCHIVE_TEMP_PREFIX = "stib-tar-"

# --- Image contract (container side) ---
PREPARE_SCRIPT = "/usr/bin/prepare"
RUN_SCRIPT = "/usr/bin/run"
SAVE_ARTIFACTS_SCRIPT = "/usr/bin/save-artifacts"
CONTAINER_SOURCE_DIR = "/usr/src"
CONTAINER_ARTIFACTS_DIR = "/usr/artifacts"
PROBE_COMMAND = ["/bin/true"]

REQUIRED_FILES = [PREPARE_SCRIPT, RUN_SCRIPT]
INCREMENTAL_REQUIRED_FILES = [PREPARE_SCRIPT, RUN_SCRIPT, SAVE_ARTIFACTS_SCRIPT]

# Suffix of the intermediate image produced by the first stage of an extended build
BUILDER_TAG_SUFFIX = "-build"

# --- Source retrieval ---
VCS_URL_PATTERNS = [
    r"^git://",
    r"^ssh://",
    r"^git\+ssh://",
    r"^[\w.-]+@[\w.-]+:",  # scp-like, e.g. git@github.com:org/repo.git
    r"^https?://.+\.git/?$",
]

# --- Validation subjects ---
BASE_IMAGE_SUBJECT = "Base image"
RUNTIME_IMAGE_SUBJECT = "Runtime image"


class ErrorKind(str, Enum):
    """Closed set of orchestration failure kinds, each with a fixed message."""

    ENGINE_CONNECTION_FAILED = "Unable to connect to the container engine"
    NO_SUCH_BASE_IMAGE = "Base image does not exist"
    NO_SUCH_RUNTIME_IMAGE = "Runtime image does not exist"
    PULL_IMAGE_FAILED = "Unable to inspect or pull image"
    SAVE_ARTIFACTS_FAILED = "Saving artifacts from the previous build failed"
    CREATE_MANIFEST_FAILED = "Unable to exclusively create the build manifest"
    CREATE_CONTAINER_FAILED = "Helper container did not exit successfully"
    BUILD_FAILED = "Image build failed"

    @property
    def message(self) -> str:
        return self.value
