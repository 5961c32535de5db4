import logging
import os
from pathlib import Path
from typing import Union

from .. import constants
from ..exceptions import (
    CreateContainerFailedError,
    EngineCallError,
    PullImageFailedError,
    SaveArtifactsFailedError,
)
from ..protocols import EngineClient
from .lifecycle import ContainerLifecycle

logger = logging.getLogger(__name__)


class IncrementalArtifactManager:
    """
    Detects whether a previous build of a tag can seed an incremental build,
    and extracts that build's artifacts onto the host.
    """

    def __init__(self, engine: EngineClient, lifecycle: ContainerLifecycle = None):
        self.engine = engine
        self.lifecycle = lifecycle or ContainerLifecycle(engine)

    def image_exists(self, name: str) -> bool:
        """
        Check whether ``name`` is present in the local image registry.

        A failed lookup raises PullImageFailedError, the kind for a failed
        inspect.
        """
        try:
            return self.engine.inspect_image(name) is not None
        except EngineCallError as e:
            raise PullImageFailedError(f"inspecting '{name}': {e}") from e

    def detect_incremental(self, tag: str) -> bool:
        """
        Report whether the image tagged ``tag`` can save artifacts.

        Images without save-artifacts force a clean build even when the tag
        already exists.
        """
        with self.lifecycle.run_ephemeral(tag, constants.PROBE_COMMAND) as run:
            if run.exit_code != 0:
                raise CreateContainerFailedError(
                    f"probe of '{tag}' exited with code {run.exit_code}"
                )
            capable = self.lifecycle.file_exists(run.container_id, constants.SAVE_ARTIFACTS_SCRIPT)

        if capable:
            logger.debug(f"Image '{tag}' provides {constants.SAVE_ARTIFACTS_SCRIPT}")
        else:
            logger.info(f"Image '{tag}' lacks {constants.SAVE_ARTIFACTS_SCRIPT}, a clean build is required")
        return capable

    def save_artifacts(self, image: str, dest_dir: Union[str, Path]):
        """
        Run save-artifacts in a container from ``image`` with ``dest_dir``
        bind-mounted at the artifacts path. A non-zero exit aborts the build.
        """
        host_dir = os.path.abspath(dest_dir)
        logger.info(f"Saving build artifacts from image '{image}' to '{host_dir}'")
        bind = f"{host_dir}:{constants.CONTAINER_ARTIFACTS_DIR}"
        with self.lifecycle.run_ephemeral(
            image,
            [constants.SAVE_ARTIFACTS_SCRIPT],
            volumes=[constants.CONTAINER_ARTIFACTS_DIR],
            binds=[bind],
        ) as run:
            if run.exit_code != 0:
                raise SaveArtifactsFailedError(f"'{image}' exited with code {run.exit_code}")
        logger.debug(f"Artifacts from '{image}' saved to '{host_dir}'")
