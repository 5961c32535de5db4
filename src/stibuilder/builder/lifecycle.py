import logging
from contextlib import contextmanager
from typing import Iterator, List, Optional

from .. import constants
from ..datacls import HelperRun
from ..exceptions import CreateContainerFailedError, EngineCallError
from ..protocols import EngineClient

logger = logging.getLogger(__name__)


class ContainerLifecycle:
    """
    Runs short-lived helper containers ("container as a function call").

    A helper is created, started and waited on inside one scope and removed
    when that scope exits, whether it exits normally or with an error.
    """

    def __init__(self, engine: EngineClient):
        self.engine = engine

    @contextmanager
    def run_ephemeral(
        self,
        image: str,
        command: Optional[List[str]] = None,
        volumes: Optional[List[str]] = None,
        binds: Optional[List[str]] = None,
    ) -> Iterator[HelperRun]:
        """
        Run a helper container to completion and yield its exit status.

        A non-zero exit code is not an error here; callers interpret it. Engine
        failures while creating, starting or waiting raise
        CreateContainerFailedError.
        """
        command = command or constants.PROBE_COMMAND
        container_id = None
        try:
            try:
                container_id = self.engine.create_container(image, command, volumes, binds)
                logger.debug(f"Created helper container {container_id[:12]} from '{image}' running {command}")
                self.engine.start_container(container_id)
                exit_code = self.engine.wait_container(container_id)
            except EngineCallError as e:
                raise CreateContainerFailedError(f"helper from '{image}': {e}") from e
            logger.debug(f"Helper container {container_id[:12]} exited with code {exit_code}")
            yield HelperRun(container_id=container_id, exit_code=exit_code)
        finally:
            if container_id is not None:
                self._remove(container_id)

    def _remove(self, container_id: str):
        try:
            self.engine.remove_container(container_id, force=True)
            logger.debug(f"Removed helper container {container_id[:12]}")
        except EngineCallError as e:
            # Never mask the error that ended the scope
            logger.warning(f"Failed to remove helper container {container_id[:12]}: {e}")

    def file_exists(self, container_id: str, path: str) -> bool:
        """Determine whether a file exists in a container."""
        try:
            content = self.engine.copy_file_from_container(container_id, path)
        except EngineCallError as e:
            raise CreateContainerFailedError(f"reading {path} from {container_id[:12]}: {e}") from e
        logger.debug(f"File {path} in container {container_id[:12]}: {'present' if content is not None else 'absent'}")
        return content is not None
