import functools
import logging
import tarfile
import tempfile
from typing import IO, Dict, List, Optional

import docker
import requests
from docker.errors import DockerException, NotFound

from ..datacls import ImageInfo
from ..exceptions import EngineCallError, EngineConnectionFailedError
from ..protocols import LogSink

logger = logging.getLogger(__name__)

# Spill archives retrieved from containers to disk past this size
SPOOL_MAX_SIZE = 8 * 1024 * 1024


def wrap_engine_error(func):
    """Decorator to wrap transport errors into EngineCallError."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except (DockerException, requests.exceptions.RequestException) as e:
            raise EngineCallError(f"{func.__name__} failed: {e}") from e

    return wrapper


class DockerEngineClient:
    """
    EngineClient implementation over the Docker Engine API.

    Uses the low-level ``docker.APIClient`` so that build contexts can be
    streamed as prepared tar archives.
    """

    def __init__(self, api: docker.APIClient, timeout: int):
        self.api = api
        self.timeout = timeout

    @classmethod
    def connect(cls, base_url: str, timeout: int) -> "DockerEngineClient":
        """Connect to the daemon at ``base_url`` and verify it answers."""
        logger.debug(f"Connecting to container engine at '{base_url}' (timeout {timeout}s)")
        try:
            api = docker.APIClient(base_url=base_url, timeout=timeout)
            api.ping()
        except (DockerException, requests.exceptions.RequestException) as e:
            raise EngineConnectionFailedError(f"{base_url}: {e}") from e
        return cls(api, timeout)

    @wrap_engine_error
    def inspect_image(self, name: str) -> Optional[ImageInfo]:
        try:
            raw = self.api.inspect_image(name)
        except NotFound:
            logger.debug(f"Image '{name}' not found in local registry")
            return None
        config: Dict = raw.get("Config") or {}
        return ImageInfo(name=name, id=raw.get("Id", ""), entrypoint=config.get("Entrypoint"))

    @wrap_engine_error
    def pull_image(self, name: str) -> None:
        try:
            for event in self.api.pull(name, stream=True, decode=True):
                if "error" in event:
                    raise EngineCallError(f"Pulling '{name}' failed: {event['error']}")
                logger.debug(f"[pull {name}] {event.get('status', '')} {event.get('progress', '')}".rstrip())
        except NotFound as e:
            raise EngineCallError(f"Image '{name}' not found in registry: {e}") from e

    @wrap_engine_error
    def create_container(
        self,
        image: str,
        command: List[str],
        volumes: Optional[List[str]] = None,
        binds: Optional[List[str]] = None,
    ) -> str:
        host_config = self.api.create_host_config(binds=binds) if binds else None
        try:
            container = self.api.create_container(
                image=image,
                command=command,
                volumes=volumes,
                host_config=host_config,
            )
        except NotFound as e:
            raise EngineCallError(f"Cannot create container from '{image}': {e}") from e
        for warning in container.get("Warnings") or []:
            logger.warning(f"Container create warning for '{image}': {warning}")
        return container["Id"]

    @wrap_engine_error
    def start_container(self, container_id: str) -> None:
        try:
            self.api.start(container_id)
        except NotFound as e:
            raise EngineCallError(f"Container {container_id[:12]} vanished before start: {e}") from e

    @wrap_engine_error
    def wait_container(self, container_id: str) -> int:
        try:
            status = self.api.wait(container_id, timeout=self.timeout)
        except NotFound as e:
            raise EngineCallError(f"Container {container_id[:12]} vanished while waiting: {e}") from e
        return int(status.get("StatusCode", -1))

    @wrap_engine_error
    def remove_container(self, container_id: str, force: bool = True) -> None:
        try:
            self.api.remove_container(container_id, force=force)
        except NotFound:
            logger.debug(f"Container {container_id[:12]} already removed")

    def _fetch_archive(self, container_id: str, path: str) -> Optional[IO[bytes]]:
        try:
            stream, _ = self.api.get_archive(container_id, path)
        except NotFound:
            return None
        spool = tempfile.SpooledTemporaryFile(max_size=SPOOL_MAX_SIZE)
        for chunk in stream:
            spool.write(chunk)
        spool.seek(0)
        return spool

    @wrap_engine_error
    def copy_file_from_container(self, container_id: str, path: str) -> Optional[bytes]:
        archive = self._fetch_archive(container_id, path)
        if archive is None:
            logger.debug(f"File {path} not present in container {container_id[:12]}")
            return None
        with archive, tarfile.open(fileobj=archive) as tar:
            for member in tar:
                if member.isfile():
                    return tar.extractfile(member).read()
                # Links and other entries prove existence without inline content
                return b""
        return None

    @wrap_engine_error
    def copy_tree_from_container(self, container_id: str, path: str, dest_dir: str) -> None:
        archive = self._fetch_archive(container_id, path)
        if archive is None:
            raise EngineCallError(f"Path {path} not present in container {container_id[:12]}")
        with archive, tarfile.open(fileobj=archive) as tar:
            # The archive is rooted at the basename of ``path``; strip it
            members = []
            for member in tar.getmembers():
                _, _, relative = member.name.partition("/")
                if not relative:
                    continue
                member.name = relative
                members.append(member)
            tar.extractall(dest_dir, members=members, filter="data")
        logger.debug(f"Copied {len(members)} entries from {container_id[:12]}:{path} to {dest_dir}")

    @wrap_engine_error
    def build_image(self, tag: str, archive: IO[bytes], log_sink: LogSink) -> None:
        for chunk in self.api.build(
            fileobj=archive,
            custom_context=True,
            tag=tag,
            rm=True,
            decode=True,
            timeout=self.timeout,
        ):
            if "error" in chunk:
                detail = chunk.get("errorDetail", {}).get("message") or chunk["error"]
                raise EngineCallError(str(detail).strip())
            if "stream" in chunk:
                log_sink(chunk["stream"])
            elif "status" in chunk:
                log_sink(f"{chunk['status']}\n")

