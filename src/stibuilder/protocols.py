"""
STI Builder Protocol Definitions

This module contains the container engine capability the orchestrator
consumes. Concrete transports (see ``stibuilder.engine``) implement it; the
core never imports a transport directly.

Protocols are the foundation layer with zero dependencies on other stibuilder
modules except the data classes they exchange.
"""

from typing import IO, Callable, List, Optional, Protocol, runtime_checkable

from .datacls import ImageInfo


LogSink = Callable[[str], None]


@runtime_checkable
class EngineClient(Protocol):
    """
    Protocol for container engine clients.

    Every call blocks until the daemon answers or the configured timeout
    expires. Failed calls raise ``EngineCallError``.
    """

    def inspect_image(self, name: str) -> Optional[ImageInfo]:
        """
        Inspect an image in the local registry.

        Returns:
            The image description, or None when no such image exists locally
        """
        ...

    def pull_image(self, name: str) -> None:
        """Pull an image from its registry into the local registry."""
        ...

    def create_container(
        self,
        image: str,
        command: List[str],
        volumes: Optional[List[str]] = None,
        binds: Optional[List[str]] = None,
    ) -> str:
        """
        Create (but do not start) a container.

        Args:
            image: Image to instantiate
            command: Command overriding the image default
            volumes: Container paths declared as volumes
            binds: ``host_path:container_path`` bind mounts

        Returns:
            The engine-assigned container identifier
        """
        ...

    def start_container(self, container_id: str) -> None:
        ...

    def wait_container(self, container_id: str) -> int:
        """Block until the container exits and return its exit code."""
        ...

    def remove_container(self, container_id: str, force: bool = True) -> None:
        ...

    def copy_file_from_container(self, container_id: str, path: str) -> Optional[bytes]:
        """
        Retrieve the content of a single file from a container.

        Returns:
            The file content, or None when the path does not exist
        """
        ...

    def copy_tree_from_container(self, container_id: str, path: str, dest_dir: str) -> None:
        """Copy the contents of a container directory into ``dest_dir`` on the host."""
        ...

    def build_image(self, tag: str, archive: IO[bytes], log_sink: LogSink) -> None:
        """
        Build an image from a packaged build context.

        Args:
            tag: Tag applied to the resulting image
            archive: Tar stream containing the manifest and its context
            log_sink: Called with each chunk of build output as it arrives
        """
        ...
