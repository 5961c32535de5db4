import errno
import fcntl
import logging
import os
from pathlib import Path
from typing import IO, Union

from ..exceptions import CreateManifestFailedError

logger = logging.getLogger(__name__)


def open_exclusive(path: Union[str, Path], mode: int = 0o700) -> IO[str]:
    """
    Open ``path`` for writing while holding an exclusive, non-blocking flock.

    The lock is tied to the returned handle and released when it is closed.
    If another open handle already holds the lock, fails immediately with
    CreateManifestFailedError instead of waiting.
    """
    try:
        fd = os.open(path, os.O_CREAT | os.O_RDWR, mode)
    except OSError as e:
        raise CreateManifestFailedError(f"cannot open '{path}': {e}") from e
    try:
        fcntl.flock(fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
    except OSError as e:
        os.close(fd)
        if e.errno in (errno.EWOULDBLOCK, errno.EAGAIN):
            logger.error(f"'{path}' is locked by another build using the same working directory")
            raise CreateManifestFailedError(f"'{path}' is locked by another build") from e
        raise CreateManifestFailedError(f"cannot lock '{path}': {e}") from e

    logger.debug(f"Acquired exclusive lock on '{path}'")
    return os.fdopen(fd, "w", encoding="utf-8")
