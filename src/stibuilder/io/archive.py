import logging
import os
import stat
import tarfile
import tempfile
from pathlib import Path
from typing import IO, Iterator, Tuple, Union

from .. import constants

logger = logging.getLogger(__name__)


def iter_regular_files(root: Union[str, Path]) -> Iterator[Tuple[str, os.stat_result]]:
    """
    Walk ``root`` in sorted order yielding (relative posix path, stat) for
    every regular file. Symlinks are never followed, so a link cannot pull
    content from outside ``root``; links, directories and special files are
    skipped.
    """
    root = str(root)
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames.sort()
        for name in sorted(filenames):
            full = os.path.join(dirpath, name)
            st = os.lstat(full)
            if stat.S_ISLNK(st.st_mode):
                logger.debug(f"Skipping symbolic link '{full}'")
                continue
            if not stat.S_ISREG(st.st_mode):
                logger.debug(f"Skipping non-regular file '{full}'")
                continue
            relative = Path(os.path.relpath(full, root)).as_posix()
            yield relative, st


def tar_directory(directory: Union[str, Path]) -> IO[bytes]:
    """
    Package every regular file below ``directory`` into a temporary tar file.

    Entry names are relative to ``directory`` so the manifest's relative
    ``ADD`` paths resolve against the archive root. Each entry keeps the
    file's size, permission bits and modification time.

    Returns:
        The open archive, rewound to offset 0. The caller closes it.
    """
    archive = tempfile.TemporaryFile(prefix=constants.ARCHIVE_TEMP_PREFIX)
    count = 0
    try:
        with tarfile.open(fileobj=archive, mode="w") as tar:
            for relative, st in iter_regular_files(directory):
                info = tarfile.TarInfo(name=relative)
                info.size = st.st_size
                info.mode = stat.S_IMODE(st.st_mode)
                info.mtime = int(st.st_mtime)
                info.type = tarfile.REGTYPE
                with open(os.path.join(directory, relative), "rb") as fr:
                    tar.addfile(info, fr)
                count += 1
    except BaseException:
        archive.close()
        raise
    archive.seek(0)
    logger.debug(f"Packaged {count} files from '{directory}'")
    return archive
