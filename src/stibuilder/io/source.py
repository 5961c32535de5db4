import logging
import re
import shutil
from pathlib import Path
from typing import Union

import git

from .. import constants
from ..exceptions import SourceRetrievalError

logger = logging.getLogger(__name__)

_VCS_URL_RE = re.compile("|".join(constants.VCS_URL_PATTERNS))


class SourceRetriever:
    """
    Fetches application sources into a build context.

    Version-control URLs are cloned with GitPython, anything else is treated
    as a local directory and copied with its attributes and symlinks intact.
    """

    def __init__(self):
        self.name = "SourceRetriever"

    @staticmethod
    def is_vcs_url(source: str) -> bool:
        return _VCS_URL_RE.match(source) is not None

    def fetch(self, source: str, dest_dir: Union[str, Path]):
        if self.is_vcs_url(source):
            self.clone(source, dest_dir)
        else:
            self.copy_tree(source, dest_dir)

    def clone(self, url: str, dest_dir: Union[str, Path]):
        logger.debug(f"[{self.name}] Fetching '{url}' to directory '{dest_dir}'")
        try:
            git.Repo.clone_from(url, str(dest_dir))
        except git.exc.GitCommandError as e:
            raise SourceRetrievalError(f"Failed to clone '{url}': {e}") from e

    def copy_tree(self, src_dir: Union[str, Path], dest_dir: Union[str, Path]):
        logger.debug(f"[{self.name}] Copying tree '{src_dir}' to '{dest_dir}'")
        if not Path(src_dir).is_dir():
            raise SourceRetrievalError(f"Source directory '{src_dir}' does not exist")
        try:
            shutil.copytree(src_dir, dest_dir, symlinks=True)
        except (shutil.Error, OSError) as e:
            raise SourceRetrievalError(f"Failed to copy '{src_dir}' to '{dest_dir}': {e}") from e
