"""
STI Builder IO Module

- SourceRetriever: Clone or copy application sources into a build context
- open_exclusive: Exclusive, non-blocking file creation for build manifests
- tar_directory: Package a build context into a tar archive

Usage:
    from stibuilder.io import SourceRetriever, open_exclusive, tar_directory

    SourceRetriever().fetch("git://example.com/app.git", "/tmp/ctx/src")
    with open_exclusive("/tmp/ctx/Dockerfile") as manifest:
        manifest.write("FROM scratch\\n")
"""

from .source import SourceRetriever
from .lock import open_exclusive
from .archive import tar_directory, iter_regular_files

__all__ = [
    'SourceRetriever',
    'open_exclusive',
    'tar_directory',
    'iter_regular_files',
]
