import io
import itertools
import tarfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

import pytest

from stibuilder import constants
from stibuilder.datacls import ImageInfo
from stibuilder.exceptions import EngineCallError
from stibuilder.io import SourceRetriever

CONTRACT_FILES = {
    constants.PREPARE_SCRIPT: b"#!/bin/sh\n",
    constants.RUN_SCRIPT: b"#!/bin/sh\n",
}
INCREMENTAL_FILES = {
    **CONTRACT_FILES,
    constants.SAVE_ARTIFACTS_SCRIPT: b"#!/bin/sh\n",
}


@dataclass
class FakeImage:
    """An image known to the FakeEngine, described by the files it contains."""
    files: Dict[str, bytes] = field(default_factory=dict)
    entrypoint: Optional[List[str]] = None
    probe_exit: int = 0
    save_exit: int = 0
    artifacts: Dict[str, bytes] = field(default_factory=lambda: {"deps.cache": b"cached"})


class FakeEngine:
    """
    In-memory EngineClient.

    Records every call in ``events`` so tests can assert ordering, and every
    container so tests can assert they were removed.
    """

    def __init__(self):
        self.images: Dict[str, FakeImage] = {}
        self.remote: Dict[str, FakeImage] = {}
        self.containers: Dict[str, dict] = {}
        self.events: List[str] = []
        self.builds: List[dict] = []
        self.fail_on: Dict[str, Exception] = {}
        self.build_error: Optional[str] = None
        self._ids = itertools.count(1)

    # --- helpers for tests ---
    def add_image(self, name: str, **kwargs) -> FakeImage:
        image = FakeImage(**kwargs)
        self.images[name] = image
        return image

    def add_remote(self, name: str, **kwargs) -> FakeImage:
        image = FakeImage(**kwargs)
        self.remote[name] = image
        return image

    def live_containers(self) -> List[str]:
        return [cid for cid, c in self.containers.items() if not c["removed"]]

    def _maybe_fail(self, method: str):
        if method in self.fail_on:
            raise self.fail_on[method]

    # --- EngineClient ---
    def inspect_image(self, name: str) -> Optional[ImageInfo]:
        self.events.append(f"inspect:{name}")
        self._maybe_fail("inspect_image")
        image = self.images.get(name)
        if image is None:
            return None
        return ImageInfo(name=name, id=f"sha256:{name}", entrypoint=image.entrypoint)

    def pull_image(self, name: str) -> None:
        self.events.append(f"pull:{name}")
        self._maybe_fail("pull_image")
        if name not in self.remote:
            raise EngineCallError(f"pull access denied for {name}")
        self.images[name] = self.remote[name]

    def create_container(self, image, command, volumes=None, binds=None) -> str:
        self.events.append(f"create:{image}:{' '.join(command)}")
        self._maybe_fail("create_container")
        if image not in self.images:
            raise EngineCallError(f"No such image: {image}")
        container_id = f"c{next(self._ids):063d}"
        self.containers[container_id] = {
            "image": image,
            "command": list(command),
            "volumes": volumes,
            "binds": binds,
            "removed": False,
            "exit_code": None,
        }
        return container_id

    def start_container(self, container_id: str) -> None:
        self.events.append(f"start:{container_id}")
        self._maybe_fail("start_container")
        container = self.containers[container_id]
        image = self.images[container["image"]]
        if container["command"] == [constants.SAVE_ARTIFACTS_SCRIPT]:
            container["exit_code"] = image.save_exit
            if image.save_exit == 0:
                for bind in container["binds"] or []:
                    host, _, target = bind.partition(":")
                    if target == constants.CONTAINER_ARTIFACTS_DIR:
                        for name, content in image.artifacts.items():
                            Path(host, name).write_bytes(content)
        else:
            container["exit_code"] = image.probe_exit

    def wait_container(self, container_id: str) -> int:
        self.events.append(f"wait:{container_id}")
        self._maybe_fail("wait_container")
        return self.containers[container_id]["exit_code"]

    def remove_container(self, container_id: str, force: bool = True) -> None:
        self.events.append(f"remove:{container_id}")
        self._maybe_fail("remove_container")
        self.containers[container_id]["removed"] = True

    def copy_file_from_container(self, container_id: str, path: str) -> Optional[bytes]:
        self.events.append(f"copy:{path}")
        self._maybe_fail("copy_file_from_container")
        image = self.images[self.containers[container_id]["image"]]
        return image.files.get(path)

    def copy_tree_from_container(self, container_id: str, path: str, dest_dir: str) -> None:
        self.events.append(f"copytree:{path}")
        image = self.images[self.containers[container_id]["image"]]
        prefix = path.rstrip("/") + "/"
        for name, content in image.files.items():
            if name.startswith(prefix):
                target = Path(dest_dir, name[len(prefix):])
                target.parent.mkdir(parents=True, exist_ok=True)
                target.write_bytes(content)

    def build_image(self, tag, archive, log_sink) -> None:
        self.events.append(f"build:{tag}")
        with tarfile.open(fileobj=archive) as tar:
            members = {m.name: tar.extractfile(m).read() for m in tar.getmembers()}
        manifest = members[constants.MANIFEST_NAME].decode()
        self.builds.append({"tag": tag, "members": members, "manifest": manifest})
        for line in manifest.splitlines():
            log_sink(f"Step : {line}\n")
        if self.build_error:
            raise EngineCallError(self.build_error)

        base = self.images[manifest.splitlines()[0].split(" ", 1)[1]]
        files = dict(base.files)
        for name, content in members.items():
            if name.startswith(f"{constants.SOURCE_SUBDIR}/"):
                files[f"{constants.CONTAINER_SOURCE_DIR}/{name[len(constants.SOURCE_SUBDIR) + 1:]}"] = content
        self.images[tag] = FakeImage(files=files, artifacts=dict(base.artifacts), probe_exit=base.probe_exit)


class RecordingRetriever(SourceRetriever):
    """Retriever that writes a fixed tree instead of cloning, and logs into engine events."""

    def __init__(self, events: List[str], tree: Optional[Dict[str, str]] = None):
        super().__init__()
        self.events = events
        self.tree = tree or {"app.rb": "puts 'hello'\n", "lib/util.rb": "# util\n"}

    def fetch(self, source, dest_dir):
        self.events.append(f"prepare_source:{source}")
        for name, content in self.tree.items():
            target = Path(dest_dir, name)
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content)


@pytest.fixture
def engine() -> FakeEngine:
    return FakeEngine()


@pytest.fixture
def make_tree(tmp_path: Path):
    """A pytest fixture to create a directory tree from a {relative path: content} mapping."""
    def _make(files: Dict[str, str], root: Optional[Path] = None) -> Path:
        root = root or tmp_path / "tree"
        for name, content in files.items():
            target = root / name
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content)
        return root
    return _make


def archive_entries(archive) -> Dict[str, tuple]:
    """Map archive member names to (size, mode, mtime, type)."""
    archive.seek(0)
    data = archive.read()
    with tarfile.open(fileobj=io.BytesIO(data)) as tar:
        return {m.name: (m.size, m.mode, m.mtime, m.type) for m in tar.getmembers()}


@pytest.fixture
def contract_files() -> Dict[str, bytes]:
    return dict(CONTRACT_FILES)


@pytest.fixture
def incremental_files() -> Dict[str, bytes]:
    return dict(INCREMENTAL_FILES)


@pytest.fixture
def retriever(engine: FakeEngine) -> RecordingRetriever:
    return RecordingRetriever(engine.events)


@pytest.fixture
def read_archive():
    return archive_entries
