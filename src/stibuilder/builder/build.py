import logging
from pathlib import Path
from typing import Any, List, Optional

from .. import constants
from ..datacls import BuildResult, BuildSpec, ValidationSpec
from ..engine import connect
from ..exceptions import (
    BuildFailedError,
    CreateContainerFailedError,
    EngineCallError,
)
from ..protocols import EngineClient
from .artifacts import IncrementalArtifactManager
from .context import BuildContextAssembler
from .lifecycle import ContainerLifecycle
from .validate import ImageValidator

logger = logging.getLogger(__name__)


class BuildLog:
    """Log sink for the engine's build call; collects output and forwards it."""

    def __init__(self, output: Optional[Any] = None):
        self.output = output
        self._chunks: List[str] = []

    def __call__(self, text: str):
        self._chunks.append(text)
        if self.output is not None:
            self.output.write(text)
            self.output.flush()

    @property
    def messages(self) -> List[str]:
        return "".join(self._chunks).splitlines()


class Builder:
    """
    Selects a build strategy for a BuildSpec and runs it to completion.

    Strategies:
    - clean: no prior artifacts, source and manifest only
    - incremental: artifacts saved by the previous image of the same tag are
      extracted and added to the context
    - extended: the application is built in the base image, then its
      prepared sources are assembled on top of the runtime image

    Any failing step aborts the build and its error propagates unchanged.
    """

    def __init__(
        self,
        spec: BuildSpec,
        engine: Optional[EngineClient] = None,
        assembler: Optional[BuildContextAssembler] = None,
    ):
        self.spec = spec
        self.engine = engine if engine is not None else connect(spec)
        self.lifecycle = ContainerLifecycle(self.engine)
        self.artifacts = IncrementalArtifactManager(self.engine, self.lifecycle)
        self.assembler = assembler or BuildContextAssembler()
        self.working_dir = Path(spec.working_dir)
        logger.debug(f"Builder initialized for tag '{spec.tag}'. Working dir: '{self.working_dir}'")

    def run(self) -> BuildResult:
        logger.info(f"[Builder] Starting build of '{self.spec.tag}' from '{self.spec.source}'...")
        if self.spec.validate_images:
            self._validate_images()

        incremental = self.detect_strategy()
        log = BuildLog(self.spec.output)
        self.working_dir.mkdir(parents=True, exist_ok=True)

        if self.spec.has_runtime_image:
            self._extended_build(incremental, log)
        else:
            self._standard_build(self.working_dir, self.spec.base_image, self.spec.tag, incremental, log)

        logger.info(f"[Builder] Image '{self.spec.tag}' built successfully.")
        return BuildResult(success=True, messages=log.messages)

    def detect_strategy(self) -> bool:
        """Return True when an incremental build is possible for this spec."""
        if self.spec.clean:
            logger.debug("Clean build requested")
            return False

        tag = self.spec.tag
        if not self.artifacts.image_exists(tag):
            logger.debug(f"No existing image for tag '{tag}', clean build will be performed")
            return False

        incremental = self.artifacts.detect_incremental(tag)
        if incremental:
            logger.debug(f"Existing image for tag '{tag}' detected for incremental build")
        else:
            logger.debug("Clean build will be performed")
        return incremental

    def _validate_images(self):
        spec = ValidationSpec(
            **self.spec.model_dump(include=set(ValidationSpec.model_fields) - {"incremental"}),
        )
        result = ImageValidator(self.engine, self.lifecycle).validate(spec)
        for message in result.messages:
            logger.info(message)
        if not result.valid:
            failed = ", ".join(f"{c.subject} {c.image}" for c in result.checks if not c.passed)
            raise BuildFailedError(f"image validation failed for {failed}")

    def _standard_build(self, context_dir: Path, base_image: str, tag: str, incremental: bool, log: BuildLog):
        context_dir.mkdir(parents=True, exist_ok=True)
        if incremental:
            artifacts_dir = context_dir / constants.ARTIFACTS_SUBDIR
            try:
                artifacts_dir.mkdir(mode=0o700)
            except OSError as e:
                raise BuildFailedError(f"creating artifacts directory '{artifacts_dir}': {e}") from e
            self.artifacts.save_artifacts(self.spec.tag, artifacts_dir)

        self.assembler.prepare_source(self.spec.source, context_dir / constants.SOURCE_SUBDIR)
        self._build_deployable_image(context_dir, base_image, tag, incremental, log)

    def _extended_build(self, incremental: bool, log: BuildLog):
        builder_tag = f"{self.spec.tag}{constants.BUILDER_TAG_SUFFIX}"
        build_dir = self.working_dir / constants.STAGE_BUILD_SUBDIR
        runtime_dir = self.working_dir / constants.STAGE_RUNTIME_SUBDIR

        logger.info(f"[Builder] Stage 1: building '{builder_tag}' with '{self.spec.base_image}'")
        self._standard_build(build_dir, self.spec.base_image, builder_tag, incremental, log)

        runtime_src = runtime_dir / constants.SOURCE_SUBDIR
        try:
            runtime_src.mkdir(parents=True)
        except OSError as e:
            raise BuildFailedError(f"creating runtime context '{runtime_src}': {e}") from e
        with self.lifecycle.run_ephemeral(builder_tag, constants.PROBE_COMMAND) as run:
            if run.exit_code != 0:
                raise CreateContainerFailedError(f"probe of '{builder_tag}' exited with code {run.exit_code}")
            try:
                self.engine.copy_tree_from_container(
                    run.container_id, constants.CONTAINER_SOURCE_DIR, str(runtime_src)
                )
            except EngineCallError as e:
                raise BuildFailedError(f"extracting build output from '{builder_tag}': {e}") from e

        logger.info(f"[Builder] Stage 2: assembling '{self.spec.tag}' on '{self.spec.runtime_image}'")
        self._build_deployable_image(runtime_dir, self.spec.runtime_image, self.spec.tag, False, log)

    def _build_deployable_image(self, context_dir: Path, base_image: str, tag: str, incremental: bool, log: BuildLog):
        # The manifest lock is held until the engine has consumed the context
        with self.assembler.render_manifest(context_dir, base_image, self.spec.environment, incremental):
            try:
                archive = self.assembler.package(context_dir)
            except OSError as e:
                raise BuildFailedError(f"packaging '{context_dir}': {e}") from e
            with archive:
                try:
                    self.engine.build_image(tag, archive, log)
                except EngineCallError as e:
                    raise BuildFailedError(f"'{tag}': {e}") from e


def build(spec: BuildSpec, engine: Optional[EngineClient] = None) -> BuildResult:
    """Service the supplied BuildSpec and return a BuildResult."""
    return Builder(spec, engine=engine).run()
