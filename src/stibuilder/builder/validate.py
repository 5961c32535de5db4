import logging
from typing import List, Optional

from .. import constants
from ..datacls import ImageInfo, ValidationResult, ValidationSpec
from ..engine import connect
from ..exceptions import CreateContainerFailedError, EngineCallError, PullImageFailedError
from ..protocols import EngineClient
from .lifecycle import ContainerLifecycle

logger = logging.getLogger(__name__)


class ImageValidator:
    """
    Checks candidate images against the image contract: the prepare/run
    scripts (and save-artifacts for the incremental role) must be present,
    and no entry point may be configured.
    """

    def __init__(self, engine: EngineClient, lifecycle: ContainerLifecycle = None):
        self.engine = engine
        self.lifecycle = lifecycle or ContainerLifecycle(engine)

    def validate(self, spec: ValidationSpec) -> ValidationResult:
        """
        Validate the base image, and the runtime image when one is set.

        A failed check is recorded in the result; a check that could not run
        raises instead.
        """
        result = ValidationResult()

        if spec.has_runtime_image:
            valid = self.validate_image(spec.base_image, incremental=False)
            result.record_validation(constants.BASE_IMAGE_SUBJECT, spec.base_image, valid)

            valid = self.validate_image(spec.runtime_image, incremental=True)
            result.record_validation(constants.RUNTIME_IMAGE_SUBJECT, spec.runtime_image, valid)
        else:
            valid = self.validate_image(spec.base_image, incremental=spec.incremental)
            result.record_validation(constants.BASE_IMAGE_SUBJECT, spec.base_image, valid)

        return result

    def validate_image(self, image_name: str, incremental: bool) -> bool:
        logger.info(f"Validating image '{image_name}', incremental: {incremental}")
        image = self.check_and_pull(image_name)

        if image.has_entrypoint:
            logger.error(f"Image '{image_name}' has a configured entrypoint and is incompatible with sti")
            return False

        files = constants.INCREMENTAL_REQUIRED_FILES if incremental else constants.REQUIRED_FILES
        return self.validate_required_files(image_name, files)

    def check_and_pull(self, image_name: str) -> ImageInfo:
        """Inspect ``image_name`` locally, pulling it first when it is absent."""
        try:
            image: Optional[ImageInfo] = self.engine.inspect_image(image_name)
            if image is None:
                logger.info(f"Pulling image '{image_name}'")
                self.engine.pull_image(image_name)
                image = self.engine.inspect_image(image_name)
            else:
                logger.debug(f"Image '{image_name}' available locally")
        except EngineCallError as e:
            raise PullImageFailedError(f"'{image_name}': {e}") from e

        if image is None:
            raise PullImageFailedError(f"'{image_name}' still missing after pull")
        return image

    def validate_required_files(self, image_name: str, files: List[str]) -> bool:
        valid = True
        with self.lifecycle.run_ephemeral(image_name, constants.PROBE_COMMAND) as run:
            if run.exit_code != 0:
                logger.error(f"Probe container for '{image_name}' exited with code {run.exit_code}")
                raise CreateContainerFailedError(f"probe of '{image_name}' exited with code {run.exit_code}")
            for path in files:
                if not self.lifecycle.file_exists(run.container_id, path):
                    logger.error(f"Image '{image_name}' is missing {path}")
                    valid = False
                else:
                    logger.debug(f"OK: Image '{image_name}' contains file {path}")
        return valid


def validate(spec: ValidationSpec, engine: Optional[EngineClient] = None) -> ValidationResult:
    """Service the supplied ValidationSpec and return a ValidationResult."""
    if engine is None:
        engine = connect(spec)
    return ImageValidator(engine).validate(spec)
