import logging
from pathlib import Path
from typing import IO, Sequence, Union

from jinja2 import Environment, TemplateError

from .. import constants
from ..datacls import Env
from ..exceptions import CreateManifestFailedError
from ..io import SourceRetriever, open_exclusive, tar_directory

logger = logging.getLogger(__name__)

MANIFEST_TEMPLATE = (
    "FROM {{ base_image }}\n"
    "ADD ./src {{ source_dir }}\n"
    "{% if incremental %}ADD ./artifacts {{ artifacts_dir }}\n{% endif %}"
    "{% for env in environment %}ENV {{ env.name }} {{ env.value }}\n{% endfor %}"
    "RUN {{ prepare }}\n"
    "CMD {{ run }}\n"
)


class BuildContextAssembler:
    """
    Populates a build context directory: stages sources, renders the build
    manifest and packages the directory for the engine's build call.

    The assembler never deletes a context; its owner does.
    """

    def __init__(self, retriever: SourceRetriever = None):
        self.retriever = retriever or SourceRetriever()
        self.jinja_env = Environment(keep_trailing_newline=True)
        self.template = self.jinja_env.from_string(MANIFEST_TEMPLATE)

    def prepare_source(self, source: str, dest_dir: Union[str, Path]):
        logger.info(f"Performing source build from '{source}'")
        self.retriever.fetch(source, dest_dir)

    def manifest_text(self, base_image: str, environment: Sequence[Env], incremental: bool) -> str:
        return self.template.render(
            base_image=base_image,
            environment=list(environment),
            incremental=incremental,
            source_dir=constants.CONTAINER_SOURCE_DIR,
            artifacts_dir=constants.CONTAINER_ARTIFACTS_DIR,
            prepare=constants.PREPARE_SCRIPT,
            run=constants.RUN_SCRIPT,
        )

    def render_manifest(
        self,
        context_dir: Union[str, Path],
        base_image: str,
        environment: Sequence[Env],
        incremental: bool,
    ) -> IO[str]:
        """
        Write the manifest into ``context_dir`` under an exclusive lock.

        Returns:
            The open manifest handle. The lock is held until it is closed, so
            callers keep it open across packaging and the engine build.
        """
        manifest_path = Path(context_dir) / constants.MANIFEST_NAME
        manifest = open_exclusive(manifest_path)
        try:
            text = self.manifest_text(base_image, environment, incremental)
            manifest.truncate(0)
            manifest.write(text)
            manifest.flush()
        except (TemplateError, OSError) as e:
            manifest.close()
            raise CreateManifestFailedError(f"writing '{manifest_path}': {e}") from e
        except BaseException:
            manifest.close()
            raise

        logger.debug(f"Wrote {constants.MANIFEST_NAME} for build to '{manifest_path}':\n{text}")
        return manifest

    def package(self, context_dir: Union[str, Path]) -> IO[bytes]:
        archive = tar_directory(context_dir)
        logger.debug(f"Created tarball for '{context_dir}'")
        return archive
