import yaml
import logging
from pathlib import Path
from typing import Any, Dict, Optional
from pydantic import BaseModel, Field, ValidationError, ConfigDict

from . import constants
from .exceptions import (
    ConfigFileMissingError,
    ConfigParsingError,
    ConfigValidationError,
)


logger = logging.getLogger(__name__)


class SettingsModel(BaseModel):
    """
        Class Config-Validation Model describing CLI defaults
    """
    docker_url: str = constants.DEFAULT_DOCKER_URL
    timeout: int = Field(default=constants.DEFAULT_TIMEOUT, gt=0)
    working_dir: Optional[Path] = None
    debug: bool = False
    model_config = ConfigDict(extra="forbid")


class Config:
    """
    Loads and validates an optional YAML settings file using Pydantic models.
    Without a path, the built-in defaults apply.
    """
    def __init__(self, config_path: Optional[str] = None):
        self.path = config_path
        if config_path is None:
            self.model = SettingsModel()
            return

        logger.info(f"Loading settings from '{self.path}'...")
        raw_data = self._load_raw_config()
        try:
            self.model = SettingsModel.model_validate(raw_data)
            logger.debug(f"Settings validated successfully: \n{self.model.model_dump_json(indent=2)}")
        except ValidationError as e:
            raise ConfigValidationError(f"Settings validation failed:\n{e}")

    def _load_raw_config(self) -> Dict[str, Any]:
        try:
            content = Path(self.path).read_text(encoding="utf-8")
            config_data = yaml.safe_load(content)
        except FileNotFoundError:
            raise ConfigFileMissingError(f"Settings file not found at: {self.path}")
        except yaml.YAMLError as e:
            raise ConfigParsingError(f"Error parsing YAML file: {e}")

        if config_data is None:
            return {}
        if not isinstance(config_data, dict):
            raise ConfigParsingError("Settings file must be a YAML document containing a dictionary.")
        logger.debug(f"Successfully parsed YAML from '{self.path}'.")
        return config_data

    @property
    def docker_url(self) -> str:
        return self.model.docker_url

    @property
    def timeout(self) -> int:
        return self.model.timeout

    @property
    def working_dir(self) -> Optional[Path]:
        return self.model.working_dir

    @property
    def debug(self) -> bool:
        return self.model.debug
