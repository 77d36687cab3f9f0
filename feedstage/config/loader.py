import logging
from pathlib import Path

import yaml
from pydantic import ValidationError

from feedstage.config.models import AppConfig

logger = logging.getLogger(__name__)


def load_config(path: Path) -> AppConfig:
    """
    Load and validate the application config file.

    A missing file yields the defaults.
    Raises ValueError if the YAML or the schema is invalid.
    """
    if not path.exists():
        logger.warning("Config file %s not found, using defaults", path)
        return AppConfig()

    with open(path) as f:
        content = f.read()

    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML syntax in config file: {e}") from e

    try:
        return AppConfig.model_validate(data or {})
    except ValidationError as e:
        raise ValueError(f"Config validation failed:\n{e}") from e
