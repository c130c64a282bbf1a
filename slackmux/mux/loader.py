"""Load the mux configuration file."""

import json
from pathlib import Path

from pydantic import ValidationError

from slackmux.core.exceptions import ConfigurationException
from slackmux.core.logging import get_logger
from slackmux.mux.models import AppConfig

logger = get_logger(__name__)


def load_app_config(path: str | Path) -> AppConfig:
    """Read and validate a JSON mux configuration file.

    Args:
        path: Path to the configuration file

    Returns:
        Validated, immutable configuration

    Raises:
        ConfigurationException: If the file is missing, not JSON or does not
            match the expected shape
    """
    config_path = Path(path)
    if not config_path.is_file():
        raise ConfigurationException(
            f"Configuration file not found: {config_path}",
            details={"path": str(config_path)},
        )

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigurationException(
            f"Configuration file is not valid JSON: {e}",
            details={"path": str(config_path), "line": e.lineno},
        ) from e

    try:
        config = AppConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigurationException(
            f"Invalid configuration in {config_path}",
            details={"path": str(config_path), "errors": e.errors(include_url=False)},
        ) from e

    logger.info(
        "mux_config_loaded",
        path=str(config_path),
        endpoints=len(config.mux.source_endpoints),
        destinations=len(config.mux.destinations),
    )
    return config
