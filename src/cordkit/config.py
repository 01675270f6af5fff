"""
Bot configuration loaded from YAML files.

The config file is kept in sync with a template: keys missing from the file
are added with the template's values and keys the template no longer has are
removed. The template defaults to the defaults of BotConfig.
"""

import logging
import shutil
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError

from cordkit.exceptions.core import ConfigLoadError

logger = logging.getLogger(__name__)


class BotConfig(BaseModel):
    """Settings of a bot application."""

    token: str = ""
    prefix: str = "?"
    data_directory: str = "data"
    autosave_interval: float = Field(default=120, gt=0, description="Seconds between autosaves")
    log_commands: bool = True
    log_level: str = "INFO"
    confirm_timeout: float = Field(default=10, gt=0, description="Seconds a confirmation prompt stays open")


def update_config_schema(template: dict[str, Any], actual: dict[str, Any]) -> bool:
    """
    Update the keys of a config document to match a template, in place.

    Nested mappings are updated recursively; values of keys present in both
    are kept.

    Params:
        template: The template document
        actual: The document to update

    Returns:
        Whether anything changed
    """
    changed = False
    for key in list(actual):
        if key not in template:
            del actual[key]
            changed = True
            continue
        if isinstance(actual[key], dict) and isinstance(template[key], dict):
            changed = update_config_schema(template[key], actual[key]) or changed

    for key, value in template.items():
        if key not in actual:
            actual[key] = value
            changed = True
    return changed


def save_config(data: dict[str, Any], path: str | Path) -> None:
    with Path(path).open("w", encoding="utf-8") as f:
        yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False)


def _read_yaml(path: Path) -> dict[str, Any]:
    with path.open(encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def load_config(path: str | Path, template_path: str | Path | None = None) -> BotConfig:
    """
    Load the bot configuration, creating or updating the file as needed.

    Params:
        path: The config file
        template_path: The template file, BotConfig defaults when omitted

    Returns:
        The validated configuration

    Raises:
        ConfigLoadError: If a file can not be read or parsed, or the
            configuration is invalid
    """
    path = Path(path)
    try:
        if template_path is not None:
            template = _read_yaml(Path(template_path))
        else:
            template = BotConfig().model_dump()

        if not path.exists():
            path.parent.mkdir(parents=True, exist_ok=True)
            if template_path is not None:
                shutil.copyfile(template_path, path)
            else:
                save_config(template, path)
            logger.info("Created config file %s", path)
            return BotConfig.model_validate(template)

        actual = _read_yaml(path)
        if update_config_schema(template, actual):
            logger.info("Updated keys of config file %s", path)
            save_config(actual, path)
        return BotConfig.model_validate(actual)
    except (OSError, yaml.YAMLError, ValidationError) as e:
        raise ConfigLoadError(str(path), e) from e
