import json
from pathlib import Path

import yaml

from core.content import Content
from core.errors import ConfigError


def load_config(config_file: str):
    """
    Load configuration settings from a YAML file.

    Args:
        config_file (str): The file path to the YAML configuration file.

    Returns:
        dict: The parsed configuration (`script`, `adapters`, `rules` sections).

    Raises:
        ConfigError: If the file is missing, is not valid YAML, or is not a mapping.

    Example Usage:
        config = load_config("config/config.yaml")
        rules = build_rules(config.get("rules", []))
    """
    try:
        with open(config_file, encoding="utf-8") as file:
            config = yaml.safe_load(file)
    except FileNotFoundError:
        raise ConfigError(f"Configuration file {config_file} not found.")
    except yaml.YAMLError as e:
        raise ConfigError(f"Error parsing YAML file: {e}")

    if config is None:
        return {}
    if not isinstance(config, dict):
        raise ConfigError(f"Configuration file {config_file} must contain a mapping at the top level.")
    return config


def load_content(content_file: str) -> Content:
    """Read a single content item from a YAML or JSON file."""
    path = Path(content_file)
    try:
        raw = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise ConfigError(f"Content file {content_file} not found.")

    try:
        data = json.loads(raw) if path.suffix.lower() == ".json" else yaml.safe_load(raw)
    except (ValueError, yaml.YAMLError) as e:
        raise ConfigError(f"Error parsing content file {content_file}: {e}")

    if not isinstance(data, dict):
        raise ConfigError(f"Content file {content_file} must contain a mapping.")
    return Content.from_dict(data)
