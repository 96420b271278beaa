# config_utils.py
import os
import re
from pathlib import Path
from typing import Any, Dict, Union

import chardet
import yaml
from loguru import logger
from pydantic import BaseModel, ValidationError

from .config import MemoryConfig


def read_yaml(config_path: str) -> Dict[str, Any]:
    """
    Read a YAML configuration file with environment variable substitution
    and guessed encoding. Return the configuration data as a dictionary.

    Args:
        config_path: Path to the YAML configuration file.

    Returns:
        Configuration data as a dictionary.

    Raises:
        FileNotFoundError: If the configuration file is not found.
        IOError: If the configuration file cannot be read.
    """

    if not os.path.exists(config_path):
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    content = load_text_file_with_guess_encoding(config_path)
    if content is None:
        raise IOError(f"Failed to read configuration file: {config_path}")

    # Replace ${VAR} with environment variables
    pattern = re.compile(r"\$\{(\w+)\}")

    def replacer(match):
        env_var = match.group(1)
        return os.getenv(env_var, match.group(0))

    content = pattern.sub(replacer, content)

    try:
        return yaml.safe_load(content) or {}
    except yaml.YAMLError as e:
        logger.critical(f"Error parsing YAML file: {e}")
        raise e


def _format_validation_error(error: ValidationError) -> str:
    """
    Format a ValidationError as one readable line per field.

    Args:
        error: Pydantic ValidationError

    Returns:
        Formatted error report
    """
    error_messages = []

    for err in error.errors():
        location = " -> ".join(str(loc) for loc in err["loc"])
        error_type = err["type"]
        msg = err["msg"]
        input_value = err.get("input", "N/A")

        if error_type in ("int_type", "int_parsing"):
            error_messages.append(
                f"  - '{location}': an integer is required. "
                f"Current value: {input_value}"
            )
        elif error_type in ("float_type", "float_parsing"):
            error_messages.append(
                f"  - '{location}': a number is required. "
                f"Current value: {input_value}"
            )
        elif error_type in ("bool_type", "bool_parsing"):
            error_messages.append(
                f"  - '{location}': a boolean (true/false) is required. "
                f"Current value: {input_value}"
            )
        elif error_type == "enum":
            error_messages.append(f"  - '{location}': {msg}")
        elif "greater_than" in error_type or "less_than" in error_type:
            error_messages.append(f"  - '{location}': value out of range. {msg}")
        else:
            error_messages.append(f"  - '{location}': {msg} (type: {error_type})")

    return "\n".join(error_messages)


def validate_config(config_data: dict) -> MemoryConfig:
    """
    Validate configuration data against the MemoryConfig model.

    Args:
        config_data: Configuration dictionary to validate

    Returns:
        Validated MemoryConfig

    Raises:
        ValidationError: If validation fails. A readable report is logged first.
    """
    try:
        return MemoryConfig(**config_data)
    except ValidationError as e:
        formatted_errors = _format_validation_error(e)
        logger.critical(
            "Memory configuration validation failed:\n" f"{formatted_errors}"
        )
        logger.debug(f"Configuration data keys: {list(config_data.keys())}")
        raise e


def load_config(config_path: Union[str, Path]) -> MemoryConfig:
    """Read and validate a memory configuration file."""
    return validate_config(read_yaml(str(config_path)))


def load_text_file_with_guess_encoding(file_path: str) -> str | None:
    """
    Load a text file with guessed encoding.

    Parameters:
    - file_path (str): The path to the text file.

    Returns:
    - str: The content of the text file or None if an error occurred.
    """
    # utf-8-sig also reads plain UTF-8 and strips a BOM left by Windows editors
    try:
        with open(file_path, "r", encoding="utf-8-sig") as file:
            return file.read()
    except UnicodeDecodeError:
        pass
    # Legacy single-byte files: let chardet guess the encoding
    try:
        with open(file_path, "rb") as file:
            raw_data = file.read()
        detected = chardet.detect(raw_data)
        if detected["encoding"]:
            return raw_data.decode(detected["encoding"])
    except Exception as e:
        logger.error(f"Error detecting encoding for config file {file_path}: {e}")
    return None


def save_config(config: BaseModel, config_path: Union[str, Path]):
    """
    Save a Pydantic model to a YAML configuration file.

    Args:
        config: The Pydantic model to save.
        config_path: Path to the YAML configuration file.
    """
    config_file = Path(config_path)
    config_data = config.model_dump(mode="json", exclude_none=True)

    try:
        with open(config_file, "w", encoding="utf-8") as f:
            yaml.safe_dump(config_data, f, allow_unicode=True, sort_keys=False)
    except yaml.YAMLError as e:
        raise yaml.YAMLError(f"Error writing YAML file: {e}")
