"""
Configuration resolution for fortunebot.

Resolves the prompt, API key and model for a run, recording which source
supplied each value. Precedence, highest first:

1. Command-line flag (if not blank)
2. Primary environment variable
3. Alternate environment variable (API key and model only)
4. Optional JSON config file
5. Built-in default (prompt and model only)

Resolution never fails. A missing API key resolves to "" with the source
"none found"; only the generation client treats that as an error.
"""

import os
from pathlib import Path
from typing import Optional
from pydantic import ValidationError
from fortunebot.config.settings import DEFAULT_MODEL, DEFAULT_PROMPT
from fortunebot.lib.log import LOG
from fortunebot.models.dataModel import ConfigFile, ResolvedConfig, ResolvedValue


def configFile_load(path: Path) -> ConfigFile:
    """
    Read the optional JSON config file.

    Args:
        path: Location of the config file

    Returns:
        ConfigFile: Parsed contents, or an empty ConfigFile if the file is
        missing or invalid
    """
    try:
        return ConfigFile.model_validate_json(path.read_bytes())
    except (OSError, ValidationError) as e:
        LOG(f"No usable config file at {path}: {e}")
        return ConfigFile()


def value_resolve(
    flag: Optional[str],
    flag_name: str,
    env_vars: list[str],
    file_value: Optional[str],
    file_source: str,
    default: Optional[str],
    default_source: str = "built-in default",
) -> ResolvedValue:
    """
    Resolve one value across flag, environment, config file and default.

    Args:
        flag: Value given on the command line
        flag_name: Name of the flag, for provenance
        env_vars: Environment variables to consult, in order
        file_value: Value from the config file
        file_source: Provenance label for the config file
        default: Built-in default, or None if the value has none
        default_source: Provenance label used when no source supplies a value

    Returns:
        ResolvedValue: The value and the source that supplied it
    """
    if flag and flag.strip():
        return ResolvedValue(value=flag, source=f"{flag_name} flag")
    for name in env_vars:
        env_value: str = os.environ.get(name, "")
        if env_value:
            return ResolvedValue(value=env_value, source=f"env {name}")
    if file_value and file_value.strip():
        return ResolvedValue(value=file_value, source=file_source)
    if default is None:
        return ResolvedValue(value="", source=default_source)
    return ResolvedValue(value=default, source=default_source)


def config_resolve(
    config_file: Path,
    prompt: Optional[str] = None,
    api_key: Optional[str] = None,
    model: Optional[str] = None,
) -> ResolvedConfig:
    """
    Resolve the effective prompt, API key and model.

    Args:
        config_file: Location of the optional JSON config file
        prompt: --prompt flag value
        api_key: --api-key flag value
        model: --model flag value

    Returns:
        ResolvedConfig: The resolved values with their provenance
    """
    cfg: ConfigFile = configFile_load(config_file)
    file_source: str = str(config_file)
    resolved: ResolvedConfig = ResolvedConfig(
        prompt=value_resolve(
            prompt,
            "--prompt",
            ["FORTUNEBOT_PROMPT"],
            cfg.default_prompt,
            file_source,
            DEFAULT_PROMPT,
        ),
        api_key=value_resolve(
            api_key,
            "--api-key",
            ["FORTUNEBOT_API_KEY", "OPENAI_API_KEY"],
            cfg.api_key,
            file_source,
            None,
            "none found",
        ),
        model=value_resolve(
            model,
            "--model",
            ["FORTUNEBOT_MODEL", "OPENAI_MODEL"],
            cfg.model,
            file_source,
            DEFAULT_MODEL,
        ),
    )
    LOG(
        f"Resolved prompt from {resolved.prompt.source}, "
        f"model from {resolved.model.source}, key from {resolved.api_key.source}"
    )
    return resolved


def key_mask(key: str) -> str:
    """
    Partially mask an API key for display.

    Args:
        key: The API key

    Returns:
        str: Keys of up to 8 characters unchanged, otherwise the first and
        last four characters around "***"
    """
    if len(key) <= 8:
        return key
    return f"{key[:4]}***{key[-4:]}"
