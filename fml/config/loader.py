# fml/config/loader.py
"""
Handles loading and merging of defaults from TOML files, and loading of
render contexts from JSON or TOML files.
"""
import json
import toml
from pathlib import Path
from typing import Any, Dict, Optional
import structlog

from fml.exceptions import ConfigError

log = structlog.get_logger(__name__)

PROJECT_CONFIG_FILENAMES = [".fml.toml", "fml.toml", "pyproject.toml"]
USER_CONFIG_DIR = Path.home() / ".config" / "fml"
USER_CONFIG_FILE = USER_CONFIG_DIR / "config.toml"

# toml key -> RenderConfig attribute
CONFIG_KEY_TO_RENDERCONFIG_ATTR_MAP: Dict[str, str] = {
    "tag_style": "tag_style",
    "base_dir": "base_dir",
    "vars": "variables",
    "context_file": "context_file",
    "output_file": "output_file",
    "encoding": "encoding",
}

def _load_toml_file_data(file_path: Path) -> Dict[str, Any]:
    if not file_path.is_file():
        return {}
    log.debug("loading_toml_config_file", path=str(file_path))
    try:
        data = toml.load(file_path)
    except toml.TomlDecodeError as e:
        raise ConfigError(f"Could not parse config file {file_path}: {e}") from e
    # settings live under [tool.fml] in pyproject.toml, top-level elsewhere.
    if file_path.name == "pyproject.toml":
        return data.get("tool", {}).get("fml", {})
    return data

def load_and_merge_configs(project_dir: Optional[Path] = None) -> Dict[str, Any]:
    """
    Loads the user-global config, then the first project config found in
    `project_dir` (default: cwd). Project keys override user keys; profiles
    are merged by name.
    """
    merged: Dict[str, Any] = {}
    if USER_CONFIG_FILE.is_file():
        log.info("loading_user_global_config", path=str(USER_CONFIG_FILE))
        merged.update(_load_toml_file_data(USER_CONFIG_FILE))

    project_dir = project_dir if project_dir is not None else Path.cwd()
    for filename in PROJECT_CONFIG_FILENAMES:
        candidate = project_dir / filename
        if not candidate.is_file():
            continue
        project_settings = _load_toml_file_data(candidate)
        if not project_settings:
            continue
        log.info("loading_project_local_config", path=str(candidate))
        user_profiles = merged.get("profiles", {})
        project_profiles = project_settings.pop("profiles", {})
        if isinstance(user_profiles, dict) and isinstance(project_profiles, dict):
            user_profiles.update(project_profiles)
            merged["profiles"] = user_profiles
        merged.update(project_settings)
        break

    if not merged:
        log.debug("no_configuration_files_loaded")
    return merged

def settings_for_profile(raw: Dict[str, Any], profile_name: Optional[str]) -> Dict[str, Any]:
    # flattens raw toml data into RenderConfig keyword arguments, applying a profile if named.
    options: Dict[str, Any] = {}
    layers = [raw]
    if profile_name:
        profile = raw.get("profiles", {}).get(profile_name)
        if profile is None:
            raise ConfigError(f"Profile '{profile_name}' not found in configuration files.")
        log.info("applying_profile_settings", profile=profile_name)
        layers.append(profile)

    for layer in layers:
        for toml_key, attr in CONFIG_KEY_TO_RENDERCONFIG_ATTR_MAP.items():
            if toml_key not in layer:
                continue
            value = layer[toml_key]
            if attr == "variables":
                if not isinstance(value, dict):
                    raise ConfigError(f"'{toml_key}' must be a table, got {type(value).__name__}")
                options[attr] = {**options.get(attr, {}), **value}
            elif attr in ("base_dir", "context_file", "output_file"):
                options[attr] = Path(value) if value else None
            else:
                options[attr] = value
    return options

def load_context_file(path: Path) -> Dict[str, Any]:
    """Reads a render context from a .json or .toml file."""
    suffix = path.suffix.lower()
    log.debug("loading_context_file", path=str(path), format=suffix)
    try:
        if suffix == ".json":
            data = json.loads(path.read_text(encoding="utf-8"))
        elif suffix == ".toml":
            data = toml.load(path)
        else:
            raise ConfigError(f"Unsupported context file type '{suffix}' (use .json or .toml): {path}")
    except OSError as e:
        raise ConfigError(f"Could not read context file {path}: {e}") from e
    except (json.JSONDecodeError, toml.TomlDecodeError) as e:
        raise ConfigError(f"Could not parse context file {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"Context file {path} must contain an object at the top level.")
    return data
