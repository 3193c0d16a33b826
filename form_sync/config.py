"""Global configuration for form-sync.

Resolution order for the form registry path:
    1. FORM_SYNC_REGISTRY environment variable
    2. default_registry_path in <home>/config.yaml
    3. <home>/registry/form-registry

<home> is FORM_SYNC_HOME, or ~/.config/form-sync.
"""

import os
from pathlib import Path
from typing import Any

import yaml

HOME_ENV = "FORM_SYNC_HOME"
REGISTRY_ENV = "FORM_SYNC_REGISTRY"


def get_form_sync_home() -> Path:
    """Return the form-sync home directory."""
    env_path = os.environ.get(HOME_ENV)
    if env_path:
        return Path(env_path)
    return Path.home() / ".config" / "form-sync"


def get_config_path() -> Path:
    return get_form_sync_home() / "config.yaml"


def get_registry_root() -> Path:
    """Directory holding synced registries."""
    return get_form_sync_home() / "registry"


def load_global_config() -> dict[str, Any]:
    """Load config.yaml, or an empty config if it does not exist."""
    config_path = get_config_path()
    if not config_path.exists():
        return {}
    with open(config_path) as f:
        data = yaml.safe_load(f)
    return data or {}


def write_global_config(config: dict[str, Any]) -> Path:
    """Write config.yaml, creating the home directory if needed."""
    config_path = get_config_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)
    with open(config_path, "w") as f:
        yaml.dump(config, f, sort_keys=False)
    return config_path


def get_registry_path() -> Path:
    """Resolve the form registry path."""
    env_path = os.environ.get(REGISTRY_ENV)
    if env_path:
        return Path(env_path)

    configured = load_global_config().get("default_registry_path")
    if configured:
        return Path(configured)

    return get_registry_root() / "form-registry"
