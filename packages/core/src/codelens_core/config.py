import os
from pathlib import Path
from typing import Optional

import yaml

DEFAULT_RULES: dict = {
    "style": True,
    "performance": True,
    "security": True,
    "bugs": True,
    "complexity": True,
    "documentation": True,
}

DEFAULT_CONFIG: dict = {
    "provider": "gemini",
    "rules": DEFAULT_RULES,
    "store": "sqlite",  # sqlite | json | memory
    "store_path": None,  # None = backend default under ~/.codelens/
    "openai_model": None,  # None = provider default
    "gemini_model": None,
}

# Environment variables checked for each provider's key, first match wins.
API_KEY_ENV_VARS: dict = {
    "openai": ("OPENAI_API_KEY",),
    "gemini": ("GEMINI_API_KEY", "GOOGLE_API_KEY"),
}


def load_config(config_path: str = ".codelens.yml", cli_overrides: Optional[dict] = None) -> dict:
    """
    Load configuration by merging (in order of precedence):
      1. Built-in defaults
      2. .codelens.yml in the current directory
      3. CLI argument overrides

    ``rules`` merges key by key so a file that only disables one rule keeps
    the other defaults.
    """
    config = {**DEFAULT_CONFIG, "rules": dict(DEFAULT_RULES)}

    path = Path(config_path)
    if path.exists():
        with open(path) as f:
            file_config = yaml.safe_load(f) or {}
        file_rules = file_config.pop("rules", None) or {}
        config.update(file_config)
        config["rules"].update({str(k): bool(v) for k, v in file_rules.items()})

    if cli_overrides:
        for key, value in cli_overrides.items():
            if value is not None:
                config[key] = value

    # Resolve credentials from environment variables
    for provider in API_KEY_ENV_VARS:
        config[f"{provider}_api_key"] = resolve_api_key(provider)

    return config


def resolve_api_key(provider: str) -> Optional[str]:
    for name in API_KEY_ENV_VARS.get(provider, ()):
        value = os.environ.get(name)
        if value:
            return value
    return None
