"""API key resolution for provider commands.

Resolution order (stops at first success):
  1. --api-key on the command line
  2. the provider's environment variable(s), already read by load_config()

The key is only ever held in memory; it is never written to .codelens.yml
or to the store.
"""

from __future__ import annotations

import click

from codelens_core.config import API_KEY_ENV_VARS


def require_api_key(config: dict, provider: str, api_key: str | None = None) -> str:
    """Return the key for provider or raise a UsageError naming the env vars."""
    key = api_key or config.get(f"{provider}_api_key")
    if key:
        return key
    env_vars = API_KEY_ENV_VARS.get(provider, ())
    hint = " or ".join(env_vars) if env_vars else "an API key"
    raise click.UsageError(f"No API key for {provider}. Set {hint}, or pass --api-key.")
