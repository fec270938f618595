"""Credential loading from ``secrets.toml`` or the environment.

The secrets file holds an ``[openai]`` table::

    [openai]
    api_key = "sk-..."
    organization = "org-..."   # optional
    project = "proj_..."       # optional

When no path is given and ``./secrets.toml`` does not exist, the
``OPENAI_API_KEY``, ``OPENAI_ORG_ID`` and ``OPENAI_PROJECT_ID`` environment
variables are used instead.
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any, Optional

from .exceptions import CredentialsError
from .models import Credentials

DEFAULT_SECRETS_FILE = "secrets.toml"
SECRETS_SECTION = "openai"

ENV_API_KEY = "OPENAI_API_KEY"
ENV_ORGANIZATION = "OPENAI_ORG_ID"
ENV_PROJECT = "OPENAI_PROJECT_ID"


def _optional_str(table: dict[str, Any], key: str, path: Path) -> Optional[str]:
    value = table.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise CredentialsError(f"'{key}' in [{SECRETS_SECTION}] of {path} is not a string")
    return value or None


def _from_secrets_file(path: Path) -> Credentials:
    try:
        with path.open("rb") as f:
            keychain = tomllib.load(f)
    except FileNotFoundError:
        raise CredentialsError(f"Secrets file not found: {path}") from None
    except tomllib.TOMLDecodeError as e:
        raise CredentialsError(f"Could not parse {path}: {e}") from e

    section = keychain.get(SECRETS_SECTION)
    if not isinstance(section, dict):
        raise CredentialsError(f"Missing [{SECRETS_SECTION}] section in {path}")
    api_key = _optional_str(section, "api_key", path)
    if not api_key:
        raise CredentialsError(f"Missing 'api_key' in [{SECRETS_SECTION}] section of {path}")
    return Credentials(
        api_key=api_key,
        organization=_optional_str(section, "organization", path),
        project=_optional_str(section, "project", path),
    )


def _from_environment() -> Credentials:
    api_key = os.environ.get(ENV_API_KEY, "").strip()
    if not api_key:
        raise CredentialsError(
            f"No {DEFAULT_SECRETS_FILE} in {Path.cwd()} and {ENV_API_KEY} is not set"
        )
    return Credentials(
        api_key=api_key,
        organization=os.environ.get(ENV_ORGANIZATION) or None,
        project=os.environ.get(ENV_PROJECT) or None,
    )


def load_credentials(path: str | Path | None = None) -> Credentials:
    """Load API credentials.

    Args:
        path: Secrets file to read. Defaults to ``secrets.toml`` in the
            current directory, falling back to environment variables when
            that file does not exist.

    Raises:
        CredentialsError: if no API key can be found.
    """
    if path is not None:
        return _from_secrets_file(Path(path))
    default = Path.cwd() / DEFAULT_SECRETS_FILE
    if default.is_file():
        return _from_secrets_file(default)
    return _from_environment()
