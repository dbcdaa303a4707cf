"""
Settings resolved from the environment (and a local .env file).

Recognized variables:
  - SECURE_ENVIRONMENT_KEY    KMS key id / ARN / alias
  - SECURE_ENVIRONMENT_URL    S3 URL of the encrypted env file
  - SECURE_ENVIRONMENT_TYPE   content type tag (default: envfile)
  - SECURE_ENVIRONMENT_DEBUG  debug logging toggle
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from typing import Mapping, Optional

from dotenv import find_dotenv, load_dotenv

ENV_KEY = "SECURE_ENVIRONMENT_KEY"
ENV_URL = "SECURE_ENVIRONMENT_URL"
ENV_TYPE = "SECURE_ENVIRONMENT_TYPE"
ENV_DEBUG = "SECURE_ENVIRONMENT_DEBUG"

DEFAULT_ENV_TYPE = "envfile"

_TRUTHY = {"1", "true", "yes", "on"}


def parse_bool(value: Optional[str]) -> bool:
    """
    Interpret an environment flag value.

    Args:
        value: Raw value, or None when the variable is unset

    Returns:
        True for 1, true, yes or on (any case, surrounding spaces ignored)
    """
    return (value or "").strip().lower() in _TRUTHY


@dataclass(frozen=True)
class Settings:
    """Configuration for one import or export invocation."""

    key: str = ""
    url: str = ""
    env_type: str = DEFAULT_ENV_TYPE
    debug: bool = False

    @classmethod
    def from_env(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        dotenv: bool = True,
    ) -> Settings:
        """
        Read settings from `environ` (defaults to os.environ).

        When reading os.environ a .env file in the working directory is
        loaded first; variables already set are never overridden.
        """
        if environ is None:
            if dotenv:
                load_dotenv(find_dotenv(usecwd=True))
            environ = os.environ

        return cls(
            key=environ.get(ENV_KEY, ""),
            url=environ.get(ENV_URL, ""),
            env_type=environ.get(ENV_TYPE, DEFAULT_ENV_TYPE),
            debug=parse_bool(environ.get(ENV_DEBUG)),
        )

    def with_overrides(self, **overrides: object) -> Settings:
        """Return a copy with every non-None override applied."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})
