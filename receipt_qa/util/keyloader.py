# receipt_qa/util/keyloader.py
"""
Loads the Gemini API key from the bundled `GenerativeAI-Info` resource.

The resource is either a dotenv-style file (`API_KEY=...`) or an Apple
`.plist` dictionary. A missing file, missing field, empty value or a value
that still carries the `_` placeholder prefix is a fatal configuration error:
a misconfigured build must never reach the UI.
"""

from __future__ import annotations

import logging
import os
import pathlib
import plistlib
from dataclasses import dataclass
from typing import Optional
from xml.parsers.expat import ExpatError

import dotenv

logger = logging.getLogger(__name__)

ROOT = pathlib.Path(__file__).resolve().parents[2]   # repo root
DEFAULT_CREDENTIALS_FILE = ROOT / "GenerativeAI-Info.env"
DEFAULT_FIELD = "API_KEY"
ENV_OVERRIDE = "GOOGLE_API_KEY"
PLACEHOLDER_PREFIX = "_"


class FatalConfigurationError(RuntimeError):
    """Credential resource is missing or malformed."""


@dataclass(frozen=True)
class CredentialResult:
    credential: Optional[str] = None
    error: Optional[FatalConfigurationError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _parse_resource(path: pathlib.Path) -> dict:
    if path.suffix == ".plist":
        with open(path, "rb") as fh:
            data = plistlib.load(fh)
        if not isinstance(data, dict):
            raise FatalConfigurationError(f"'{path.name}' is not a key-value dictionary.")
        return data
    return dotenv.dotenv_values(path)


def _read_resource(path: pathlib.Path) -> dict:
    # plistlib surfaces expat, ValueError and lookup errors on corrupt input;
    # a non-UTF-8 dotenv file raises UnicodeDecodeError (a ValueError)
    try:
        return _parse_resource(path)
    except (OSError, ValueError, TypeError, LookupError, OverflowError, ExpatError) as e:
        raise FatalConfigurationError(f"Couldn't parse '{path.name}': {e}") from e


def _validate(value, field: str, source: str) -> str:
    if not isinstance(value, str):
        raise FatalConfigurationError(f"Couldn't find key '{field}' in '{source}'.")
    if not value or value.startswith(PLACEHOLDER_PREFIX):
        raise FatalConfigurationError(f"{field} in '{source}' is not valid!")
    return value


def load_credential(
    path: str | os.PathLike = DEFAULT_CREDENTIALS_FILE,
    field: str = DEFAULT_FIELD,
    allow_env: bool = False,
) -> str:
    """
    Return the API key stored under `field` in the resource at `path`.

    With `allow_env=True` a `GOOGLE_API_KEY` already present in the
    environment wins and the file is not read (only gaps are filled).
    Raises FatalConfigurationError on any malformed input.
    """
    if allow_env and ENV_OVERRIDE in os.environ:
        logger.info("[keyloader] using %s from environment", ENV_OVERRIDE)
        return _validate(os.environ[ENV_OVERRIDE], ENV_OVERRIDE, "environment")

    path = pathlib.Path(path)
    if not path.is_file():
        raise FatalConfigurationError(
            f"Couldn't find file '{path.name}' containing the API Key."
        )

    value = _read_resource(path).get(field)
    credential = _validate(value, field, path.name)
    logger.info("[keyloader] loaded %s from %s", field, path.name)
    return credential


def try_load_credential(
    path: str | os.PathLike = DEFAULT_CREDENTIALS_FILE,
    field: str = DEFAULT_FIELD,
    allow_env: bool = False,
) -> CredentialResult:
    """Initialization step: report configuration faults instead of raising."""
    try:
        return CredentialResult(credential=load_credential(path, field, allow_env))
    except FatalConfigurationError as e:
        logger.error("[keyloader] %s", e)
        return CredentialResult(error=e)
