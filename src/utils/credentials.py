"""Resolve Google Cloud service credentials from the environment.

Three equivalent sources are checked in order: inline JSON, base64
encoded JSON, and a mounted credentials file. Startup fails fast when
none of them resolves.
"""

import base64
import binascii
import json
import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from src.exceptions import CredentialsError
from src.utils.logger import get_logger

logger = get_logger(__name__)

ENV_KEY_JSON = "GOOGLE_CLOUD_KEY_JSON"
ENV_KEY_BASE64 = "GOOGLE_CLOUD_KEY_BASE64"
ENV_KEY_FILE = "GOOGLE_APPLICATION_CREDENTIALS"

_REQUIRED_KEYS = ("client_email", "private_key", "project_id")


@dataclass(frozen=True)
class CredentialSource:
    """Where the service account came from and what it contains."""

    origin: str
    info: dict[str, str] = field(default_factory=dict)
    path: Path | None = None

    @property
    def project_id(self) -> str | None:
        return self.info.get("project_id")


def _parse_service_account(raw: str, origin: str) -> dict[str, str]:
    try:
        info = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise CredentialsError(f"{origin} does not contain valid JSON") from exc

    if not isinstance(info, dict):
        raise CredentialsError(f"{origin} must contain a JSON object")

    missing = [key for key in _REQUIRED_KEYS if not info.get(key)]
    if missing:
        raise CredentialsError(f"{origin} is missing {', '.join(missing)}")
    return info


def resolve_credentials(env: Mapping[str, str] | None = None) -> CredentialSource:
    """Find service account credentials.

    Args:
        env: Environment mapping. Defaults to ``os.environ``.

    Returns:
        The first credential source that resolves.

    Raises:
        CredentialsError: If no source is configured or the configured
            one is unusable.
    """
    if env is None:
        env = os.environ

    inline = env.get(ENV_KEY_JSON)
    if inline:
        logger.info("Using service account from %s", ENV_KEY_JSON)
        return CredentialSource(
            origin=ENV_KEY_JSON, info=_parse_service_account(inline, ENV_KEY_JSON)
        )

    encoded = env.get(ENV_KEY_BASE64)
    if encoded:
        try:
            decoded = base64.b64decode(encoded, validate=True).decode("utf-8")
        except (binascii.Error, UnicodeDecodeError) as exc:
            raise CredentialsError(f"{ENV_KEY_BASE64} is not valid base64") from exc
        logger.info("Using service account from %s", ENV_KEY_BASE64)
        return CredentialSource(
            origin=ENV_KEY_BASE64,
            info=_parse_service_account(decoded, ENV_KEY_BASE64),
        )

    key_file = env.get(ENV_KEY_FILE)
    if key_file:
        path = Path(key_file)
        if not path.is_file():
            raise CredentialsError(f"Credentials file not found: {path}")
        logger.info("Using service account file %s", path)
        return CredentialSource(origin=ENV_KEY_FILE, path=path)

    raise CredentialsError(
        "No Google Cloud Vision credentials found "
        f"(set {ENV_KEY_JSON}, {ENV_KEY_BASE64} or {ENV_KEY_FILE})"
    )
