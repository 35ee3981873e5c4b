"""Credentials for third-party visual diff and browser-proxy services.

Credentials are plain values handed to the commands that need them through
their child environment.  Proxy credentials are only fetched inside
:meth:`ProxyCredentialProvider.session`, which also starts the proxy before
the dependent command and stops it afterwards on every exit path.
"""

from __future__ import annotations

import base64
import binascii
import logging
import os
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Dict

from .config import ProxySettings
from .console import Console, cyan
from .tools.exec import CommandExecutor, CommandFailed

LOGGER = logging.getLogger(__name__)

PERCY_PROJECT_ENV = "PERCY_PROJECT"
PERCY_TOKEN_ENV = "PERCY_TOKEN"
PERCY_TOKEN_ENCODED_ENV = "PERCY_TOKEN_ENCODED"
SAUCE_USERNAME_ENV = "SAUCE_USERNAME"
SAUCE_ACCESS_KEY_ENV = "SAUCE_ACCESS_KEY"


def _decode_token(encoded: str) -> str | None:
    try:
        return base64.b64decode(encoded, validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError) as error:
        LOGGER.warning("Ignoring malformed %s: %s", PERCY_TOKEN_ENCODED_ENV, error)
        return None


@dataclass(frozen=True, slots=True)
class VisualDiffCredentials:
    """Project and token for the visual diff service."""

    project: str | None = None
    token: str | None = None

    @classmethod
    def from_environment(cls, env: Mapping[str, str] | None = None, *, ci: bool) -> "VisualDiffCredentials":
        """Read credentials; on CI the token arrives base64 encoded."""

        environ = os.environ if env is None else env
        if ci:
            encoded = environ.get(PERCY_TOKEN_ENCODED_ENV)
            token = _decode_token(encoded) if encoded else None
        else:
            token = environ.get(PERCY_TOKEN_ENV)
        return cls(project=environ.get(PERCY_PROJECT_ENV) or None, token=token or None)

    @property
    def available(self) -> bool:
        return bool(self.project and self.token)

    def environment(self) -> Dict[str, str]:
        if not self.available:
            return {}
        return {PERCY_PROJECT_ENV: str(self.project), PERCY_TOKEN_ENV: str(self.token)}


@dataclass(frozen=True, slots=True)
class ProxyCredentials:
    username: str
    access_key: str

    def environment(self) -> Dict[str, str]:
        return {SAUCE_USERNAME_ENV: self.username, SAUCE_ACCESS_KEY_ENV: self.access_key}


class ProxyCredentialProvider:
    """Fetch proxy credentials and manage the proxy around dependent commands."""

    def __init__(self, settings: ProxySettings, executor: CommandExecutor, console: Console) -> None:
        self.settings = settings
        self.executor = executor
        self.console = console

    def acquire(self) -> ProxyCredentials:
        """Fetch a fresh access key from the token dealer."""

        result = self.executor.capture(f"curl --silent {self.settings.token_url}")
        if not result.ok:
            raise CommandFailed(result)
        return ProxyCredentials(username=self.settings.username, access_key=result.stdout.strip())

    @contextmanager
    def session(self) -> Iterator[ProxyCredentials]:
        """Start the proxy, yield its credentials, and stop it on exit."""

        credentials = self.acquire()
        env = credentials.environment()
        self.console.info("Starting Sauce Connect Proxy:", cyan(self.settings.start_command), spaced=True)
        try:
            # A start script failing partway may still leave a tunnel behind.
            self.executor.run_or_die(self.settings.start_command, env=env)
            yield credentials
        except BaseException:
            self._stop(env, fatal=False)
            raise
        self._stop(env, fatal=True)

    def _stop(self, env: Mapping[str, str], *, fatal: bool) -> None:
        self.console.info("Stopping Sauce Connect Proxy:", cyan(self.settings.stop_command), spaced=True)
        if fatal:
            self.executor.run_or_die(self.settings.stop_command, env=env)
            return
        result = self.executor.run(self.settings.stop_command, env=env)
        if not result.ok:
            LOGGER.warning("Proxy stop command exited with status %s", result.exit_code)


__all__ = [
    "PERCY_PROJECT_ENV",
    "PERCY_TOKEN_ENCODED_ENV",
    "PERCY_TOKEN_ENV",
    "ProxyCredentialProvider",
    "ProxyCredentials",
    "SAUCE_ACCESS_KEY_ENV",
    "SAUCE_USERNAME_ENV",
    "VisualDiffCredentials",
]
