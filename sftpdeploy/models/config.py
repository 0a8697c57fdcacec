"""
Deployment Configuration Model

The single validated record a deployment runs from.
"""

import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Optional

from sftpdeploy.constants import (
    DEFAULT_PORT,
    DEFAULT_REMOTE_DIR,
    DEFAULT_SFTP_BINARY,
    DEFAULT_SOURCE_DIR,
    DEFAULT_TIMEOUT,
    KEY_STRATEGIES,
    KEY_STRATEGY_FILE,
    LINE_BREAKS,
    RUNNER_TEMP_ENV,
)
from sftpdeploy.exceptions import ConfigValidationError

REQUIRED_FIELDS = ["host", "username", "private_key"]
TRUTHY_VALUES = ("1", "true", "yes", "on")


def has_line_break(value: str) -> bool:
    return any(char in value for char in LINE_BREAKS)


def normalize_key(raw_key: str) -> str:
    """Return the key with exactly one trailing newline when it has none."""
    if raw_key.endswith("\n"):
        return raw_key
    return raw_key + "\n"


@dataclass(frozen=True)
class DeployConfig:
    """Resolved inputs for one deployment."""

    host: str
    username: str
    private_key: str = field(repr=False)
    port: int = DEFAULT_PORT
    source_dir: Path = Path(DEFAULT_SOURCE_DIR)
    remote_dir: str = DEFAULT_REMOTE_DIR
    key_strategy: str = KEY_STRATEGY_FILE
    known_hosts: Optional[str] = field(default=None, repr=False)
    recursive: bool = False
    timeout: Optional[float] = DEFAULT_TIMEOUT
    temp_dir: Optional[Path] = None
    sftp_binary: str = DEFAULT_SFTP_BINARY

    def __post_init__(self):
        self.validate()

    @property
    def normalized_key(self) -> str:
        """Private key ending in exactly one added-if-missing newline."""
        return normalize_key(self.private_key)

    @property
    def target(self) -> str:
        """Get connection string (user@host)."""
        return f"{self.username}@{self.host}"

    def resolve_temp_dir(self, env: Optional[Mapping[str, str]] = None) -> Path:
        """Directory for the identity file and batch script."""
        if self.temp_dir:
            return Path(self.temp_dir)
        runner_temp = (env or {}).get(RUNNER_TEMP_ENV)
        if runner_temp:
            return Path(runner_temp)
        return Path(tempfile.gettempdir())

    def validate(self) -> None:
        """
        Validate field values.

        Raises:
            ConfigValidationError: On the first invalid field. The message
                names the field, never the private key value.
        """
        for name in REQUIRED_FIELDS:
            value = getattr(self, name)
            if not isinstance(value, str) or not value.strip():
                raise ConfigValidationError(f"Input required and not supplied: {name}")

        if not isinstance(self.port, int) or isinstance(self.port, bool):
            raise ConfigValidationError(f"Invalid port: {self.port!r}")
        if not 1 <= self.port <= 65535:
            raise ConfigValidationError(
                f"Invalid port: {self.port}", context="Port must be between 1 and 65535"
            )

        if not str(self.remote_dir).strip():
            raise ConfigValidationError("Input required and not supplied: remote_dir")
        for name in ("remote_dir", "source_dir"):
            if has_line_break(str(getattr(self, name))):
                raise ConfigValidationError(
                    f"Invalid {name}: line breaks are not allowed in paths"
                )

        if self.key_strategy not in KEY_STRATEGIES:
            raise ConfigValidationError(
                f"Unknown key strategy: {self.key_strategy}",
                context=f"Expected one of: {', '.join(KEY_STRATEGIES)}",
            )

        if self.timeout is not None and self.timeout <= 0:
            raise ConfigValidationError(f"Invalid timeout: {self.timeout}")

    @classmethod
    def from_inputs(cls, payload: Mapping[str, Any]) -> "DeployConfig":
        """
        Build a config from loosely-typed inputs (CLI options, env vars).

        Blank optional values fall back to their defaults. A timeout of 0
        disables the timeout.

        Raises:
            ConfigValidationError: If a required input is missing or a value
                cannot be converted.
        """

        def pick(name: str, default: Any = None) -> Any:
            value = payload.get(name)
            if value is None or (isinstance(value, str) and not value.strip()):
                return default
            return value

        for name in REQUIRED_FIELDS:
            if pick(name) is None:
                raise ConfigValidationError(f"Input required and not supplied: {name}")

        raw_port = pick("port", DEFAULT_PORT)
        try:
            port = int(str(raw_port).strip())
        except ValueError:
            raise ConfigValidationError(f"Invalid port: {raw_port!r}") from None

        raw_timeout = pick("timeout", DEFAULT_TIMEOUT)
        try:
            timeout = float(raw_timeout)
        except (TypeError, ValueError):
            raise ConfigValidationError(f"Invalid timeout: {raw_timeout!r}") from None

        recursive = pick("recursive", False)
        if isinstance(recursive, str):
            recursive = recursive.strip().lower() in TRUTHY_VALUES

        temp_dir = pick("temp_dir")

        return cls(
            host=str(pick("host")).strip(),
            username=str(pick("username")).strip(),
            private_key=str(pick("private_key")),
            port=port,
            source_dir=Path(pick("source_dir", DEFAULT_SOURCE_DIR)),
            remote_dir=str(pick("remote_dir", DEFAULT_REMOTE_DIR)).strip(),
            key_strategy=str(pick("key_strategy", KEY_STRATEGY_FILE)).strip().lower(),
            known_hosts=pick("known_hosts"),
            recursive=bool(recursive),
            timeout=timeout if timeout > 0 else None,
            temp_dir=Path(temp_dir) if temp_dir else None,
            sftp_binary=str(pick("sftp_binary", DEFAULT_SFTP_BINARY)),
        )
