import logging
import os
import shlex
from dataclasses import dataclass, field

PACKAGE_DIR = os.path.dirname(os.path.abspath(__file__))
DEFAULT_STATIC_DIR = os.path.join(PACKAGE_DIR, "static")
DEFAULT_INDEX_FILE = os.path.join(PACKAGE_DIR, "index.html")

COMMAND_SLOTS = ("update", "backup_app", "restore_app", "backup_db")

_COMMAND_ENV = {
    "update": ("UPT_SC_UPDATE", "lscpu"),
    "backup_app": ("UPT_SC_BACKUP_APP", "who"),
    "restore_app": ("UPT_SC_RESTORE_APP", "vmstat"),
    "backup_db": ("UPT_SC_BACKUP_BD", "lsblk"),
}


class ConfigError(Exception):
    """Startup configuration that the server cannot run with."""


def _env(environ, key: str, default: str) -> str:
    value = environ.get(key, "")
    return value if value.strip() else default


def _parse_address(raw: str):
    host, sep, port = raw.strip().rpartition(":")
    if not sep:
        host, port = "", raw.strip()
    try:
        number = int(port)
    except ValueError:
        raise ConfigError(f"Invalid UPT_PORT: {raw!r}") from None
    if not 0 < number < 65536:
        raise ConfigError(f"Invalid UPT_PORT: {raw!r}")
    return host or "0.0.0.0", number


def _parse_positive_int(key: str, raw: str) -> int:
    try:
        value = int(raw)
    except ValueError:
        raise ConfigError(f"Invalid {key}: {raw!r} is not an integer") from None
    if value <= 0:
        raise ConfigError(f"Invalid {key}: {raw!r} must be greater than zero")
    return value


def _parse_timeout(raw: str):
    try:
        value = float(raw)
    except ValueError:
        raise ConfigError(f"Invalid UPT_SC_TIMEOUT: {raw!r}") from None
    if value < 0:
        raise ConfigError(f"Invalid UPT_SC_TIMEOUT: {raw!r} must not be negative")
    return value or None


def _parse_command(key: str, raw: str) -> tuple:
    try:
        argv = tuple(shlex.split(raw))
    except ValueError as error:
        raise ConfigError(f"Invalid {key}: {error}") from None
    if not argv:
        raise ConfigError(f"Invalid {key}: empty command")
    return argv


@dataclass(frozen=True)
class Config:
    upload_dir: str = "./uploads"
    host: str = "0.0.0.0"
    port: int = 8080
    upload_limit_mb: int = 500
    commands: dict = field(default_factory=lambda: {slot: (default,) for slot, (_, default) in _COMMAND_ENV.items()})
    command_timeout: float = 600.0
    static_dir: str = DEFAULT_STATIC_DIR
    index_file: str = DEFAULT_INDEX_FILE
    log_level: str = "INFO"
    log_file: str = ""

    @property
    def upload_limit_bytes(self) -> int:
        return self.upload_limit_mb << 20

    @classmethod
    def from_env(cls, environ=None) -> "Config":
        """
        Build the configuration from ``UPT_*`` environment variables,
        falling back to the documented defaults for unset or blank ones.
        """
        environ = os.environ if environ is None else environ

        host, port = _parse_address(_env(environ, "UPT_PORT", ":8080"))
        limit_mb = _parse_positive_int("UPT_LIMIT_DOWNLOAD_MB", _env(environ, "UPT_LIMIT_DOWNLOAD_MB", "500"))
        commands = {
            slot: _parse_command(key, _env(environ, key, default))
            for slot, (key, default) in _COMMAND_ENV.items()
        }

        log_level = _env(environ, "UPT_LOG_LEVEL", "INFO").upper()
        if not isinstance(logging.getLevelName(log_level), int):
            raise ConfigError(f"Invalid UPT_LOG_LEVEL: {log_level!r}")

        return cls(
            upload_dir=_env(environ, "UPT_URL_PREFIX", "./uploads"),
            host=host,
            port=port,
            upload_limit_mb=limit_mb,
            commands=commands,
            command_timeout=_parse_timeout(_env(environ, "UPT_SC_TIMEOUT", "600")),
            static_dir=_env(environ, "UPT_STATIC_DIR", DEFAULT_STATIC_DIR),
            index_file=_env(environ, "UPT_INDEX_FILE", DEFAULT_INDEX_FILE),
            log_level=log_level,
            log_file=environ.get("UPT_LOG_FILE", "").strip(),
        )

    def ensure_upload_dir(self) -> None:
        try:
            os.makedirs(self.upload_dir, mode=0o750, exist_ok=True)
        except OSError as error:
            raise ConfigError(f"Unable to create upload directory {self.upload_dir}: {error}") from error
        if not os.access(self.upload_dir, os.W_OK):
            raise ConfigError(f"Upload directory {self.upload_dir} is not writable")
