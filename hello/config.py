import logging
import os
import pathlib
import re
from dataclasses import dataclass

DEFAULT_PORT = 3000
MAX_PORT = 65535

# Leading integer, the way PORT=3000abc still reads as 3000.
_PORT_PREFIX = re.compile(r"\s*([+-]?\d+)")

log = logging.getLogger(__name__)


def _unquote(value):
    if len(value) >= 2 and value[0] == value[-1] and value[0] in "'\"":
        return value[1:-1]
    return value


def load_dotenv(path=".env"):
    """Loads simple KEY=VALUE lines without overriding the environment."""
    env_path = pathlib.Path(path)
    if not env_path.is_file():
        return
    for line in env_path.read_text().splitlines():
        line = line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        os.environ.setdefault(key.strip(), _unquote(value.strip()))


@dataclass(frozen=True)
class Settings:
    port: int = DEFAULT_PORT
    host: str = "0.0.0.0"
    app_env: str = "development"
    app_name: str = "hello-app"
    enable_logging: bool = True

    @property
    def is_development(self):
        return self.app_env == "development"


def parse_port(raw):
    """Returns the leading integer of ``raw``, or the default when there is none."""
    match = _PORT_PREFIX.match(raw or "")
    if match is None:
        return DEFAULT_PORT
    return int(match.group(1)) or DEFAULT_PORT


def load_settings(env=None):
    """Reads settings from ``env`` (the process environment by default).

    Raises ``ValueError`` for an empty ``APP_NAME`` or a port that no
    socket can bind.
    """
    if env is None:
        load_dotenv()
        env = os.environ

    settings = Settings(
        port=parse_port(env.get("PORT")),
        host=env.get("HOST", "0.0.0.0"),
        app_env=env.get("APP_ENV", "development"),
        app_name=env.get("APP_NAME", "hello-app"),
        enable_logging=env.get("ENABLE_LOGGING", "true").lower() != "false",
    )

    if not settings.app_name:
        raise ValueError("APP_NAME configuration is required")
    if not 0 <= settings.port <= MAX_PORT:
        raise ValueError(f"PORT must be between 0 and {MAX_PORT}, got {settings.port}")
    if settings.port < 1024:
        log.warning(f"Port {settings.port} is outside recommended range (1024-65535)")
    return settings
