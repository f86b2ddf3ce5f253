"""Fleet configuration, read from the environment at startup."""

import os
from collections.abc import Mapping
from dataclasses import dataclass, field

DEFAULT_API_URL = "https://api.artifactsmmo.com"
STRATEGIES = ("trainer", "tasker")


class ConfigError(Exception):
    """Raised when the environment does not describe a runnable fleet."""


@dataclass
class FleetConfig:
    api_token: str
    api_url: str = DEFAULT_API_URL
    strategy: str = "trainer"
    pipeline: bool = True
    characters: list[str] = field(default_factory=list)  # empty means all account characters
    log_dir: str = "logs"
    nats_url: str | None = None
    log_level: str = "INFO"


def _parse_bool(name: str, raw: str) -> bool:
    value = raw.strip().lower()
    if value in ("1", "true", "yes", "on"):
        return True
    if value in ("0", "false", "no", "off"):
        return False
    raise ConfigError(f"{name} must be 1 or 0, got {raw!r}")


def load_config(env: Mapping[str, str] | None = None) -> FleetConfig:
    env = os.environ if env is None else env

    token = env.get("ARTIFACTS_API_TOKEN", "").strip()
    if not token:
        raise ConfigError("ARTIFACTS_API_TOKEN is required")

    strategy = env.get("FLEET_STRATEGY", "trainer").strip().lower()
    if strategy not in STRATEGIES:
        choices = ", ".join(STRATEGIES)
        raise ConfigError(f"FLEET_STRATEGY must be one of {choices}, got {strategy!r}")

    characters = [c.strip() for c in env.get("FLEET_CHARACTERS", "").split(",") if c.strip()]

    return FleetConfig(
        api_token=token,
        api_url=env.get("ARTIFACTS_API_URL", DEFAULT_API_URL).rstrip("/"),
        strategy=strategy,
        pipeline=_parse_bool("FLEET_PIPELINE", env.get("FLEET_PIPELINE", "1")),
        characters=characters,
        log_dir=env.get("FLEET_LOG_DIR", "logs"),
        nats_url=env.get("NATS_URL") or None,
        log_level=env.get("FLEET_LOG_LEVEL", "INFO").upper(),
    )
