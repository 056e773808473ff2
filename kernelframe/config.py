from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any, TypedDict

import yaml

logger = logging.getLogger(__name__)

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8998
DEFAULT_KIND = "eclair"


class SessionConfig(TypedDict):
    """Connection settings for the remote execution session."""

    endpoint: str
    """Base URL of the statements service, e.g. ``http://127.0.0.1:8998``."""

    kind: str
    """Kernel kind requested when the remote session is created."""

    timeout: float
    """Per-request HTTP timeout in seconds."""

    poll_interval: float
    """Delay between polls while waiting for a session or statement."""

    startup_timeout: float
    """How long to wait for the remote session to report ``idle``."""


_FLOAT_KEYS = ("timeout", "poll_interval", "startup_timeout")


def default_config() -> SessionConfig:
    return SessionConfig(
        endpoint=f"http://{DEFAULT_HOST}:{DEFAULT_PORT}",
        kind=DEFAULT_KIND,
        timeout=60.0,
        poll_interval=0.2,
        startup_timeout=120.0,
    )


def config_from_env(environ: Mapping[str, str] | None = None) -> SessionConfig:
    """Build a config from ``KERNELFRAME_*`` environment variables.

    Unset variables fall back to :func:`default_config`.
    """
    env = os.environ if environ is None else environ
    config = default_config()

    host = env.get("KERNELFRAME_HOST", DEFAULT_HOST)
    port = env.get("KERNELFRAME_PORT", str(DEFAULT_PORT))
    scheme = env.get("KERNELFRAME_SCHEME", "http")
    config["endpoint"] = f"{scheme}://{host}:{port}"

    if "KERNELFRAME_KIND" in env:
        config["kind"] = env["KERNELFRAME_KIND"]
    if "KERNELFRAME_TIMEOUT" in env:
        config["timeout"] = float(env["KERNELFRAME_TIMEOUT"])

    return validate_config(config)


def load_config(path: str | Path, environ: Mapping[str, str] | None = None) -> SessionConfig:
    """Load a YAML config file, layered over the environment defaults."""
    with open(path, encoding="utf-8") as fh:
        raw = yaml.safe_load(fh) or {}
    if not isinstance(raw, dict):
        raise ValueError(f"Config file {path} must contain a mapping, got {type(raw).__name__}")

    config = config_from_env(environ)
    merged: dict[str, Any] = dict(config)
    merged.update(raw)
    logger.debug("Loaded session config from %s", path)
    return validate_config(merged)


def validate_config(config: Mapping[str, Any]) -> SessionConfig:
    unknown = set(config) - set(SessionConfig.__annotations__)
    if unknown:
        raise ValueError(f"Unknown session config keys: {sorted(unknown)}")

    endpoint = str(config["endpoint"])
    if not endpoint.startswith(("http://", "https://")):
        raise ValueError(f"Session endpoint must be an http(s) URL, got {endpoint!r}")

    values: dict[str, float] = {}
    for key in _FLOAT_KEYS:
        try:
            value = float(config[key])
        except (TypeError, ValueError) as e:
            raise ValueError(f"Session config '{key}' must be a number, got {config[key]!r}") from e
        if value <= 0:
            raise ValueError(f"Session config '{key}' must be positive, got {value}")
        values[key] = value

    return SessionConfig(
        endpoint=endpoint.rstrip("/"),
        kind=str(config["kind"]),
        timeout=values["timeout"],
        poll_interval=values["poll_interval"],
        startup_timeout=values["startup_timeout"],
    )
