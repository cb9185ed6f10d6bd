from __future__ import annotations

import argparse
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from .cmdline import read_cmdline
from .errors import ConfigError
from .providers import validate_provider

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Config:
    """One invocation's settings, resolved once and passed around."""

    provider: str
    attributes: Optional[str] = None
    ssh_keys: Optional[str] = None


# Recognised config file keys and their types; unset (null) values are allowed.
FILE_KEYS: Dict[str, type] = {
    "provider": str,
    "attributes": str,
    "ssh_keys": str,
    "cmdline": bool,
}


def load_config_file(path: str) -> Dict[str, Any]:
    """Load a YAML file of defaults (provider, attributes, ssh-keys, cmdline)."""

    p = Path(path)
    if not p.is_file():
        raise ConfigError(f"config file {path} does not exist")

    try:
        import yaml  # type: ignore
    except Exception as e:  # pragma: no cover
        raise RuntimeError("PyYAML is required to read config files") from e

    try:
        raw = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"could not read config file {path}: {e}") from e

    if not isinstance(raw, dict):
        raise ConfigError(f"config file {path} must contain a mapping")

    # Accept both the flag spelling and the python spelling.
    if "ssh-keys" in raw:
        raw.setdefault("ssh_keys", raw.pop("ssh-keys"))

    for key, value in raw.items():
        expected = FILE_KEYS.get(key)
        if expected is None or value is None:
            continue
        if not isinstance(value, expected):
            raise ConfigError(
                f"config file {path}: {key} must be a {expected.__name__}, got {type(value).__name__}"
            )
    return raw


def _pick(cli: Any, file_value: Any) -> Any:
    return file_value if cli is None else cli


def resolve_config(args: argparse.Namespace) -> Config:
    """Merge CLI args over the config file, resolve and validate the provider.

    Raises ConfigError before any side effect happens.
    """

    defaults: Dict[str, Any] = load_config_file(args.config) if args.config else {}

    provider = _pick(args.provider, defaults.get("provider")) or ""
    use_cmdline = bool(_pick(args.cmdline, defaults.get("cmdline")))

    if use_cmdline and not provider:
        provider = read_cmdline()
        logger.debug("Provider from cmdline: %r", provider)

    validate_provider(str(provider))

    return Config(
        provider=str(provider),
        attributes=_pick(args.attributes, defaults.get("attributes")) or None,
        ssh_keys=_pick(args.ssh_keys, defaults.get("ssh_keys")) or None,
    )
