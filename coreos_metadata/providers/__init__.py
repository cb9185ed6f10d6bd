from __future__ import annotations

import logging
from typing import Callable, Dict

from ..errors import ConfigError, FetchError
from . import azure, ec2, gce, packet
from .base import Metadata

logger = logging.getLogger(__name__)

FetchFn = Callable[[], Metadata]

# Closed set. Adding a provider means adding a module and an entry here.
PROVIDERS: Dict[str, FetchFn] = {
    "azure": azure.fetch_metadata,
    "ec2": ec2.fetch_metadata,
    "gce": gce.fetch_metadata,
    "packet": packet.fetch_metadata,
}

PROVIDER_NAMES = frozenset(PROVIDERS)


def validate_provider(name: str) -> str:
    if name not in PROVIDER_NAMES:
        raise ConfigError(f"invalid provider {name!r}")
    return name


def fetch_metadata(provider: str) -> Metadata:
    """Fetch metadata from provider. No retries, no caching."""

    validate_provider(provider)
    fetch = PROVIDERS[provider]

    logger.info("Fetching metadata from %s", provider)
    try:
        return fetch()
    except FetchError:
        raise
    except Exception as e:
        raise FetchError(f"{provider}: {e}") from e


__all__ = [
    "Metadata",
    "PROVIDERS",
    "PROVIDER_NAMES",
    "fetch_metadata",
    "validate_provider",
]
