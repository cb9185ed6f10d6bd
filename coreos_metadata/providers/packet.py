from __future__ import annotations

import logging
from typing import Any, Dict, List

from ..errors import FetchError
from .base import Metadata
from .http import get

logger = logging.getLogger(__name__)

METADATA_URL = "https://metadata.packet.net/metadata"


def parse_metadata(data: Dict[str, Any]) -> Metadata:
    """Turn the Packet metadata document into Metadata.

    Addresses are numbered per (family, visibility) in document order, e.g.
    PACKET_IPV4_PUBLIC_0, PACKET_IPV4_PRIVATE_0, PACKET_IPV6_PUBLIC_0.
    """

    attributes: Dict[str, str] = {"PACKET_HOSTNAME": str(data.get("hostname") or "")}

    counters: Dict[str, int] = {}
    network = data.get("network") or {}
    for addr in network.get("addresses") or []:
        address = str(addr.get("address") or "")
        if not address:
            continue
        family = "IPV6" if int(addr.get("address_family") or 4) == 6 else "IPV4"
        visibility = "PUBLIC" if addr.get("public") else "PRIVATE"
        prefix = f"PACKET_{family}_{visibility}"
        n = counters.get(prefix, 0)
        counters[prefix] = n + 1
        attributes[f"{prefix}_{n}"] = address

    keys: List[str] = [str(k).strip() for k in data.get("ssh_keys") or [] if str(k).strip()]
    return Metadata(attributes=attributes, ssh_keys=tuple(keys))


def fetch_metadata() -> Metadata:
    response = get(METADATA_URL)
    if response is None:
        raise FetchError(f"{METADATA_URL} not found")

    try:
        data = response.json()
    except ValueError as e:
        raise FetchError(f"invalid metadata document: {e}") from e
    if not isinstance(data, dict):
        raise FetchError(f"metadata document must be an object, got {type(data).__name__}")

    metadata = parse_metadata(data)
    logger.info(
        "Packet: %d attribute(s), %d ssh key(s)",
        len(metadata.attributes),
        len(metadata.ssh_keys or ()),
    )
    return metadata
