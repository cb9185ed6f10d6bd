from __future__ import annotations

import logging
from typing import Dict, List

from .base import Metadata
from .http import get, get_text

logger = logging.getLogger(__name__)

METADATA_URL = "http://169.254.169.254/2009-04-04/meta-data/"

# attribute name -> meta-data path
ATTRIBUTES = {
    "EC2_INSTANCE_ID": "instance-id",
    "EC2_IPV4_LOCAL": "local-ipv4",
    "EC2_IPV4_PUBLIC": "public-ipv4",
    "EC2_AVAILABILITY_ZONE": "placement/availability-zone",
    "EC2_HOSTNAME": "hostname",
    "EC2_PUBLIC_HOSTNAME": "public-hostname",
}


def _fetch_ssh_keys() -> List[str]:
    response = get(METADATA_URL + "public-keys/")
    if response is None:
        return []

    keys: List[str] = []
    for line in response.text.splitlines():
        # "<index>=<key name>"
        index, _, _name = line.partition("=")
        index = index.strip()
        if not index:
            continue
        key = get_text(f"{METADATA_URL}public-keys/{index}/openssh-key").strip()
        if key:
            keys.append(key)
    return keys


def fetch_metadata() -> Metadata:
    attributes: Dict[str, str] = {}
    for name, path in ATTRIBUTES.items():
        attributes[name] = get_text(METADATA_URL + path).strip()

    keys = _fetch_ssh_keys()
    logger.info("EC2: %d attribute(s), %d ssh key(s)", len(attributes), len(keys))
    return Metadata(attributes=attributes, ssh_keys=tuple(keys))
