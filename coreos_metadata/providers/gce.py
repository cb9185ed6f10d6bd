from __future__ import annotations

import logging

from .base import Metadata
from .http import get_text

logger = logging.getLogger(__name__)

METADATA_URL = "http://metadata.google.internal/computeMetadata/v1/instance/"
HEADERS = {"Metadata-Flavor": "Google"}

ATTRIBUTES = {
    "GCE_HOSTNAME": "hostname",
    "GCE_IP_EXTERNAL_0": "network-interfaces/0/access-configs/0/external-ip",
    "GCE_IP_LOCAL_0": "network-interfaces/0/ip",
}


def fetch_metadata() -> Metadata:
    # SSH keys on GCE are managed by the guest agent, not by us.
    attributes = {
        name: get_text(METADATA_URL + path, headers=HEADERS).strip()
        for name, path in ATTRIBUTES.items()
    }
    logger.info("GCE: %d attribute(s)", len(attributes))
    return Metadata(attributes=attributes, ssh_keys=None)
