from __future__ import annotations

import logging
import xml.etree.ElementTree as ET  # nosec B405
from typing import Dict, Optional

from ..errors import FetchError
from .base import Metadata
from .http import get_text

logger = logging.getLogger(__name__)

# Well-known WireServer address; reachable from every Azure VM.
WIRESERVER = "168.63.129.16"
WIRESERVER_VERSION = "2012-11-30"
HEADERS = {
    "x-ms-agent-name": "coreos-metadata",
    "x-ms-version": WIRESERVER_VERSION,
}


def _parse_xml(text: str, what: str) -> ET.Element:
    if not text:
        raise FetchError(f"empty {what} from wireserver")
    try:
        return ET.fromstring(text)  # nosec B314
    except ET.ParseError as e:
        raise FetchError(f"invalid {what} from wireserver: {e}") from e


def _goal_state(base_url: str) -> ET.Element:
    text = get_text(f"{base_url}/machine/?comp=goalstate", headers=HEADERS)
    return _parse_xml(text, "goal state")


def _role_instance(goal_state: ET.Element) -> ET.Element:
    instance = goal_state.find("./Container/RoleInstanceList/RoleInstance")
    if instance is None:
        raise FetchError("goal state lists no role instance")
    return instance


def _strip_port(address: str) -> str:
    host, sep, _port = address.rpartition(":")
    return host if sep else address


def parse_shared_config(shared_config: ET.Element, instance_id: str) -> Dict[str, str]:
    """Extract addresses of instance_id from a SharedConfig document."""

    dynamic = ""
    virtual = ""
    for instance in shared_config.iterfind("./Instances/Instance"):
        if instance.get("id") != instance_id:
            continue
        dynamic = instance.get("address") or ""
        for endpoint in instance.iterfind("./InputEndpoints/Endpoint"):
            lb = endpoint.get("loadBalancedPublicAddress")
            if lb:
                virtual = _strip_port(lb)
                break
        break

    return {
        "AZURE_IPV4_DYNAMIC": dynamic,
        "AZURE_IPV4_VIRTUAL": virtual,
    }


def fetch_metadata(wireserver: Optional[str] = None) -> Metadata:
    base_url = f"http://{wireserver or WIRESERVER}"

    role_instance = _role_instance(_goal_state(base_url))
    instance_id = (role_instance.findtext("InstanceId") or "").strip()
    shared_config_url = (role_instance.findtext("./Configuration/SharedConfig") or "").strip()
    if not instance_id or not shared_config_url:
        raise FetchError("goal state is missing InstanceId or SharedConfig")

    logger.debug("Azure role instance %s", instance_id)
    shared_config = _parse_xml(get_text(shared_config_url, headers=HEADERS), "shared config")

    attributes = parse_shared_config(shared_config, instance_id)
    logger.info("Azure: %d attribute(s)", len(attributes))
    # Azure provisions ssh keys through the OVF environment, not the wireserver.
    return Metadata(attributes=attributes, ssh_keys=None)
