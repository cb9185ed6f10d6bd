from __future__ import annotations

import logging
import pwd
from typing import Optional

from . import authorized_keys_d
from .errors import SshKeysError
from .providers import Metadata

logger = logging.getLogger(__name__)

# Name of the key set this tool owns inside authorized_keys.d.
KEY_SET_NAME = "coreos-metadata"


def write_ssh_keys(username: Optional[str], metadata: Metadata) -> None:
    """Replace our key set in username's authorized_keys.d with the provider's keys.

    Skipped when no user was requested or the provider does not supply keys
    (ssh_keys is None). An empty key list still replaces the set, clearing
    keys a previous boot installed.
    """

    if not username or metadata.ssh_keys is None:
        return

    try:
        user = pwd.getpwnam(username)
    except KeyError as e:
        raise SshKeysError(f"unable to lookup user {username!r}: {e}") from e

    keys = "\n".join(metadata.ssh_keys)
    with authorized_keys_d.open_store(user, create=True) as store:
        store.add(KEY_SET_NAME, keys, replace=True, force=True)
        store.sync()

    logger.info("Installed %d ssh key(s) for %s", len(metadata.ssh_keys), username)
