from __future__ import annotations

import contextlib
import fcntl
import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import Any, Iterator, List, Optional, Union

from .errors import AuthorizedKeysError

logger = logging.getLogger(__name__)

SSH_DIR = ".ssh"
KEYS_FILE = "authorized_keys"
KEYS_DIR = "authorized_keys.d"
LOCK_FILE = ".authorized_keys.d.lock"

# Block that receives a pre-existing authorized_keys the first time the
# directory is created, so keys added by hand survive the first sync.
PRESERVED_NAME = "old_authorized_keys"


def _chown(path: Union[str, Path], user: Any) -> None:
    st = os.stat(path)
    if (st.st_uid, st.st_gid) != (user.pw_uid, user.pw_gid):
        os.chown(path, user.pw_uid, user.pw_gid)


def _fsync_dir(path: Path) -> None:
    fd = os.open(path, os.O_RDONLY)
    try:
        os.fsync(fd)
    finally:
        os.close(fd)


def _atomic_write(path: Path, data: str, user: Any, mode: int = 0o600) -> None:
    fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.")
    try:
        with os.fdopen(fd, "w", encoding="utf-8", errors="surrogateescape") as f:
            os.fchmod(f.fileno(), mode)
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        _chown(tmp, user)
        os.replace(tmp, path)
    except BaseException:
        with contextlib.suppress(FileNotFoundError):
            os.unlink(tmp)
        raise


# Key material round-trips byte for byte, whatever its encoding.
def _read(path: Path) -> str:
    return path.read_text(encoding="utf-8", errors="surrogateescape")


def _check_name(name: str) -> None:
    if not name or name.startswith(".") or "/" in name:
        raise AuthorizedKeysError(f"invalid key set name {name!r}")


class AuthorizedKeysDir:
    """A user's ~/.ssh/authorized_keys.d, held under an exclusive lock.

    Each file in the directory is a named key set. sync() regenerates
    ~/.ssh/authorized_keys from all of them. Obtain instances via
    open_store(); they are only valid inside that context.
    """

    def __init__(self, user: Any, ssh_dir: Path) -> None:
        self.user = user
        self.ssh_dir = ssh_dir
        self.path = ssh_dir / KEYS_DIR
        self.keys_file = ssh_dir / KEYS_FILE

    def names(self) -> List[str]:
        return sorted(
            p.name for p in self.path.iterdir() if p.is_file() and not p.name.startswith(".")
        )

    def get(self, name: str) -> Optional[str]:
        _check_name(name)
        p = self.path / name
        if not p.is_file():
            return None
        return _read(p)

    def add(self, name: str, keys: str, replace: bool = False, force: bool = False) -> None:
        """Store keys as key set name.

        replace: overwrite an existing set of the same name.
        force: accept an empty key set (clears what was there).
        """

        _check_name(name)
        p = self.path / name
        if p.exists() and not replace:
            raise AuthorizedKeysError(f"key set {name!r} already exists for {self.user.pw_name}")
        if not keys.strip() and not force:
            raise AuthorizedKeysError(f"key set {name!r} contains no keys")

        data = keys if (not keys or keys.endswith("\n")) else keys + "\n"
        try:
            _atomic_write(p, data, self.user)
        except OSError as e:
            raise AuthorizedKeysError(f"failed to write key set {name!r}: {e}") from e
        logger.debug("Stored key set %s for %s", name, self.user.pw_name)

    def remove(self, name: str) -> None:
        _check_name(name)
        try:
            (self.path / name).unlink()
        except FileNotFoundError as e:
            raise AuthorizedKeysError(f"key set {name!r} does not exist") from e
        except OSError as e:
            raise AuthorizedKeysError(f"failed to remove key set {name!r}: {e}") from e

    def sync(self) -> None:
        """Regenerate authorized_keys from every key set, durably."""

        parts: List[str] = []
        try:
            for name in self.names():
                text = _read(self.path / name)
                if text and not text.endswith("\n"):
                    text += "\n"
                parts.append(text)
            _atomic_write(self.keys_file, "".join(parts), self.user)
            _fsync_dir(self.ssh_dir)
        except OSError as e:
            raise AuthorizedKeysError(f"failed to sync {self.keys_file}: {e}") from e
        logger.debug("Synced %s from %d key set(s)", self.keys_file, len(parts))


def _ensure_dir(path: Path, user: Any, create: bool) -> bool:
    """Return True if path had to be created."""

    if path.is_dir():
        return False
    if not create:
        raise AuthorizedKeysError(f"{path} does not exist")
    path.mkdir(mode=0o700)
    _chown(path, user)
    return True


@contextlib.contextmanager
def open_store(user: Any, create: bool = False) -> Iterator[AuthorizedKeysDir]:
    """Open the authorized_keys.d of user (a pwd entry), locked exclusively.

    The lock is released on every exit path. With create=True the .ssh and
    authorized_keys.d directories are created as needed.
    """

    ssh_dir = Path(user.pw_dir) / SSH_DIR

    try:
        _ensure_dir(ssh_dir, user, create)
        lock_path = ssh_dir / LOCK_FILE
        lock_fd = os.open(lock_path, os.O_RDWR | os.O_CREAT, 0o600)
    except OSError as e:
        raise AuthorizedKeysError(f"failed to open {ssh_dir}: {e}") from e

    try:
        try:
            _chown(lock_path, user)
            fcntl.flock(lock_fd, fcntl.LOCK_EX)

            store = AuthorizedKeysDir(user, ssh_dir)
            created = _ensure_dir(store.path, user, create)
            if created and store.keys_file.is_file():
                # authorized_keys.d never exists without this import.
                try:
                    logger.info("Preserving existing %s as %s", store.keys_file, PRESERVED_NAME)
                    store.add(PRESERVED_NAME, _read(store.keys_file), replace=True, force=True)
                except BaseException:
                    shutil.rmtree(store.path, ignore_errors=True)
                    raise
        except OSError as e:
            raise AuthorizedKeysError(f"failed to open {ssh_dir / KEYS_DIR}: {e}") from e

        yield store
    finally:
        with contextlib.suppress(OSError):
            fcntl.flock(lock_fd, fcntl.LOCK_UN)
        os.close(lock_fd)
