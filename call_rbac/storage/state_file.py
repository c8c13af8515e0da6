"""File persistence for AccessState with optional encryption.

The snapshot is JSON, encrypted at rest with Fernet (symmetric
encryption) when a key is configured. Writes go to a temporary file that
replaces the target, so a crash mid-write leaves the previous snapshot.

Several processes (the CLI, a running server) may share one snapshot.
They coordinate through an advisory lock on ``<path>.lock`` and a stamp of
the snapshot's inode, mtime and size: a holder of the lock whose stamp no
longer matches the file reloads before acting.
"""

import fcntl
import json
import logging
import os
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from cryptography.fernet import Fernet, InvalidToken

from call_rbac.utils.errors import ConfigurationError, StateFileError

from .state import AccessState

logger = logging.getLogger(__name__)

Stamp = tuple[int, int, int]


class StateFile:
    """
    JSON snapshot of the call gate state.

    Security considerations:
    - Role assignments decide who may dispatch privileged actions, so a
      file that cannot be read is an error, never an empty state
    - With a key, the snapshot is encrypted and authenticated (Fernet)
    - File permissions should be restricted (600)
    """

    def __init__(self, path: Path | str, encryption_key: str | None = None):
        """
        Initialize the state file.

        Args:
            path: Location of the snapshot
            encryption_key: Optional base64-encoded Fernet key

        Raises:
            ConfigurationError: If the encryption key is not a valid Fernet key
        """
        self.path = Path(path)
        self.lock_path = self.path.with_name(self.path.name + ".lock")
        self.cipher: Fernet | None = None
        if encryption_key:
            try:
                self.cipher = Fernet(encryption_key.encode())
            except ValueError as e:
                raise ConfigurationError(f"Invalid state encryption key: {e}") from e
            logger.info("State file encryption enabled")
        else:
            logger.warning("No encryption key provided. State will be stored unencrypted.")

        # Stamp of the snapshot last loaded or saved through this object
        self._stamp: Stamp | None = None
        self._lock_depth = 0

    @staticmethod
    def generate_encryption_key() -> str:
        """Generate a new Fernet key for ``encryption_key``."""
        return Fernet.generate_key().decode()

    def exists(self) -> bool:
        return self.path.exists()

    @contextmanager
    def lock(self, shared: bool = False) -> Iterator[None]:
        """Hold the advisory lock on the snapshot.

        Re-entrant within one StateFile; the outermost call decides whether
        the lock is shared or exclusive.

        Raises:
            StateFileError: If the lock file cannot be opened or locked
        """
        if self._lock_depth:
            self._lock_depth += 1
            try:
                yield
            finally:
                self._lock_depth -= 1
            return

        try:
            self.lock_path.parent.mkdir(parents=True, exist_ok=True)
            fd = os.open(self.lock_path, os.O_RDWR | os.O_CREAT, 0o600)
        except OSError as e:
            raise StateFileError(str(self.lock_path), f"cannot open lock: {e}") from e

        try:
            fcntl.flock(fd, fcntl.LOCK_SH if shared else fcntl.LOCK_EX)
        except OSError as e:
            os.close(fd)
            raise StateFileError(str(self.lock_path), f"cannot lock: {e}") from e

        self._lock_depth = 1
        try:
            yield
        finally:
            self._lock_depth = 0
            fcntl.flock(fd, fcntl.LOCK_UN)
            os.close(fd)

    def _current_stamp(self) -> Stamp | None:
        try:
            st = self.path.stat()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StateFileError(str(self.path), f"stat failed: {e}") from e
        return (st.st_ino, st.st_mtime_ns, st.st_size)

    def is_stale(self) -> bool:
        """True if the snapshot changed since this object last loaded or saved it."""
        return self._current_stamp() != self._stamp

    def load(self) -> AccessState:
        """Load the snapshot, or an empty state if the file does not exist.

        Call while holding ``lock()`` when other processes may write.

        Raises:
            StateFileError: If the file cannot be read, decrypted or parsed
        """
        stamp = self._current_stamp()
        if stamp is None:
            logger.debug(f"No state file at {self.path}, starting empty")
            self._stamp = None
            return AccessState()

        try:
            data = self.path.read_bytes()
        except OSError as e:
            raise StateFileError(str(self.path), f"read failed: {e}") from e

        if self.cipher:
            try:
                data = self.cipher.decrypt(data)
            except InvalidToken as e:
                raise StateFileError(str(self.path), "decryption failed") from e

        try:
            state = AccessState.from_dict(json.loads(data.decode("utf-8")))
        except (UnicodeDecodeError, json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
            raise StateFileError(str(self.path), f"invalid snapshot: {e}") from e

        self._stamp = stamp
        logger.info(
            f"Loaded state from {self.path}: {len(state.roles)} roles, "
            f"{len(state.calls)} registered calls"
        )
        return state

    def save(self, state: AccessState) -> None:
        """Write the snapshot atomically.

        Call while holding ``lock()`` (exclusive) when other processes may write.

        Raises:
            StateFileError: If the file cannot be written
        """
        data = json.dumps(state.to_dict(), indent=2).encode("utf-8")
        if self.cipher:
            data = self.cipher.encrypt(data)

        tmp_path = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_bytes(data)
            os.chmod(tmp_path, 0o600)
            os.replace(tmp_path, self.path)
        except OSError as e:
            raise StateFileError(str(self.path), f"write failed: {e}") from e

        self._stamp = self._current_stamp()
        logger.debug(f"Saved state to {self.path}")
