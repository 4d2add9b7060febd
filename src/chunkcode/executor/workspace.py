"""Private virtual filesystem namespaces for engine handles.

Each engine handle owns one Workspace: a temporary directory holding the
byte buffers it reads and writes. Entries are addressed by bare name, never
by path, so a handle cannot reach into another handle's namespace.
"""

from __future__ import annotations

import logging
import shutil
import tempfile
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_PREFIX = "chunkcode_"


class WorkspaceError(OSError):
    """Raised for invalid entry names or a destroyed workspace."""


class Workspace:
    """A job- or slot-scoped namespace of byte buffers backed by a directory."""

    def __init__(self, path: Path) -> None:
        """Wrap an existing directory.

        Args:
            path: Directory that becomes the namespace root.
        """
        self.path = path
        self._destroyed = False

    @classmethod
    def create(cls, label: str = "", parent: Path | None = None) -> Workspace:
        """Create a fresh, empty workspace.

        Args:
            label: Readable tag included in the directory name.
            parent: Directory to create the workspace in (None = system temp).

        Returns:
            New Workspace.
        """
        if parent is not None:
            parent.mkdir(parents=True, exist_ok=True)
        prefix = f"{DEFAULT_PREFIX}{label}_" if label else DEFAULT_PREFIX
        path = Path(tempfile.mkdtemp(prefix=prefix, dir=parent))
        logger.debug("Created workspace %s", path)
        return cls(path)

    def __repr__(self) -> str:
        return f"Workspace({str(self.path)!r})"

    @property
    def destroyed(self) -> bool:
        return self._destroyed

    def resolve(self, name: str) -> Path:
        """Map an entry name to its backing path.

        Raises:
            WorkspaceError: If the name is not a plain entry name or the
                workspace was destroyed.
        """
        if self._destroyed:
            raise WorkspaceError(f"Workspace {self.path} was destroyed")
        if not name or name in (".", "..") or "/" in name or "\\" in name:
            raise WorkspaceError(f"Invalid workspace entry name: {name!r}")
        return self.path / name

    def write_file(self, name: str, data: bytes) -> Path:
        """Write an entry, replacing any existing one."""
        path = self.resolve(name)
        path.write_bytes(data)
        return path

    def read_file(self, name: str) -> bytes:
        """Read an entry.

        Raises:
            FileNotFoundError: If the entry does not exist.
        """
        return self.resolve(name).read_bytes()

    def delete_file(self, name: str) -> bool:
        """Delete an entry.

        Returns:
            True if the entry existed.
        """
        path = self.resolve(name)
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        return True

    def exists(self, name: str) -> bool:
        return self.resolve(name).is_file()

    def list_dir(self) -> list[str]:
        """List entry names, sorted."""
        if self._destroyed:
            return []
        return sorted(p.name for p in self.path.iterdir() if p.is_file())

    def discard(self, *names: str) -> None:
        """Best-effort delete of entries; failures are logged, never raised."""
        for name in names:
            try:
                self.delete_file(name)
            except OSError as e:
                logger.warning("Could not delete workspace entry %s: %s", name, e)

    @contextmanager
    def scoped(self, *names: str) -> Iterator[None]:
        """Guarantee deletion of the named entries on every exit path.

        Example:
            with workspace.scoped("in.mkv", "out.mp4"):
                workspace.write_file("in.mkv", data)
                ...
        """
        try:
            yield
        finally:
            self.discard(*names)

    def destroy(self) -> None:
        """Remove the workspace and everything in it."""
        if self._destroyed:
            return
        self._destroyed = True
        try:
            shutil.rmtree(self.path)
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning("Could not remove workspace %s: %s", self.path, e)
        else:
            logger.debug("Removed workspace %s", self.path)
