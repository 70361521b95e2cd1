"""Small key-value persistence used for per-account records."""

from abc import ABC, abstractmethod
from pathlib import Path

from autoinvite.errors import PersistenceError
from autoinvite.utils.helpers import ensure_dir, safe_filename


class KeyValueStore(ABC):
    """String-to-string store. A missing key reads as None."""

    @abstractmethod
    def get(self, key: str) -> str | None:
        pass

    @abstractmethod
    def put(self, key: str, value: str) -> None:
        """Write a value, raising PersistenceError when it cannot be stored."""
        pass


class MemoryStore(KeyValueStore):
    """Process-local store."""

    def __init__(self, initial: dict[str, str] | None = None):
        self.data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self.data.get(key)

    def put(self, key: str, value: str) -> None:
        self.data[key] = value


class FileStore(KeyValueStore):
    """
    One plain text file per key below ``root``.

    Keys are split on '/' into directories, so ``matrix.org/bot/next_batch``
    lives at ``root/matrix.org/bot/next_batch``.
    """

    def __init__(self, root: Path):
        self.root = root

    def path_for(self, key: str) -> Path:
        parts = [safe_filename(part) for part in key.split("/") if part]
        return self.root.joinpath(*parts)

    def get(self, key: str) -> str | None:
        path = self.path_for(key)
        try:
            value = path.read_text(encoding="utf-8").strip()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise PersistenceError(f"Failed to read {path}: {e}") from e
        return value or None

    def put(self, key: str, value: str) -> None:
        path = self.path_for(key)
        tmp = path.with_name(path.name + ".tmp")
        try:
            ensure_dir(path.parent)
            tmp.write_text(value, encoding="utf-8")
            tmp.replace(path)
        except OSError as e:
            raise PersistenceError(f"Failed to write {path}: {e}") from e
