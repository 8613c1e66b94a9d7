"""File path resolution for readers and writers."""

import os
from pathlib import Path

from .errors import XmlIOError


class FileLocator:
    """Resolves file names against a base path and prepares directories."""

    def resolve(self, file_name: str, base_path: str = "./") -> str:
        """Return the absolute path of ``file_name``.

        Absolute file names are returned unchanged (normalized); relative
        ones are joined onto ``base_path``, which itself is resolved against
        the current working directory when relative.
        """
        path = Path(file_name).expanduser()
        if not path.is_absolute():
            path = Path(base_path).expanduser() / path
        return os.path.abspath(path)

    def ensure_directory(self, path: str) -> None:
        """Create ``path`` and its parents when missing."""
        try:
            Path(path).mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise XmlIOError(f"Could not create directory: {path} because: {e}") from e
