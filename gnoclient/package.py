"""In-memory source packages submitted by ``run`` and ``addpkg`` messages."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Tuple

logger = logging.getLogger(__name__)

RUN_PACKAGE_NAME = "main"
RUN_PACKAGE_PATH = ""

SOURCE_SUFFIXES = (".gno", ".toml", ".md")


@dataclass(frozen=True)
class MemFile:
    name: str
    body: str

    def to_json(self) -> dict[str, Any]:
        return {"name": self.name, "body": self.body}


@dataclass(frozen=True)
class MemPackage:
    """A named bundle of source files addressed by its package path."""

    name: str
    path: str
    files: Tuple[MemFile, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        # accept any iterable of files but store an immutable tuple
        object.__setattr__(self, "files", tuple(self.files))

    def is_empty(self) -> bool:
        return not self.files

    def as_run_script(self) -> "MemPackage":
        """Return a copy addressed as the anonymous ``main`` script."""

        return replace(self, name=RUN_PACKAGE_NAME, path=RUN_PACKAGE_PATH)

    def to_json(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "path": self.path,
            "files": [f.to_json() for f in self.files],
        }

    @classmethod
    def from_dir(cls, directory: str | Path, pkg_path: str = "", name: str | None = None) -> "MemPackage":
        """Load every source file in *directory* (non-recursive), sorted by name."""

        root = Path(directory).expanduser()
        if not root.is_dir():
            raise FileNotFoundError(f"Package directory not found: {root}")
        files = [
            MemFile(name=entry.name, body=entry.read_text())
            for entry in sorted(root.iterdir())
            if entry.is_file() and entry.suffix in SOURCE_SUFFIXES
        ]
        logger.debug("Loaded %d files from %s", len(files), root)
        package_name = name if name is not None else (pkg_path.rsplit("/", 1)[-1] or root.name)
        return cls(name=package_name, path=pkg_path, files=tuple(files))
