# karalis/resources.py
"""
ResourceStore - in-memory map of resource paths to file contents.

Paths use "/" separators. Files read from a zip archive are keyed as
"<archive path>/<entry name>". The store doubles as the resolver the OBJ
loader uses to fetch material libraries.
"""

from __future__ import annotations

import os
import posixpath
import zipfile
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Union

from karalis import log
from karalis.animation.clip import ModelAnimation
from karalis.errors import FileOperationError, ResourceNotFoundError, UnsupportedFormatError
from karalis.loaders.iqm_animation import load_iqm_animations
from karalis.loaders.iqm_loader import load_iqm
from karalis.loaders.mesh_spec import ImportSpec
from karalis.loaders.obj_loader import load_obj
from karalis.mesh import Model

PathLike = Union[str, Path]


def join_resource_path(file: str, directory: str = "") -> str:
    """directory + "/" + file, without a leading "./"."""
    path = f"{directory}/{file}" if directory else file
    if path.startswith("./"):
        path = path[2:]
    return path


class ResourceStore:
    """Resource contents by path, plus model loading by file extension."""

    def __init__(self):
        self._data: Dict[str, bytes] = {}

    # ---------- FILLING ----------

    def add(self, path: str, data: Union[bytes, str]) -> None:
        if isinstance(data, str):
            data = data.encode("utf-8")
        self._data[path] = bytes(data)

    def load_dir(self, root: PathLike) -> int:
        """
        Add every file under root, keyed by its path relative to root.

        Returns:
            Number of files added.
        """
        root = Path(root)
        if not root.is_dir():
            raise FileOperationError(f"Not a directory: {root}")

        count = 0
        for dirpath, _dirnames, filenames in os.walk(root):
            for filename in sorted(filenames):
                full = Path(dirpath) / filename
                key = full.relative_to(root).as_posix()
                with open(full, "rb") as f:
                    self._data[key] = f.read()
                count += 1
        log.debug(f"[ResourceStore] Loaded {count} files from {root}")
        return count

    def read_archive(self, path: PathLike) -> int:
        """
        Add every file of an archive, keyed "<path>/<entry name>".

        Raises:
            UnsupportedFormatError: not a zip archive
            FileOperationError: archive cannot be read
        """
        key_prefix = Path(path).as_posix()
        if not key_prefix.lower().endswith(".zip"):
            raise UnsupportedFormatError(f"Archive not supported: {key_prefix}")

        try:
            with zipfile.ZipFile(path) as archive:
                count = 0
                for info in archive.infolist():
                    if info.is_dir():
                        continue
                    self._data[f"{key_prefix}/{info.filename}"] = archive.read(info)
                    count += 1
        except (OSError, zipfile.BadZipFile) as e:
            raise FileOperationError(f"Error reading archive '{key_prefix}': {e}") from e

        log.debug(f"[ResourceStore] Loaded {count} files from archive {key_prefix}")
        return count

    # ---------- LOOKUP ----------

    def __contains__(self, path: str) -> bool:
        return path in self._data

    def __len__(self) -> int:
        return len(self._data)

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self._data))

    def get(self, path: str) -> bytes:
        """
        Raises:
            ResourceNotFoundError: path is not in the store
        """
        try:
            return self._data[path]
        except KeyError:
            raise ResourceNotFoundError(f"Resource not found: {path}") from None

    def get_data(self, file: str, directory: str = "") -> bytes:
        """Contents of file relative to directory. Matches the loaders' resolver signature."""
        return self.get(join_resource_path(file, directory))

    def get_text(self, path: str) -> str:
        return self.get(path).decode("utf-8", errors="ignore")

    def list_paths(self, extension: Optional[str] = None) -> List[str]:
        """Stored paths, optionally only those ending in extension."""
        if extension is None:
            return sorted(self._data)
        extension = extension.lower()
        return sorted(p for p in self._data if p.lower().endswith(extension))

    # ---------- LOADING ----------

    def import_spec_for(self, path: str) -> ImportSpec:
        """Import settings from "<path>.meta" in the store, defaults if absent."""
        meta_path = path + ".meta"
        if meta_path not in self._data:
            return ImportSpec()
        return ImportSpec.from_json(self._data[meta_path])

    def load_model(self, path: str) -> Model:
        """
        Load an .obj or .iqm resource as a Model.

        Material libraries referenced by an OBJ are looked up next to it.

        Raises:
            ResourceNotFoundError: path is not in the store
            UnsupportedFormatError: extension is neither .obj nor .iqm
        """
        data = self.get(path)
        ext = posixpath.splitext(path)[1].lower()

        if ext == ".obj":
            return load_obj(
                data,
                resolver=self.get_data,
                working_dir=posixpath.dirname(path),
                spec=self.import_spec_for(path),
                name=path,
            )
        if ext == ".iqm":
            return load_iqm(data, name=path)

        raise UnsupportedFormatError(f"Unsupported model format: {path}")

    def load_animations(self, path: str) -> List[ModelAnimation]:
        """Animations of an .iqm resource."""
        data = self.get(path)
        if posixpath.splitext(path)[1].lower() != ".iqm":
            raise UnsupportedFormatError(f"Unsupported animation format: {path}")
        return load_iqm_animations(data)
