from __future__ import annotations

import os
import re
from typing import Dict, List, Optional, Union

from .catalog import Catalog, PathLike
from .constants import CAT_EXT, MAX_U32
from .errors import (
    ArchiveIOError,
    CatalogNotFoundError,
    CatDatError,
    EntryNotFoundError,
    MalformedIdError,
)


_ID_RE = re.compile(r"[0-9]+")


def parse_catalog_id(path: PathLike) -> int:
    """Return the precedence id encoded in a catalog filename.

    ``/data/13.cat`` -> 13. A name without the catalog extension is read
    whole (``"15"`` -> 15). Anything else raises ``MalformedIdError``.
    """
    name = os.path.basename(os.fspath(path))
    if name.endswith(CAT_EXT) and len(name) > len(CAT_EXT):
        name = name[: -len(CAT_EXT)]
    if not _ID_RE.fullmatch(name):
        raise MalformedIdError(f"{path!s}: catalog name is not a non-negative integer")
    cid = int(name)
    if cid > MAX_U32:
        raise MalformedIdError(f"{path!s}: catalog id {cid} is out of range")
    return cid


class Directory:
    """Numbered catalogs from one directory, layered by precedence.

    A catalog with a higher id overrides lower ones for any path they share;
    id 0 is the lowest tier. Catalogs are only ever added.
    """

    def __init__(self, path: Optional[PathLike] = None):
        self._catalogs: Dict[int, Catalog] = {}
        self._names: Dict[str, int] = {}
        self.largest_id = 0
        self.last_error: Optional[Exception] = None
        self.path = os.fspath(path) if path is not None else None
        if path is not None:
            self._scan(self.path)

    def _scan(self, path: str) -> None:
        if not os.path.isdir(path):
            return
        try:
            names = sorted(os.listdir(path))
        except OSError as exc:
            self.last_error = exc
            return
        for fn in names:
            full = os.path.join(path, fn)
            if fn.endswith(CAT_EXT) and os.path.isfile(full):
                # Unparsable names, unreadable catalogs and duplicate ids are skipped
                self.add(full)

    def __len__(self) -> int:
        return len(self._catalogs)

    def __contains__(self, cid: object) -> bool:
        return cid in self._catalogs

    def __repr__(self) -> str:
        return f"Directory({self.path!r}, ids={self.ids()})"

    def has_id(self, cid: int) -> bool:
        return cid in self._catalogs

    def get(self, cid: int) -> Optional[Catalog]:
        return self._catalogs.get(cid)

    def ids(self) -> List[int]:
        return sorted(self._catalogs)

    def id_for(self, index_path: PathLike) -> Optional[int]:
        return self._names.get(os.fspath(index_path))

    # -------- registration --------

    def add(self, source: Union[PathLike, Catalog]) -> bool:
        """Register a catalog by index path or as an already parsed ``Catalog``.

        Fails when the id cannot be read from the filename, when the id is
        already taken, or when the catalog cannot be parsed. A failed add
        leaves the directory unchanged.
        """
        self.last_error = None
        try:
            self._add(source)
        except (CatDatError, OSError) as exc:
            self.last_error = exc
            return False
        return True

    def _add(self, source: Union[PathLike, Catalog]) -> None:
        if isinstance(source, Catalog):
            if not source.loaded:
                raise CatalogNotFoundError("Catalog has not been parsed")
            name = source.index_path
            catalog = source
        else:
            name = os.fspath(source)
            catalog = None

        cid = parse_catalog_id(name)
        if cid in self._catalogs:
            raise MalformedIdError(f"{name}: id {cid} is already taken by {self._catalogs[cid].index_path}")

        if catalog is None:
            catalog = Catalog()
            if not catalog.parse(name):
                raise catalog.last_error or CatalogNotFoundError(f"Could not read catalog {name}")

        self._names[name] = cid
        self._catalogs[cid] = catalog
        if cid > self.largest_id:
            self.largest_id = cid

    # -------- lookup --------

    def search(self, name: str, strict_match: bool = False) -> Optional[Catalog]:
        """Return the highest-precedence catalog holding ``name``, or None."""
        self.last_error = None
        for cid in sorted(self._catalogs, reverse=True):
            # id 0 sorts last, which makes it the fallback tier
            catalog = self._catalogs[cid]
            if catalog.has_file(name, strict_match):
                return catalog
        self.last_error = EntryNotFoundError(f"{name} is not in any catalog")
        return None

    def extract(self, output_dir: PathLike, auto_unpack: bool = False) -> bool:
        """Extract every catalog into ``output_dir``, lowest id first.

        Later (higher id) catalogs overwrite files written by earlier ones, so
        each path ends up with the copy ``search(path, strict_match=True)``
        would pick.
        """
        self.last_error = None
        out = os.fspath(output_dir)
        try:
            os.makedirs(out, exist_ok=True)
        except OSError as exc:
            self.last_error = ArchiveIOError(f"Failed to create directory {out}: {exc}")
            return False
        for cid in self.ids():
            catalog = self._catalogs[cid]
            if not catalog.extract_all(out, auto_unpack=auto_unpack):
                self.last_error = catalog.last_error
                return False
        return True
