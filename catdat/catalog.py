from __future__ import annotations

import os
from dataclasses import dataclass
from typing import BinaryIO, Iterator, List, Optional, Tuple, Union

from .cipher import IndexCipher, xor_data, xor_index
from .constants import (
    DAT_EXT,
    DATA_KEY,
    DEFAULT_BLOCK_SIZE,
    FIELD_SEP,
    INDEX_KEY,
    LINE_END,
    LISTING_PATH_WIDTH,
    LISTING_SIZE_WIDTH,
    MAX_U32,
    PCK_EXT,
)
from .errors import (
    ArchiveIOError,
    CatalogNotFoundError,
    CatDatError,
    EntryNotFoundError,
    InvalidSourceError,
    TruncatedDataError,
)
from .pathutil import base_name, join_under
from . import pck


PathLike = Union[str, "os.PathLike[str]"]

# Index text is stored as raw bytes; surrogateescape keeps non-UTF-8 names lossless.
_PATH_ENCODING = "utf-8"
_PATH_ERRORS = "surrogateescape"


@dataclass
class IndexEntry:
    path: str
    offset: int
    size: int

    def matches(self, name: str, strict_match: bool = False) -> bool:
        if strict_match:
            return self.path == name
        return base_name(self.path) == base_name(name)


def _decode_text(raw: bytes) -> str:
    return raw.decode(_PATH_ENCODING, _PATH_ERRORS)


def _encode_text(text: str) -> bytes:
    return text.encode(_PATH_ENCODING, _PATH_ERRORS)


def parse_index(decoded: bytes) -> Tuple[str, List[IndexEntry]]:
    """Split a decoded index into the blob name and its entries.

    Only newline-terminated lines count. Each entry line is split at its last
    space; lines without a space or without a decimal size are skipped.
    Offsets are the running total of the preceding sizes.
    """
    lines = decoded.split(bytes([LINE_END]))
    complete = lines[:-1]
    if not complete:
        return "", []
    header = _decode_text(complete[0])
    entries: List[IndexEntry] = []
    offset = 0
    for line in complete[1:]:
        sep = line.rfind(bytes([FIELD_SEP]))
        if sep < 0:
            continue
        size_txt = line[sep + 1:].strip()
        if not size_txt.isdigit():
            continue
        size = int(size_txt)
        if size > MAX_U32:
            continue
        entries.append(IndexEntry(path=_decode_text(line[:sep]), offset=offset, size=size))
        offset += size
    return header, entries


def resolve_data_path(index_path: str, embedded: str) -> str:
    """Pick the blob file for a catalog.

    Some shipped catalogs name a blob that does not exist, so the embedded
    name is tried first, then the catalog's own stem with the blob extension,
    and finally the embedded name is returned unchanged.
    """
    if embedded and os.path.exists(embedded):
        return embedded
    sibling = os.path.splitext(index_path)[0] + DAT_EXT
    if os.path.exists(sibling):
        return sibling
    return embedded


def _sort_key(rel: str) -> List[str]:
    # Component-wise ordering, so "a/x" sorts before "a b/x"
    return rel.split("/")


def _enumerate_files(src: str, skip: Tuple[str, ...] = ()) -> List[Tuple[str, str]]:
    """Collect (relative posix path, full path) for every regular file below ``src``.

    Paths listed in ``skip`` (absolute) are left out, so a catalog built into
    its own source tree does not swallow itself.
    """
    found: List[Tuple[str, str]] = []
    for root, dirnames, filenames in os.walk(src, onerror=_raise_walk_error):
        dirnames.sort()
        for fn in filenames:
            full = os.path.join(root, fn)
            if not os.path.isfile(full) or os.path.abspath(full) in skip:
                continue
            rel = os.path.relpath(full, start=src).replace(os.sep, "/")
            found.append((rel, full))
    found.sort(key=lambda item: _sort_key(item[0]))
    return found


def _raise_walk_error(exc: OSError) -> None:
    raise ArchiveIOError(f"Could not open directory {exc.filename}: {exc.strerror}")


class Catalog:
    """One .cat index and the .dat blob it describes.

    Every public operation returns a success flag (or ``None`` for lookups)
    and records the failure in ``last_error`` instead of raising. No file is
    kept open between calls.
    """

    def __init__(
        self,
        index_path: Optional[PathLike] = None,
        *,
        index_key: int = INDEX_KEY,
        data_key: int = DATA_KEY,
        block_size: int = DEFAULT_BLOCK_SIZE,
    ):
        self.index_path: str = ""
        self.data_path: str = ""
        self.entries: List[IndexEntry] = []
        self.raw_index: bytes = b""
        self.index_key = index_key
        self.data_key = data_key
        self.block_size = max(1, int(block_size))
        self.last_error: Optional[Exception] = None
        self.last_output: Optional[str] = None
        if index_path is not None:
            self.parse(index_path)

    def __repr__(self) -> str:
        return f"Catalog({self.index_path!r}, entries={len(self.entries)})"

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[IndexEntry]:
        return iter(self.entries)

    @property
    def loaded(self) -> bool:
        return bool(self.index_path)

    def _guard(self, op, *args, **kwargs) -> bool:
        self.last_error = None
        try:
            op(*args, **kwargs)
        except (CatDatError, OSError) as exc:
            self.last_error = exc
            return False
        return True

    # -------- parse --------

    def parse(self, index_path: PathLike) -> bool:
        """Decode an index file and rebuild the entry list."""
        return self._guard(self._load, os.fspath(index_path))

    def _load(self, index_path: str) -> None:
        try:
            with open(index_path, "rb") as f:
                encoded = f.read()
        except OSError as exc:
            raise CatalogNotFoundError(f"Could not read catalog {index_path}: {exc}")
        if not encoded:
            raise CatalogNotFoundError(f"Catalog {index_path} is empty")
        decoded, _ = xor_index(encoded, self.index_key)
        header, entries = parse_index(decoded)
        self.index_path = index_path
        self.data_path = resolve_data_path(index_path, header)
        self.entries = entries
        self.raw_index = decoded

    # -------- lookup --------

    def file_list(self) -> List[str]:
        return [e.path for e in self.entries]

    def find_entry(self, name: str, strict_match: bool = False) -> Optional[IndexEntry]:
        for e in self.entries:
            if e.matches(name, strict_match):
                return e
        return None

    def has_file(self, name: str, strict_match: bool = False) -> bool:
        return self.find_entry(name, strict_match) is not None

    # -------- build --------

    def build(self, source_dir: PathLike, new_index_path: PathLike) -> bool:
        """Pack every file below ``source_dir`` into a new .cat/.dat pair.

        On success the catalog is loaded from the new index, exactly as if
        ``parse`` had been called on it.
        """
        return self._guard(self._build, os.fspath(source_dir), os.fspath(new_index_path))

    def _build(self, src: str, cat_path: str) -> None:
        if not os.path.exists(src):
            raise CatalogNotFoundError(f"{src} does not exist")
        if not os.path.isdir(src):
            raise InvalidSourceError(f"{src} is not a directory")

        dat_path = os.path.splitext(cat_path)[0] + DAT_EXT
        # Open both outputs before the walk so a bad destination fails fast
        try:
            cat_f = open(cat_path, "wb")
        except OSError as exc:
            raise ArchiveIOError(f"Could not open {cat_path} for writing: {exc}")
        with cat_f:
            try:
                dat_f = open(dat_path, "wb")
            except OSError as exc:
                raise ArchiveIOError(f"Could not open {dat_path} for writing: {exc}")
            with dat_f:
                files = _enumerate_files(src, skip=(os.path.abspath(cat_path), os.path.abspath(dat_path)))
                cipher = IndexCipher(self.index_key)
                cat_f.write(cipher.encode(_encode_text(os.path.basename(dat_path) + "\n")))
                running = 0
                for rel, full in files:
                    # One index line per file; a newline in the name would split it
                    if "\n" in rel:
                        raise InvalidSourceError(f"{rel!r}: file names may not contain a newline")
                    size = os.path.getsize(full)
                    if running + size > MAX_U32:
                        raise InvalidSourceError(f"{rel}: archive data would exceed 4 GiB")
                    cat_f.write(cipher.encode(_encode_text(f"{rel} {size}\n")))
                    written = self._write_member(dat_f, full)
                    if written != size:
                        raise ArchiveIOError(f"{rel} changed size while packing ({size} -> {written})")
                    running += size
        self._load(cat_path)

    def _write_member(self, dat_f: BinaryIO, full: str) -> int:
        written = 0
        with open(full, "rb") as rf:
            while True:
                buf = rf.read(self.block_size)
                if not buf:
                    break
                dat_f.write(xor_data(buf, self.data_key))
                written += len(buf)
        return written

    # -------- extraction --------

    def extract_one(
        self,
        name: str,
        output_path: PathLike,
        strict_match: bool = False,
        auto_unpack: bool = False,
    ) -> bool:
        """Decode the first entry matching ``name`` into ``output_path``.

        Loose matching compares only final path components; strict matching
        compares full archive paths. With ``auto_unpack`` a gzip payload is
        decompressed and a ``.pck`` output suffix replaced by the detected
        content extension; the path written ends up in ``last_output``.
        """
        self.last_output = None
        return self._guard(self._extract_one, name, os.fspath(output_path), strict_match, auto_unpack)

    def _extract_one(self, name: str, out: str, strict_match: bool, auto_unpack: bool) -> None:
        if not out:
            raise ArchiveIOError("No output path given")
        entry = self.find_entry(name, strict_match)
        if entry is None:
            raise EntryNotFoundError(f"Could not find file {name} in catalog {self.index_path}")

        parent = os.path.dirname(out)
        if parent:
            try:
                os.makedirs(parent, exist_ok=True)
            except OSError as exc:
                raise ArchiveIOError(f"Failed to create directory {parent}: {exc}")

        try:
            df = open(self.data_path, "rb")
        except OSError as exc:
            raise ArchiveIOError(f"Could not open data file {self.data_path}: {exc}")
        with df:
            df.seek(entry.offset)
            if auto_unpack:
                payload = b"".join(self._iter_decoded(df, entry))
                if pck.is_compressed(payload):
                    payload = pck.unpack(payload)
                    if out.lower().endswith(PCK_EXT):
                        out = out[: -len(PCK_EXT)] + pck.detect_extension(payload)
                with open(out, "wb") as wf:
                    wf.write(payload)
            else:
                with open(out, "wb") as wf:
                    for chunk in self._iter_decoded(df, entry):
                        wf.write(chunk)
        self.last_output = out

    def _iter_decoded(self, df: BinaryIO, entry: IndexEntry) -> Iterator[bytes]:
        remaining = entry.size
        while remaining > 0:
            buf = df.read(min(self.block_size, remaining))
            if not buf:
                raise TruncatedDataError(
                    f"{self.data_path}: {entry.path} is truncated ({remaining} of {entry.size} bytes missing)"
                )
            remaining -= len(buf)
            yield xor_data(buf, self.data_key)

    def extract_all(self, output_dir: PathLike, auto_unpack: bool = False) -> bool:
        """Extract every entry below ``output_dir``; stops at the first failure."""
        return self._guard(self._extract_all, os.fspath(output_dir), auto_unpack)

    def _extract_all(self, out_dir: str, auto_unpack: bool) -> None:
        for entry in self.entries:
            try:
                target = join_under(out_dir, entry.path)
            except ValueError as exc:
                raise InvalidSourceError(f"Refusing to extract {entry.path!r}: {exc}")
            parent = os.path.dirname(target)
            try:
                os.makedirs(parent, exist_ok=True)
            except OSError as exc:
                raise ArchiveIOError(f"Failed to create directory {parent}: {exc}")
            self._extract_one(entry.path, target, True, auto_unpack)

    # -------- diagnostics --------

    def get_index_listing(self) -> str:
        parts = [f"{self.index_path}\n"]
        for e in self.entries:
            parts.append(f"\t{e.path:<{LISTING_PATH_WIDTH}}{e.size:>{LISTING_SIZE_WIDTH}}\n")
        return "".join(parts)

    def decrypt_to_file(self, path: PathLike) -> bool:
        """Write the decoded index text (header and entry lines) to ``path``."""
        return self._guard(self._decrypt_to_file, os.fspath(path))

    def _decrypt_to_file(self, path: str) -> None:
        with open(path, "wb") as f:
            f.write(self.raw_index)
