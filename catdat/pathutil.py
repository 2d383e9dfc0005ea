from __future__ import annotations

import os


def norm_path(p: str) -> str:
    """Normalize archive paths to a canonical forward-slash form.

    Rules:
    - Convert backslashes to slashes
    - Strip leading/trailing slashes
    - Remove empty and '.' segments
    - Reject '..' segments
    """
    p = p.replace("\\", "/").strip("/")
    parts = [q for q in p.split("/") if q not in ("", ".")]
    for q in parts:
        if q == "..":
            raise ValueError("Path may not contain '..'")
    return "/".join(parts)


def base_name(p: str) -> str:
    """Final component of an archive or filesystem path ('' for a trailing slash)."""
    return p.replace("\\", "/").rsplit("/", 1)[-1]


def join_under(root: str, rel: str) -> str:
    """Join an archive path below ``root``, refusing anything that escapes it."""
    if rel.startswith(("/", "\\")) or (len(rel) > 1 and rel[1] == ":"):
        raise ValueError(f"Absolute path not allowed in archive: {rel}")
    clean = norm_path(rel)
    if not clean:
        raise ValueError("Empty archive path")
    return os.path.join(root, *clean.split("/"))
