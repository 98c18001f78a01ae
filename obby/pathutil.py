from __future__ import annotations

import os
from typing import Optional


def name_problem(name: str) -> Optional[str]:
    """Return why ``name`` is unacceptable as an entry name, or None if it is fine.

    Entry names are virtual paths: they must be non-empty, free of NUL, must
    not start with a separator, must not contain a '..' segment and must
    keep at least one segment once empty and '.' segments are dropped.
    """
    if not name:
        return "empty entry name"
    if "\x00" in name:
        return "entry name contains NUL"
    if name[0] in ("/", "\\"):
        return f"entry name '{name}' starts with a path separator"
    parts = name.replace("\\", "/").split("/")
    if ".." in parts:
        return f"entry name '{name}' contains a '..' segment"
    if all(q in ("", ".") for q in parts):
        return f"entry name '{name}' has no path segments"
    return None


def norm_path(p: str) -> str:
    """Normalize entry names to a canonical forward-slash form.

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
    if not parts:
        raise ValueError("Path is empty after normalization")
    return "/".join(parts)


def output_path(outdir: str, name: str) -> str:
    return os.path.join(outdir, *norm_path(name).split("/"))
