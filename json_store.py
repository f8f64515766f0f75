from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


def temp_prefix(path: Path) -> str:
    return f".{path.name}."


TEMP_SUFFIX = ".tmp"


def read_json(path: Path) -> Any | None:
    """
    Read JSON from disk.

    Returns None for missing or empty files. Invalid JSON raises
    json.JSONDecodeError; callers decide what a broken file means.
    """
    if not path.exists():
        return None
    raw = path.read_text(encoding="utf-8")
    if not raw.strip():
        return None
    return json.loads(raw)


def dumps_json(payload: Any, *, indent: int = 2, sort_keys: bool = True) -> str:
    return json.dumps(payload, indent=indent, sort_keys=sort_keys, ensure_ascii=False) + "\n"


def atomic_write_json(path: Path, payload: Any, *, indent: int = 2, sort_keys: bool = True) -> None:
    """
    Atomically write JSON to disk by writing to a temp file then replacing.

    The temp file lives in the same directory as the target so os.replace
    stays a single rename on the same filesystem. It is fsynced before the
    replace and removed on every path out of this function.
    """
    text = dumps_json(payload, indent=indent, sort_keys=sort_keys)
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=temp_prefix(path), suffix=TEMP_SUFFIX, dir=path.parent)
    tmp_path = Path(tmp_name)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(text)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, path)
    finally:
        if tmp_path.exists():
            try:
                tmp_path.unlink()
            except OSError as e:
                logger.warning("JSON WRITE: could not remove temp file %s: %r", tmp_path, e)
    _fsync_dir(path.parent)


def _fsync_dir(directory: Path) -> None:
    # The rename is already visible at this point; a failure here only weakens
    # durability across power loss, so it is logged and not raised.
    try:
        dir_fd = os.open(directory, os.O_RDONLY)
    except OSError as e:
        logger.debug("JSON WRITE: cannot open %s for fsync: %r", directory, e)
        return
    try:
        os.fsync(dir_fd)
    except OSError as e:
        logger.warning("JSON WRITE: directory fsync failed for %s: %r", directory, e)
    finally:
        os.close(dir_fd)
