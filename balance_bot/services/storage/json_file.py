"""
JSON File Primitives

Every document this project persists goes through these two functions.

Writes are atomic: the payload goes to a uniquely named temp file next to
the target (owner-only permissions), is fsynced, then renamed over the
target. A crash mid-write leaves the previous document intact and readers
never see partial JSON.

These are blocking calls; async callers run them with asyncio.to_thread.
"""

import json
import os
from contextlib import suppress
from pathlib import Path
from typing import Any, Optional, Union
from uuid import uuid4

from balance_bot.services.storage.interface import CorruptDocumentError


FILE_MODE = 0o600

PathLike = Union[str, os.PathLike]


def read_json_document(path: PathLike) -> Optional[Any]:
    """
    Read and parse a JSON document.

    Returns None when the file does not exist. Every other filesystem
    error propagates unchanged.

    Raises:
        CorruptDocumentError: If the file exists but is not valid JSON
    """
    try:
        content = Path(path).read_text(encoding="utf-8")
    except FileNotFoundError:
        return None

    if not content.strip():
        return None
    try:
        return json.loads(content)
    except json.JSONDecodeError as e:
        raise CorruptDocumentError(path, f"invalid JSON ({e.msg} at line {e.lineno})") from e


def atomic_write_json(path: PathLike, data: Any) -> None:
    """Write `data` as pretty-printed JSON, atomically, with mode 0600."""
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    payload = json.dumps(data, indent=2, ensure_ascii=False) + "\n"

    temp_path = target.with_name(f"{target.name}.{uuid4()}.tmp")
    fd = os.open(temp_path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, FILE_MODE)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            fh.write(payload)
            fh.flush()
            os.fsync(fh.fileno())
        # os.open mode is subject to umask
        os.chmod(temp_path, FILE_MODE)
        os.replace(temp_path, target)
    except BaseException:
        with suppress(FileNotFoundError):
            temp_path.unlink()
        raise
