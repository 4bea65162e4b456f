from __future__ import annotations
import json
import os
import tempfile
from typing import Any, Dict, List

from .errors import IOCorruptionError


def check_document(obj: Any, source: str) -> Dict[str, List[Dict[str, Any]]]:
    """
    Top-level object: collection name -> array of objects (records).
    """
    if not isinstance(obj, dict):
        raise IOCorruptionError(f"{source}: top-level JSON value must be an object")
    for name, records in obj.items():
        if not isinstance(records, list):
            raise IOCorruptionError(f"{source}: collection '{name}' must be an array")
        for i, rec in enumerate(records):
            if not isinstance(rec, dict):
                raise IOCorruptionError(f"{source}: record {i} of collection '{name}' must be an object")
    return obj


def read_document(path: str) -> Dict[str, List[Dict[str, Any]]]:
    with open(path, "r", encoding="utf-8") as f:
        text = f.read()
    if not text.strip():
        return {}
    try:
        obj = json.loads(text)
    except json.JSONDecodeError as e:
        raise IOCorruptionError(f"{path}: invalid JSON ({e})") from e
    return check_document(obj, path)


def write_document(path: str, data: Dict[str, Any], *, pretty: bool = False, indent: int = 2) -> None:
    """
    Serialize `data` into a temp file next to `path`, then atomically replace `path`.
    """
    directory = os.path.dirname(os.path.abspath(path))
    os.makedirs(directory, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(prefix=".tmp-", suffix=".json", dir=directory)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(data, f, ensure_ascii=False, indent=indent if pretty else None)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, path)
    except BaseException:
        if os.path.exists(tmp_path):
            os.unlink(tmp_path)
        raise


class FileStorage:
    """
    Backing file of a Database: a single JSON document holding all collections.
    """
    def __init__(self, path: str, *, pretty: bool = False, indent: int = 2) -> None:
        self.path = path
        self.pretty = pretty
        self.indent = indent

    def exists(self) -> bool:
        return os.path.isfile(self.path)

    def read(self) -> Dict[str, List[Dict[str, Any]]]:
        # An absent file is an empty database; it is created on first write
        if not self.exists():
            return {}
        return read_document(self.path)

    def write(self, data: Dict[str, Any]) -> None:
        write_document(self.path, data, pretty=self.pretty, indent=self.indent)

    def write_to(self, path: str, data: Dict[str, Any]) -> None:
        write_document(path, data, pretty=self.pretty, indent=self.indent)
