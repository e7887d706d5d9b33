"""Append-only JSON-lines log of the objects a job handles."""

from __future__ import annotations

import base64
import dataclasses
import json
import threading
from datetime import datetime
from typing import Any

_UNSAFE_JSON = (
    ("<", "\\u003c"),
    (">", "\\u003e"),
    ("&", "\\u0026"),
    ("\u2028", "\\u2028"),
    ("\u2029", "\\u2029"),
)


def _json_default(obj: Any) -> Any:
    """Turn package objects into values the json module can encode."""
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return {
            f.name: getattr(obj, f.name)
            for f in dataclasses.fields(obj)
            if not f.name.startswith("_")
        }
    if isinstance(obj, (bytes, bytearray)):
        return base64.b64encode(bytes(obj)).decode("ascii")
    if isinstance(obj, datetime):
        return obj.isoformat()
    if isinstance(obj, (set, frozenset)):
        return list(obj)
    to_dict = getattr(obj, "to_dict", None)
    if callable(to_dict):
        return to_dict()
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def _dumps(obj: Any) -> str:
    """Compact JSON with characters unsafe in HTML escaped."""
    text = json.dumps(obj, default=_json_default, ensure_ascii=False, separators=(",", ":"))
    for char, escaped in _UNSAFE_JSON:
        text = text.replace(char, escaped)
    return text


def _type_name(obj: Any) -> str:
    cls = type(obj)
    package = cls.__module__.split(".")[0]
    return f"{package}.{cls.__qualname__}"


class AuditLogger:
    """Writes one JSON record per line, tagged with the type of the logged object."""

    def __init__(self, filename: str) -> None:
        self.filename = filename
        self._file = open(filename, "a", encoding="utf-8")
        self._lock = threading.Lock()

    def write(self, data: Any) -> None:
        """Append a record for the object.

        Raises ValueError when it cannot be encoded and OSError when the
        log cannot be written.
        """
        record = {"Type": _type_name(data), "Data": data}
        try:
            line = _dumps(record)
        except (TypeError, ValueError, RecursionError) as err:
            raise ValueError(f"could not marshal json data: {err}") from err
        with self._lock:
            try:
                self._file.write(line + "\n")
                self._file.flush()
            except (OSError, ValueError) as err:
                raise OSError(f"could not write json data to audit log: {err}") from err

    def close(self) -> None:
        self._file.close()

    def __enter__(self) -> AuditLogger:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()