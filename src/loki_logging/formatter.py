"""
Renderers turning a record's field mapping into its line text
"""

import base64
import dataclasses
import json
from abc import ABC, abstractmethod
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from enum import Enum
from pathlib import PurePath
from typing import Any, Dict, Mapping
from uuid import UUID

from .exceptions import RenderError


class FieldEncoder(json.JSONEncoder):
    """JSON encoder for the common non-JSON types found in log fields"""

    def default(self, obj: Any) -> Any:
        """Convert objects to JSON-serializable formats"""
        if isinstance(obj, (datetime, date, time)):
            return obj.isoformat()
        if isinstance(obj, timedelta):
            return obj.total_seconds()
        if isinstance(obj, (Decimal, UUID, PurePath)):
            return str(obj)
        if isinstance(obj, Enum):
            return obj.value
        if isinstance(obj, (set, frozenset)):
            try:
                return sorted(obj)
            except TypeError:
                return list(obj)
        if isinstance(obj, (bytes, bytearray)):
            return base64.b64encode(bytes(obj)).decode("ascii")
        if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
            return dataclasses.asdict(obj)
        return super().default(obj)


class LineRenderer(ABC):
    """Base class for line renderers"""

    @abstractmethod
    def render(self, data: Mapping[str, Any]) -> str:
        """Render a field mapping to a line, raising RenderError on failure"""


class JSONLineRenderer(LineRenderer):
    """Render fields as a JSON object with sorted keys"""

    def __init__(self, indent: Any = 4, compact: bool = False):
        self.indent = None if compact else indent
        self.separators = (",", ":") if compact else None

    def render(self, data: Mapping[str, Any]) -> str:
        try:
            return json.dumps(
                data,
                cls=FieldEncoder,
                indent=self.indent,
                separators=self.separators,
                sort_keys=True,
                ensure_ascii=False,
            )
        except (TypeError, ValueError, RecursionError) as e:
            raise RenderError(f"unable to marshal log data: {e}") from e


class LogfmtLineRenderer(LineRenderer):
    """Render fields as ``key=value`` pairs, ``level`` first"""

    def _format_value(self, value: Any) -> str:
        """Convert a single value to its logfmt representation"""
        if value is None:
            return ""
        if isinstance(value, bool):
            return "true" if value else "false"
        if isinstance(value, (dict, list, tuple)):
            text = json.dumps(value, cls=FieldEncoder, separators=(",", ":"))
        elif isinstance(value, str):
            text = value
        else:
            encoded = FieldEncoder().encode(value)
            text = encoded[1:-1] if encoded.startswith('"') else encoded

        if not text or any(c in text for c in ' ="\n\t'):
            return json.dumps(text, ensure_ascii=False)
        return text

    def render(self, data: Mapping[str, Any]) -> str:
        keys = list(data.keys())
        if "level" in data:
            keys.remove("level")
            keys.insert(0, "level")

        parts = []
        try:
            for key in keys:
                if not isinstance(key, str):
                    raise TypeError(f"keys must be str, not {type(key).__name__}")
                parts.append(f"{key}={self._format_value(data[key])}")
        except (TypeError, ValueError, RecursionError) as e:
            raise RenderError(f"unable to marshal log data: {e}") from e
        return " ".join(parts)


_RENDERERS: Dict[str, Any] = {
    "json": lambda: JSONLineRenderer(indent=4),
    "compact": lambda: JSONLineRenderer(compact=True),
    "logfmt": LogfmtLineRenderer,
}


def get_renderer(line_format: str) -> LineRenderer:
    """Create the renderer for a configured line format"""
    try:
        factory = _RENDERERS[line_format]
    except KeyError:
        raise ValueError(f"Unknown line format: {line_format}") from None
    return factory()
