"""Portable column types."""

import json
from typing import Any, Optional

from sqlalchemy import Text
from sqlalchemy.types import TypeDecorator


class StringList(TypeDecorator):
    """Ordered list of strings stored as a JSON array in a text column.

    Callers only ever see ``list[str]``; the encoding stays at the storage
    boundary.
    """

    impl = Text
    cache_ok = True

    def process_bind_param(self, value: Optional[list[str]], dialect: Any) -> str:
        return json.dumps([str(item) for item in (value or [])])

    def process_result_value(self, value: Optional[str], dialect: Any) -> list[str]:
        if not value:
            return []
        decoded = json.loads(value)
        if not isinstance(decoded, list):
            return []
        return [str(item) for item in decoded]
