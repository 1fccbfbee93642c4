"""
Profile Service - Response Code Table
======================================

What:  Process-wide, read-only mapping from numeric response code to its
       default human-readable message.
How:   Loaded once from the packaged response_codes.json at import time.
       Read-only for the lifetime of the process.
"""

import json
from importlib import resources
from types import MappingProxyType
from typing import Mapping

FALLBACK_CODE = 500


class ResponseCodes:
    """Immutable lookup of default envelope messages, keyed by code."""

    def __init__(self, table: Mapping[str, str]):
        self._table = MappingProxyType(dict(table))

    @classmethod
    def load(cls, resource: str = "response_codes.json") -> "ResponseCodes":
        raw = resources.files("profile_service").joinpath(resource).read_text(encoding="utf-8")
        return cls(json.loads(raw))

    def message(self, code: int) -> str:
        """Default message for `code`; unknown codes get the 500 message."""
        return self._table.get(str(code), self._table.get(str(FALLBACK_CODE), "Internal Server Error"))

    def __contains__(self, code: object) -> bool:
        return str(code) in self._table

    def as_dict(self) -> dict:
        return dict(self._table)


# Singleton instance, loaded once at startup
response_codes = ResponseCodes.load()
