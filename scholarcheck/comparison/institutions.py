"""Institutional abbreviation directory.

Resolves a college, department, or university-unit value printed on a
document (either its code such as ``ICS`` or its full name) to both
forms so that abbreviated and spelled-out values can be compared.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from types import MappingProxyType
from typing import Any

import yaml

from scholarcheck.utils.logger import get_logger

from .fuzzy import fuzzy_match, normalize

logger = get_logger(__name__)

RESOLVE_THRESHOLD = 0.85
DEFAULT_INSTITUTIONS_PATH = Path(__file__).parent / "institutions.yaml"


@dataclass(frozen=True)
class ResolvedUnit:
    """Normalized code and full name of an institutional unit."""

    code: str
    full_name: str


class InstitutionDirectory:
    """Immutable bidirectional code/full-name lookup.

    Args:
        entries: Iterable of ``(code, full_name)`` pairs.
    """

    def __init__(self, entries: list[tuple[str, str]]) -> None:
        by_code: dict[str, str] = {}
        by_name: dict[str, str] = {}
        for code, full_name in entries:
            code_key = normalize(code)
            name_key = normalize(full_name)
            by_code[code_key] = name_key
            by_name[name_key] = code_key
        self._by_code: Mapping[str, str] = MappingProxyType(by_code)
        self._by_name: Mapping[str, str] = MappingProxyType(by_name)

    def __len__(self) -> int:
        return len(self._by_code)

    @property
    def codes(self) -> Mapping[str, str]:
        return self._by_code

    @property
    def full_names(self) -> Mapping[str, str]:
        return self._by_name

    def resolve(self, value: Any) -> ResolvedUnit | None:
        """Resolve a code or full name to both forms.

        Tries an exact code lookup, then an exact full-name lookup, then a
        fuzzy match against every full name to absorb OCR typos.

        Args:
            value: Code or full name as printed or entered.

        Returns:
            The resolved unit, or ``None`` when nothing matches.
        """
        if not value:
            return None
        key = normalize(value)
        if not key:
            return None
        if key in self._by_code:
            return ResolvedUnit(code=key, full_name=self._by_code[key])
        if key in self._by_name:
            return ResolvedUnit(code=self._by_name[key], full_name=key)
        for full_name, code in self._by_name.items():
            if fuzzy_match(key, full_name) >= RESOLVE_THRESHOLD:
                return ResolvedUnit(code=code, full_name=full_name)
        return None


def _entries_from_data(data: dict[str, Any]) -> list[tuple[str, str]]:
    entries: list[tuple[str, str]] = []
    for item in data.get("colleges") or []:
        entries.append((item["code"], item["name"]))
    for departments in (data.get("departments") or {}).values():
        for item in departments or []:
            entries.append((item["code"], item["name"]))
    for item in data.get("units") or []:
        entries.append((item["code"], item["name"]))
    return entries


def load_directory(path: Path | None = None) -> InstitutionDirectory:
    """Build a directory from YAML reference data.

    Args:
        path: YAML file with ``colleges``, ``departments`` and ``units``.
            Defaults to the data packaged with this module.

    Returns:
        Populated directory.
    """
    if path is None:
        raw = DEFAULT_INSTITUTIONS_PATH.read_text(encoding="utf-8")
        source = "packaged reference data"
    else:
        raw = Path(path).read_text(encoding="utf-8")
        source = str(path)

    data = yaml.safe_load(raw) or {}
    directory = InstitutionDirectory(_entries_from_data(data))
    logger.info("Loaded %d institutional units from %s", len(directory), source)
    return directory


@lru_cache(maxsize=1)
def get_directory(path: str | None = None) -> InstitutionDirectory:
    """Return the process-wide directory, loading it on first use."""
    return load_directory(Path(path) if path else None)
