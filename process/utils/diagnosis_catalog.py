# process/utils/diagnosis_catalog.py

from types import MappingProxyType
from typing import Iterator, Mapping, Optional


class DiagnosisCatalog(Mapping):
    """
    Read-only CIE-10 lookup (code -> name).

    Built once at start-up and handed to whoever needs descriptions.
    Codes are matched upper-cased and trimmed.
    """

    def __init__(self, entries: Optional[Mapping[str, str]] = None):
        cleaned = {}
        for code, name in (entries or {}).items():
            key = self.normalize_code(code)
            if key and name:
                cleaned[key] = str(name).strip()
        self._entries = MappingProxyType(cleaned)

    @staticmethod
    def normalize_code(code) -> str:
        return str(code or "").strip().upper()

    def describe(self, code) -> Optional[str]:
        return self._entries.get(self.normalize_code(code))

    def __getitem__(self, code):
        return self._entries[self.normalize_code(code)]

    def __contains__(self, code):
        return self.normalize_code(code) in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self):
        return f"DiagnosisCatalog({len(self)} codes)"
