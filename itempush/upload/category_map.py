"""
Static lookup from category keys to platform category identifiers.
"""

from typing import Dict, List, Mapping, Optional

from .exceptions import ConfigurationError


DEFAULT_CATEGORIES = {
    "hair": "61681e66ec485e4a0df0d476",
    "top": "DR_TOP_01",
    "bottom": "DR_PANTS_01",
    "dress": "DR_DRESS_01",
    "shoes": "SH_SHOES_01",
}


class CategoryMap:
    """Read-only category key -> platform category id mapping"""

    def __init__(self, mapping: Optional[Mapping[str, str]] = None):
        source = DEFAULT_CATEGORIES if mapping is None else mapping
        empty = [key for key, value in source.items() if not value or not str(value).strip()]
        if empty:
            raise ConfigurationError(
                f"Categories without a platform id: {', '.join(sorted(empty))}"
            )
        self._mapping: Dict[str, str] = {str(k).lower(): str(v) for k, v in source.items()}

    def resolve(self, key: Optional[str]) -> Optional[str]:
        """Return the platform category id, or None for unknown keys"""
        if not key:
            return None
        return self._mapping.get(key.strip().lower())

    def keys(self) -> List[str]:
        return list(self._mapping.keys())

    def items(self):
        return list(self._mapping.items())

    def __contains__(self, key: str) -> bool:
        return self.resolve(key) is not None

    def __len__(self) -> int:
        return len(self._mapping)
