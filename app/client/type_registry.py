"""
Client-local registry of declaration types.

The list offered in forms is the union of the built-in defaults, the types
already stored on the server, and whatever the user added locally. It is
advisory only; the server accepts any type string.
"""
from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Iterable, List, Optional

from app.config import settings
from app.schemas import DEFAULT_DECLARATION_TYPES

logger = logging.getLogger(__name__)


def merge_declaration_types(*sources: Iterable[str]) -> List[str]:
    """Deduplicated, sorted union of every source, blanks dropped."""
    return sorted({t.strip() for source in sources for t in source if t and t.strip()})


class DeclarationTypeRegistry:
    def __init__(self, path: Optional[str] = None, defaults: Iterable[str] = DEFAULT_DECLARATION_TYPES):
        self.path = Path(path or settings.DECLARATION_TYPES_FILE)
        self.defaults = tuple(defaults)
        self.observed: List[str] = []
        self.custom: List[str] = []
        self.removed: List[str] = []
        self._load()

    def _load(self) -> None:
        if not self.path.exists():
            return
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.warning("Ignoring unreadable declaration type file %s: %s", self.path, exc)
            return
        self.custom = merge_declaration_types(data.get("custom", []))
        self.removed = merge_declaration_types(data.get("removed", []))
        self.observed = merge_declaration_types(data.get("observed", []))

    def _save(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        data = {
            "types": self.types(),
            "custom": self.custom,
            "removed": self.removed,
            "observed": self.observed,
        }
        # write beside the target, then swap it in
        tmp = self.path.with_name(self.path.name + ".tmp")
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(data, f, ensure_ascii=False, indent=2)
        os.replace(tmp, self.path)

    def types(self) -> List[str]:
        hidden = set(self.removed)
        merged = merge_declaration_types(self.defaults, self.observed, self.custom)
        return [t for t in merged if t not in hidden]

    def add(self, type_name: str) -> bool:
        value = (type_name or "").strip()
        if not value or value in self.types():
            return False
        self.removed = [t for t in self.removed if t != value]
        self.custom = merge_declaration_types(self.custom, [value])
        self._save()
        return True

    def remove(self, type_name: str) -> bool:
        if type_name not in self.types():
            return False
        self.custom = [t for t in self.custom if t != type_name]
        self.removed = merge_declaration_types(self.removed, [type_name])
        self._save()
        return True

    def refresh(self, observed: Iterable[str]) -> List[str]:
        """Fold in the types seen on the server and persist."""
        self.observed = merge_declaration_types(observed)
        self._save()
        return self.types()
