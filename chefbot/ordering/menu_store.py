# chefbot/ordering/menu_store.py
from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from .domain import MenuItem
from .matcher import default_synonyms, merge_synonyms

logger = logging.getLogger(__name__)

# Resolve the menu file:
# 1) MENU_PATH env var if set
# 2) otherwise "<repo_root>/data/menu.json"
_THIS_FILE = Path(__file__).resolve()
PROJECT_ROOT = _THIS_FILE.parents[2]
DEFAULT_MENU_PATH = PROJECT_ROOT / "data" / "menu.json"

_CURRENCY_SYMBOLS = {"BRL": "R$", "GBP": "£", "USD": "$", "EUR": "€"}


def currency_symbol(code: str) -> str:
    return _CURRENCY_SYMBOLS.get((code or "").upper(), (code or "").upper())


def _items_from_menu(menu: Dict[str, Any]) -> List[MenuItem]:
    """
    Supports both schemas:
    - menu["items"] top-level (category taken from item["category"])
    - nested categories[*]["items"] (category taken from the parent)
    """
    out: List[MenuItem] = []

    def _add(raw: Dict[str, Any], category: str) -> None:
        iid = str(raw.get("id") or "").strip()
        name = str(raw.get("name") or "").strip()
        if not iid or not name:
            return
        price = raw.get("price", raw.get("base_price", 0))
        out.append(
            MenuItem(
                id=iid,
                name=name,
                description=str(raw.get("description") or ""),
                price=price,
                category=str(raw.get("category") or category or ""),
                available=bool(raw.get("available", True)),
            )
        )

    for c in menu.get("categories") or []:
        if not isinstance(c, dict):
            continue
        cname = str(c.get("name") or "").strip()
        for it in c.get("items") or []:
            if isinstance(it, dict):
                _add(it, cname)

    for it in menu.get("items") or []:
        if isinstance(it, dict):
            _add(it, "")

    return out


class StaticCatalog:
    """Catalog over an in-memory list (also what JsonMenuCatalog builds)."""

    def __init__(
        self,
        items: Iterable[MenuItem],
        synonyms: Optional[Dict[str, List[str]]] = None,
        currency: str = "BRL",
        name: str = "",
    ) -> None:
        self._items = list(items)
        self._synonyms = synonyms if synonyms is not None else default_synonyms()
        self.currency = currency
        self.name = name

    def list_available_items(self) -> List[MenuItem]:
        return [it for it in self._items if it.available]

    def all_items(self) -> List[MenuItem]:
        return list(self._items)

    def synonyms(self) -> Dict[str, List[str]]:
        return self._synonyms

    def categories(self) -> List[str]:
        seen: List[str] = []
        for it in self._items:
            if it.category and it.category not in seen:
                seen.append(it.category)
        return seen

    @property
    def currency_symbol(self) -> str:
        return currency_symbol(self.currency)


class JsonMenuCatalog(StaticCatalog):
    def __init__(self, path: Optional[Path] = None) -> None:
        self.path = Path(path or os.getenv("MENU_PATH", str(DEFAULT_MENU_PATH))).resolve()
        menu = load_menu_file(self.path)
        meta = menu.get("meta") or {}
        super().__init__(
            _items_from_menu(menu),
            synonyms=merge_synonyms(meta.get("synonyms")),
            currency=str(meta.get("currency") or "BRL"),
            name=str(meta.get("name") or ""),
        )
        logger.info("Loaded %d menu items from %s", len(self._items), self.path)


def load_menu_file(path: Path) -> Dict[str, Any]:
    if not path.exists():
        raise FileNotFoundError(f"Menu file not found: {path}")
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in {path}: {e}") from e
    if not isinstance(data, dict):
        raise ValueError(f"Menu in {path} must be a JSON object")
    return data
