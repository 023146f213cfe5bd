# Overview: In-memory search and category filtering over the loaded product list.

"""
Catalog view filtering.

The console loads every product and filters in memory. A product passes when

    (query is empty OR query is a case-insensitive substring of name or description)
    AND (category is empty OR product.category == category)

Input order is preserved. CatalogView.state tells the caller whether there
is nothing in the catalog at all ("empty") or nothing matches ("no_match").
"""
from __future__ import annotations

from dataclasses import dataclass


STATE_EMPTY = "empty"
STATE_NO_MATCH = "no_match"
STATE_OK = "ok"


@dataclass(frozen=True)
class CatalogView:
    items: list[dict]
    total: int

    @property
    def state(self) -> str:
        if self.total == 0:
            return STATE_EMPTY
        if not self.items:
            return STATE_NO_MATCH
        return STATE_OK

    def to_dict(self) -> dict:
        return {
            "items": self.items,
            "count": len(self.items),
            "total": self.total,
            "state": self.state,
        }


def matches(product: dict, query: str | None = None, category: str | None = None) -> bool:
    if query:
        needle = query.lower()
        name = (product.get("name") or "").lower()
        description = (product.get("description") or "").lower()
        if needle not in name and needle not in description:
            return False
    if category and product.get("category") != category:
        return False
    return True


def filter_products(products: list[dict], query: str | None = "", category: str | None = "") -> CatalogView:
    items = [p for p in products if matches(p, query, category)]
    return CatalogView(items=items, total=len(products))


def list_categories(products: list[dict]) -> list[str]:
    """Distinct non-empty categories, in first-seen order."""
    seen: dict[str, None] = {}
    for p in products:
        if p.get("category"):
            seen.setdefault(p["category"], None)
    return list(seen)
