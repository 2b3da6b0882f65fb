from __future__ import annotations

import logging
from typing import Callable

from .config import MAX_ITEMS
from .models import CartItem, Notice

logger = logging.getLogger(__name__)

Notify = Callable[[Notice], None]


class Cart:
    """Ordered list of confirmed item names, unique by exact string."""

    def __init__(self, *, notify: Notify, max_items: int = MAX_ITEMS):
        self.max_items = max_items
        self._notify = notify
        self._items: list[CartItem] = []

    @property
    def items(self) -> tuple[CartItem, ...]:
        return tuple(self._items)

    def names(self) -> list[str]:
        return [it.name for it in self._items]

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, name: object) -> bool:
        return any(it.name == name for it in self._items)

    @property
    def is_full(self) -> bool:
        return len(self._items) >= self.max_items

    def add(self, name: str) -> bool:
        if name in self:
            self._notify(Notice("Item already in cart!"))
            return False
        if self.is_full:
            self._notify(Notice(f"Maximum {self.max_items} items allowed"))
            return False

        self._items.append(CartItem(name=name))
        logger.debug("Cart add %r (%d/%d)", name, len(self._items), self.max_items)
        self._notify(Notice("Added to cart!", duration_s=1.5))
        return True

    def remove(self, index: int) -> CartItem:
        if not 0 <= index < len(self._items):
            raise IndexError(f"No cart item at position {index}")
        removed = self._items.pop(index)
        self._notify(Notice("Removed from cart", duration_s=1.5))
        return removed

    def clear(self) -> None:
        self._items.clear()
