"""Shopping cart pricing: line merging, totals and the shipping tier rule."""
import json
import logging
import os
from typing import List, Optional, Dict, Protocol

from pydantic import TypeAdapter

from config import FREE_SHIPPING_THRESHOLD, FLAT_SHIPPING_COST
from schemas import CartLineItem

logger = logging.getLogger("footballshop.cart")

_lines_adapter = TypeAdapter(List[CartLineItem])


def calculate_shipping_cost(total: int, threshold: int = FREE_SHIPPING_THRESHOLD,
                            flat_fee: int = FLAT_SHIPPING_COST) -> int:
    """Free shipping from ``threshold`` upwards (inclusive), otherwise a flat fee."""
    if total >= threshold:
        return 0
    return flat_fee


def variant_key(variant: Optional[Dict[str, str]]) -> str:
    # empty selection and no selection are the same line
    return json.dumps(variant or None, sort_keys=True, ensure_ascii=False)


class CartStore(Protocol):
    def load(self) -> List[CartLineItem]: ...

    def save(self, items: List[CartLineItem]) -> None: ...


class MemoryCartStore:
    def __init__(self, items: Optional[List[CartLineItem]] = None):
        self._items = [i.model_copy() for i in items or []]

    def load(self) -> List[CartLineItem]:
        return [i.model_copy() for i in self._items]

    def save(self, items: List[CartLineItem]) -> None:
        self._items = [i.model_copy() for i in items]


class JsonFileCartStore:
    """Keeps the cart in a local JSON file so it survives restarts."""

    def __init__(self, path: str):
        self.path = path

    def load(self) -> List[CartLineItem]:
        if not os.path.exists(self.path):
            return []
        with open(self.path, "rb") as fh:
            raw = fh.read()
        if not raw.strip():
            return []
        return _lines_adapter.validate_json(raw)

    def save(self, items: List[CartLineItem]) -> None:
        tmp_path = self.path + ".tmp"
        with open(tmp_path, "wb") as fh:
            fh.write(_lines_adapter.dump_json(items))
        os.replace(tmp_path, self.path)


class ShoppingCart:
    def __init__(self, store: CartStore, free_shipping_threshold: int = FREE_SHIPPING_THRESHOLD,
                 flat_shipping: int = FLAT_SHIPPING_COST):
        self.store = store
        self.free_shipping_threshold = free_shipping_threshold
        self.flat_shipping = flat_shipping
        self.items: List[CartLineItem] = store.load()

    def _persist(self) -> None:
        self.store.save(self.items)

    def add_item(self, item: CartLineItem) -> CartLineItem:
        key = variant_key(item.variant)
        for line in self.items:
            if line.id == item.id and variant_key(line.variant) == key:
                line.quantity += item.quantity
                logger.debug("Merged product %s into existing line (qty=%s)", item.id, line.quantity)
                self._persist()
                return line
        line = item.model_copy(update={"variant": item.variant or None})
        self.items.append(line)
        logger.debug("Added line for product %s (qty=%s)", item.id, item.quantity)
        self._persist()
        return line

    def update_item_quantity(self, product_id: int, quantity: int) -> None:
        # Keyed by product id only: every variant line of the product gets the new quantity.
        quantity = max(int(quantity), 1)
        for line in self.items:
            if line.id == product_id:
                line.quantity = quantity
        self._persist()

    def remove_item(self, product_id: int) -> None:
        self.items = [line for line in self.items if line.id != product_id]
        self._persist()

    def clear_cart(self) -> None:
        self.items = []
        self._persist()

    @property
    def total_price(self) -> int:
        return sum(line.price * line.quantity for line in self.items)

    @property
    def shipping_cost(self) -> int:
        return calculate_shipping_cost(self.total_price, self.free_shipping_threshold, self.flat_shipping)

    def totals(self) -> Dict[str, int]:
        subtotal = self.total_price
        shipping = self.shipping_cost
        return {"subtotal": subtotal, "shipping": shipping, "total": subtotal + shipping}
