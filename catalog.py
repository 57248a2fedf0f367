"""
Catalog query engine.

Every function here is pure: it takes an already fetched product list, never mutates it and returns
a new list. Category slugs are resolved through the category repository passed in by the caller.
"""
from typing import Callable, Dict, List, Optional, Sequence, Protocol

from pydantic import BaseModel, Field

from config import RELATED_PRODUCTS_LIMIT, SEARCH_RESULTS_LIMIT
from schemas import Category, Product


class CategoryLookup(Protocol):
    def by_slug(self, slug: str) -> Optional[Category]: ...


class FilterSpec(BaseModel):
    category_slug: Optional[str] = None
    brands: Optional[List[str]] = None
    min_price: Optional[int] = None
    max_price: Optional[int] = None
    search_query: Optional[str] = None
    featured: bool = False
    is_new: bool = False
    sort_by: Optional[str] = None  # price-asc, price-desc, rating, newest
    limit: Optional[int] = Field(None, ge=0)


def effective_price(product: Product) -> int:
    if product.discount_price is not None:
        return product.discount_price
    return product.price


def matches_text(product: Product, query: str) -> bool:
    needle = query.lower()
    if needle in product.name.lower():
        return True
    return bool(product.description) and needle in product.description.lower()


SORTERS: Dict[str, Callable[[List[Product]], List[Product]]] = {
    "price-asc": lambda items: sorted(items, key=effective_price),
    "price-desc": lambda items: sorted(items, key=effective_price, reverse=True),
    "rating": lambda items: sorted(items, key=lambda p: p.average_rating, reverse=True),
    "newest": lambda items: sorted(items, key=lambda p: p.created_at, reverse=True),
}


def sort_products(products: List[Product], sort_by: Optional[str]) -> List[Product]:
    return SORTERS.get(sort_by or "newest", SORTERS["newest"])(products)


def query_products(all_products: Sequence[Product], filters: FilterSpec,
                   categories: CategoryLookup) -> List[Product]:
    """Return the filtered, sorted and limited slice of ``all_products``.

    Filters are ANDed. An unknown category slug leaves the category filter off, and
    ``min_price > max_price`` simply yields nothing.
    """
    predicates: List[Callable[[Product], bool]] = []

    if filters.category_slug:
        category = categories.by_slug(filters.category_slug)
        if category is not None:
            predicates.append(lambda p: p.category_id == category.id)
    if filters.brands:
        brands = set(filters.brands)
        predicates.append(lambda p: p.brand is not None and p.brand in brands)
    if filters.min_price is not None:
        predicates.append(lambda p: effective_price(p) >= filters.min_price)
    if filters.max_price is not None:
        predicates.append(lambda p: effective_price(p) <= filters.max_price)
    if filters.search_query:
        predicates.append(lambda p: matches_text(p, filters.search_query))
    if filters.featured:
        predicates.append(lambda p: p.featured)
    if filters.is_new:
        predicates.append(lambda p: p.is_new)

    products = [p for p in all_products if all(pred(p) for pred in predicates)]
    products = sort_products(products, filters.sort_by)
    if filters.limit:
        products = products[:filters.limit]
    return products


def related_products(all_products: Sequence[Product], product_id: int, category_id: int,
                     limit: int = RELATED_PRODUCTS_LIMIT) -> List[Product]:
    related = [p for p in all_products if p.id != product_id and p.category_id == category_id]
    return related[:limit]


def search_products(all_products: Sequence[Product], query: str,
                    limit: int = SEARCH_RESULTS_LIMIT) -> List[Product]:
    if not query:
        return []
    return [p for p in all_products if matches_text(p, query)][:limit]
