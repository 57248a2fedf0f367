"""
In-memory storage for the Football Shop.

``Storage`` owns one repository per collection and is created by the application factory; nothing in
here is a module-level singleton. Product rating aggregates can only change through
``Storage.create_review`` / ``Storage.update_product_rating``.
"""
import itertools
import logging
import threading
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, List, Optional

from cart import MemoryCartStore
from schemas import (
    BlogPost, BlogPostCreate, Category, CategoryCreate, Order, OrderItem, Product,
    ProductCreate, Review, ReviewCreate, User, UserCreate,
)

logger = logging.getLogger("footballshop.database")


def _now() -> datetime:
    return datetime.now(timezone.utc)


class _IdSequence:
    def __init__(self):
        self._counter = itertools.count(1)
        self._lock = threading.Lock()

    def next(self) -> int:
        with self._lock:
            return next(self._counter)


class CategoryRepository:
    def __init__(self):
        self._data: Dict[int, Category] = {}
        self._ids = _IdSequence()

    def list_all(self) -> List[Category]:
        return list(self._data.values())

    def by_id(self, category_id: int) -> Optional[Category]:
        return self._data.get(category_id)

    def by_slug(self, slug: str) -> Optional[Category]:
        return next((c for c in self._data.values() if c.slug == slug), None)

    def create(self, data: CategoryCreate) -> Category:
        if self.by_slug(data.slug):
            raise ValueError(f"Category slug already exists: {data.slug}")
        category = Category(id=self._ids.next(), **data.model_dump())
        self._data[category.id] = category
        return category


class ProductRepository:
    def __init__(self):
        self._data: Dict[int, Product] = {}
        self._ids = _IdSequence()

    def list_all(self) -> List[Product]:
        return list(self._data.values())

    def by_id(self, product_id: int) -> Optional[Product]:
        return self._data.get(product_id)

    def by_slug(self, slug: str) -> Optional[Product]:
        return next((p for p in self._data.values() if p.slug == slug), None)

    def create(self, data: ProductCreate, created_at: Optional[datetime] = None) -> Product:
        if self.by_slug(data.slug):
            raise ValueError(f"Product slug already exists: {data.slug}")
        product = Product(
            id=self._ids.next(),
            created_at=created_at or _now(),
            average_rating=Decimal("0"),
            review_count=0,
            **data.model_dump(),
        )
        self._data[product.id] = product
        return product

    def set_rating_aggregates(self, product_id: int, average: Decimal, count: int) -> None:
        """Only write path for the rating aggregates; called by the review recompute."""
        product = self._data[product_id]
        self._data[product_id] = product.model_copy(update={"average_rating": average, "review_count": count})


class ReviewRepository:
    def __init__(self):
        self._data: Dict[int, Review] = {}
        self._ids = _IdSequence()

    def for_product(self, product_id: int) -> List[Review]:
        return [r for r in self._data.values() if r.product_id == product_id]

    def append(self, data: ReviewCreate) -> Review:
        review = Review(id=self._ids.next(), created_at=_now(), **data.model_dump())
        self._data[review.id] = review
        return review


def average_rating(ratings: List[int]) -> Decimal:
    if not ratings:
        return Decimal("0")
    mean = Decimal(sum(ratings)) / Decimal(len(ratings))
    return mean.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)


class Storage:
    def __init__(self):
        self.categories = CategoryRepository()
        self.products = ProductRepository()
        self.reviews = ReviewRepository()
        self._users: Dict[int, User] = {}
        self._orders: Dict[int, Order] = {}
        self._order_items: Dict[int, OrderItem] = {}
        self._blog_posts: Dict[int, BlogPost] = {}
        self._carts: Dict[str, MemoryCartStore] = {}
        self._user_ids = _IdSequence()
        self._order_ids = _IdSequence()
        self._order_item_ids = _IdSequence()
        self._blog_post_ids = _IdSequence()
        self._review_lock = threading.Lock()
        self._carts_lock = threading.Lock()

    # Users
    def create_user(self, data: UserCreate, role: str = "customer") -> User:
        user = User(id=self._user_ids.next(), role=role, **data.model_dump())
        self._users[user.id] = user
        return user

    def user_by_id(self, user_id: int) -> Optional[User]:
        return self._users.get(user_id)

    def user_by_username(self, username: str) -> Optional[User]:
        return next((u for u in self._users.values() if u.username.lower() == username.lower()), None)

    def user_by_email(self, email: str) -> Optional[User]:
        return next((u for u in self._users.values() if u.email.lower() == email.lower()), None)

    # Reviews
    def create_review(self, product_id: int, user_id: int, rating: int, comment: Optional[str] = None) -> Review:
        data = ReviewCreate(product_id=product_id, user_id=user_id, rating=rating, comment=comment)
        with self._review_lock:
            if self.products.by_id(product_id) is None:
                raise LookupError(f"Unknown product: {product_id}")
            review = self.reviews.append(data)
            self._update_product_rating(product_id)
        logger.info("Review %s added for product %s (rating=%s)", review.id, product_id, rating)
        return review

    def update_product_rating(self, product_id: int) -> None:
        with self._review_lock:
            self._update_product_rating(product_id)

    def _update_product_rating(self, product_id: int) -> None:
        if self.products.by_id(product_id) is None:
            return
        ratings = [r.rating for r in self.reviews.for_product(product_id)]
        self.products.set_rating_aggregates(product_id, average_rating(ratings), len(ratings))

    # Orders
    def create_order(self, user_id: int, total_amount: int, shipping_address: str, payment_method: str,
                     status: str = "pending", payment_status: str = "pending") -> Order:
        now = _now()
        order = Order(
            id=self._order_ids.next(), user_id=user_id, status=status, total_amount=total_amount,
            shipping_address=shipping_address, payment_method=payment_method,
            payment_status=payment_status, created_at=now, updated_at=now,
        )
        self._orders[order.id] = order
        return order

    def create_order_item(self, order_id: int, product_id: int, quantity: int, price: int,
                          variant_data: Optional[Dict[str, str]] = None) -> OrderItem:
        item = OrderItem(id=self._order_item_ids.next(), order_id=order_id, product_id=product_id,
                         quantity=quantity, price=price, variant_data=variant_data)
        self._order_items[item.id] = item
        return item

    def order_by_id(self, order_id: int) -> Optional[Order]:
        return self._orders.get(order_id)

    def order_items(self, order_id: int) -> List[OrderItem]:
        return [i for i in self._order_items.values() if i.order_id == order_id]

    def user_orders(self, user_id: int) -> List[Dict[str, Any]]:
        """Orders of one user, newest first, with product display fields attached to each item."""
        result = []
        for order in self._orders.values():
            if order.user_id != user_id:
                continue
            items = []
            for item in self.order_items(order.id):
                product = self.products.by_id(item.product_id)
                entry = item.model_dump()
                entry["product"] = {"name": product.name, "image_url": product.image_url} if product else None
                items.append(entry)
            result.append(order.model_dump() | {"items": items})
        result.sort(key=lambda o: (o["created_at"], o["id"]), reverse=True)
        return result

    # Blog posts
    def create_blog_post(self, data: BlogPostCreate, created_at: Optional[datetime] = None) -> BlogPost:
        created_at = created_at or _now()
        post = BlogPost(id=self._blog_post_ids.next(), created_at=created_at, updated_at=created_at,
                        **data.model_dump())
        self._blog_posts[post.id] = post
        return post

    def list_blog_posts(self, category: Optional[str] = None, tag: Optional[str] = None,
                        limit: Optional[int] = None) -> List[BlogPost]:
        posts = list(self._blog_posts.values())
        # there are no category/tag columns, both match against the post body
        for term in (category, tag):
            if term:
                posts = [p for p in posts if term.lower() in p.content.lower()]
        posts.sort(key=lambda p: p.created_at, reverse=True)
        if limit:
            posts = posts[:limit]
        return posts

    def blog_post_by_slug(self, slug: str) -> Optional[BlogPost]:
        return next((p for p in self._blog_posts.values() if p.slug == slug), None)

    def related_blog_posts(self, post_id: int, limit: int = 5) -> List[BlogPost]:
        return [p for p in self._blog_posts.values() if p.id != post_id][:limit]

    # Carts
    def cart_store(self, cart_key: str) -> MemoryCartStore:
        with self._carts_lock:
            return self._carts.setdefault(cart_key, MemoryCartStore())

    def peek_cart(self, cart_key: str) -> MemoryCartStore:
        # read path: unknown keys get a throwaway empty store
        with self._carts_lock:
            return self._carts.get(cart_key) or MemoryCartStore()

    def drop_cart(self, cart_key: str) -> None:
        with self._carts_lock:
            self._carts.pop(cart_key, None)
