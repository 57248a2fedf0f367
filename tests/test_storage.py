import threading
from datetime import timedelta
from decimal import Decimal

import pytest
from pydantic import ValidationError

from conftest import BASE_TIME
from database import Storage, average_rating
from schemas import BlogPostCreate, CategoryCreate, ProductCreate
from seed import seed_database


@pytest.fixture
def product(storage: Storage):
    category = storage.categories.create(CategoryCreate(name="Bóng", slug="bong"))
    return storage.products.create(ProductCreate(
        name="Adidas Al Rihla Pro",
        slug="adidas-al-rihla-pro",
        price=950000,
        category_id=category.id,
        image_url="https://img.example.com/ball.jpg",
    ))


def test_new_product_starts_without_rating(product):
    assert product.average_rating == 0
    assert product.review_count == 0


def test_reviews_recompute_product_rating(storage, product):
    storage.create_review(product.id, user_id=1, rating=5)
    refreshed = storage.products.by_id(product.id)
    assert refreshed.average_rating == Decimal("5.0")
    assert refreshed.review_count == 1

    storage.create_review(product.id, user_id=2, rating=3, comment="Tạm ổn")
    refreshed = storage.products.by_id(product.id)
    assert refreshed.average_rating == Decimal("4.0")
    assert refreshed.review_count == 2


@pytest.mark.parametrize("rating", [0, 6, -1])
def test_out_of_range_rating_is_rejected(storage, product, rating):
    with pytest.raises(ValidationError):
        storage.create_review(product.id, user_id=1, rating=rating)
    assert storage.reviews.for_product(product.id) == []
    assert storage.products.by_id(product.id).review_count == 0


@pytest.mark.parametrize("ratings,expected", [
    ([], "0"),
    ([5, 4], "4.5"),
    ([5, 4, 4], "4.3"),
    ([4, 5, 5], "4.7"),
    ([1, 2, 2, 2], "1.8"),
])
def test_average_rating_rounds_to_one_decimal(ratings, expected):
    assert average_rating(ratings) == Decimal(expected)


def test_update_product_rating_is_idempotent(storage, product):
    storage.create_review(product.id, user_id=1, rating=4)
    storage.update_product_rating(product.id)
    storage.update_product_rating(product.id)
    refreshed = storage.products.by_id(product.id)
    assert (refreshed.average_rating, refreshed.review_count) == (Decimal("4.0"), 1)


def test_update_rating_for_missing_product_is_a_noop(storage):
    storage.update_product_rating(404)
    assert storage.products.by_id(404) is None


def test_concurrent_reviews_keep_aggregate_consistent(storage, product):
    def worker(rating):
        for _ in range(20):
            storage.create_review(product.id, user_id=rating, rating=rating)

    threads = [threading.Thread(target=worker, args=(r,)) for r in (1, 5)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    refreshed = storage.products.by_id(product.id)
    assert refreshed.review_count == 40
    assert refreshed.average_rating == Decimal("3.0")


def test_duplicate_product_slug_is_rejected(storage, product):
    with pytest.raises(ValueError):
        storage.products.create(ProductCreate(
            name="Trùng slug", slug=product.slug, price=100000, category_id=product.category_id,
            image_url="https://img.example.com/dup.jpg",
        ))


def test_discount_must_be_below_price():
    with pytest.raises(ValidationError):
        ProductCreate(name="Áo", slug="ao", price=1000000, discount_price=1000000, category_id=1,
                      image_url="https://img.example.com/ao.jpg")


def test_user_orders_tolerate_missing_products(storage, product):
    order = storage.create_order(user_id=7, total_amount=980000, shipping_address="1 Lê Lợi, Bến Nghé, Quận 1, TP.HCM",
                                 payment_method="cod")
    storage.create_order_item(order.id, product.id, 1, 950000, {"size": "5"})
    storage.create_order_item(order.id, 999, 2, 15000)

    orders = storage.user_orders(7)
    assert len(orders) == 1
    items = orders[0]["items"]
    assert items[0]["product"] == {"name": "Adidas Al Rihla Pro", "image_url": "https://img.example.com/ball.jpg"}
    assert items[1]["product"] is None
    assert storage.user_orders(8) == []


def test_user_orders_newest_first(storage):
    first = storage.create_order(user_id=1, total_amount=30000, shipping_address="a", payment_method="cod")
    second = storage.create_order(user_id=1, total_amount=60000, shipping_address="b", payment_method="momo")
    assert [o["id"] for o in storage.user_orders(1)] == [second.id, first.id]


def test_blog_posts_sort_before_limit(storage):
    for offset, title in enumerate(["Giày", "Áo đấu", "Bóng"]):
        storage.create_blog_post(
            BlogPostCreate(title=title, slug=f"bai-{offset}", content=f"Bài viết về {title.lower()}", user_id=1),
            created_at=BASE_TIME + timedelta(days=offset),
        )
    assert [p.title for p in storage.list_blog_posts(limit=2)] == ["Bóng", "Áo đấu"]
    assert [p.title for p in storage.list_blog_posts(tag="giày")] == ["Giày"]
    first = storage.blog_post_by_slug("bai-0")
    assert [p.slug for p in storage.related_blog_posts(first.id)] == ["bai-1", "bai-2"]


def test_seed_is_idempotent(storage):
    assert seed_database(storage) is True
    assert seed_database(storage) is False
    assert len(storage.categories.list_all()) == 4
    assert len(storage.products.list_all()) == 8

    manchester = storage.products.by_slug("ao-manchester-united-2023-24")
    assert manchester.average_rating == Decimal("5.0")
    assert manchester.review_count == 1
    assert storage.user_by_username("ADMIN").role == "admin"


def test_cart_stores_are_kept_per_key(storage):
    assert storage.cart_store("a") is storage.cart_store("a")
    assert storage.cart_store("a") is not storage.cart_store("b")
    storage.drop_cart("a")
    storage.drop_cart("missing")


def test_review_for_unknown_product_is_rejected(storage, product):
    with pytest.raises(LookupError):
        storage.create_review(404, user_id=1, rating=5)
    assert storage.reviews.for_product(404) == []


def test_peek_cart_does_not_register_unknown_keys(storage):
    assert storage.peek_cart("moi").load() == []
    assert "moi" not in storage._carts
    store = storage.cart_store("co-san")
    assert storage.peek_cart("co-san") is store
