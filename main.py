import os
import logging
from typing import Optional, List, Dict, Any

from fastapi import APIRouter, FastAPI, HTTPException, Depends, Header, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, EmailStr, ValidationError

from cart import ShoppingCart
from catalog import FilterSpec, query_products, related_products, search_products, effective_price
from config import (
    STORE_NAME, PRIMARY_CURRENCY, FREE_SHIPPING_THRESHOLD, FLAT_SHIPPING_COST, ALLOWED_ORIGINS,
    SEED_DEMO_DATA, PAYMENT_METHODS,
)
from database import Storage
from schemas import (
    CartLineItem, CategoryCreate, PaymentMethod, ProductCreate, User, UserCreate,
)
from security import hash_password, verify_password, create_token, decode_token
from seed import seed_database

# Logging
logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s %(message)s")
logger = logging.getLogger("footballshop")

router = APIRouter()


# Dependencies
def get_storage(request: Request) -> Storage:
    return request.app.state.storage


async def get_current_user(authorization: Optional[str] = Header(default=None),
                           storage: Storage = Depends(get_storage)) -> Optional[User]:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token:
        raise HTTPException(status_code=401, detail="Invalid authorization header")
    token_data = decode_token(token)
    user = storage.user_by_id(token_data.user_id)
    if not user:
        raise HTTPException(status_code=401, detail="User not found")
    return user


def require_user(user: Optional[User] = Depends(get_current_user)) -> User:
    if not user:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return user


def require_role(user: User, roles: List[str]):
    if user.role not in roles:
        raise HTTPException(status_code=403, detail="Forbidden")


def public_user(user: User) -> Dict[str, Any]:
    return user.model_dump(exclude={"password_hash"})


# Error handler
async def global_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error: %s", exc)
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


# Health and config
@router.get("/")
def root():
    return {"name": STORE_NAME, "status": "ok"}


@router.get("/config")
def get_config():
    return {
        "storeName": STORE_NAME,
        "currency": PRIMARY_CURRENCY,
        "shipping": {"flat": FLAT_SHIPPING_COST, "freeThreshold": FREE_SHIPPING_THRESHOLD},
        "paymentMethods": PAYMENT_METHODS,
    }


# Auth
class RegisterDTO(BaseModel):
    username: str
    email: EmailStr
    full_name: str
    password: str
    phone: Optional[str] = None
    address: Optional[str] = None


class LoginDTO(BaseModel):
    username: str
    password: str


@router.post("/auth/register", status_code=201)
def register(data: RegisterDTO, storage: Storage = Depends(get_storage)):
    if storage.user_by_username(data.username):
        raise HTTPException(status_code=400, detail="Username already exists")
    if storage.user_by_email(data.email):
        raise HTTPException(status_code=400, detail="Email already in use")
    user = storage.create_user(UserCreate(
        username=data.username,
        email=data.email,
        full_name=data.full_name,
        phone=data.phone,
        address=data.address,
        password_hash=hash_password(data.password),
    ))
    logger.info("Registered user %s", user.username)
    return {"token": create_token(user), "user": public_user(user)}


@router.post("/auth/login")
def login(data: LoginDTO, storage: Storage = Depends(get_storage)):
    user = storage.user_by_username(data.username)
    if not user or not verify_password(data.password, user.password_hash):
        raise HTTPException(status_code=401, detail="Invalid credentials")
    return {"token": create_token(user), "user": public_user(user)}


@router.get("/auth/me")
def me(user: User = Depends(require_user)):
    return public_user(user)


# Categories
@router.get("/categories")
def list_categories(storage: Storage = Depends(get_storage)):
    return storage.categories.list_all()


@router.get("/categories/{slug}")
def get_category(slug: str, storage: Storage = Depends(get_storage)):
    category = storage.categories.by_slug(slug)
    if not category:
        raise HTTPException(status_code=404, detail="Category not found")
    return category


@router.post("/admin/categories", status_code=201)
def create_category(data: CategoryCreate, user: User = Depends(require_user),
                    storage: Storage = Depends(get_storage)):
    require_role(user, ["admin"])
    try:
        category = storage.categories.create(data)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return category


# Products
@router.get("/products")
def list_products(category: Optional[str] = None, brand: Optional[List[str]] = Query(None),
                  minPrice: Optional[int] = None, maxPrice: Optional[int] = None,
                  sort: Optional[str] = None, q: Optional[str] = None,
                  featured: bool = False, isNew: bool = False,
                  limit: Optional[int] = Query(None, ge=0),
                  storage: Storage = Depends(get_storage)):
    filters = FilterSpec(
        category_slug=category,
        brands=brand,
        min_price=minPrice,
        max_price=maxPrice,
        sort_by=sort,
        search_query=q,
        featured=featured,
        is_new=isNew,
        limit=limit,
    )
    return query_products(storage.products.list_all(), filters, storage.categories)


@router.get("/products/search")
def search(q: Optional[str] = None, storage: Storage = Depends(get_storage)):
    return search_products(storage.products.list_all(), q or "")


@router.get("/products/related/{slug}")
def get_related_products(slug: str, storage: Storage = Depends(get_storage)):
    product = storage.products.by_slug(slug)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return related_products(storage.products.list_all(), product.id, product.category_id)


@router.get("/products/{slug}")
def get_product(slug: str, storage: Storage = Depends(get_storage)):
    product = storage.products.by_slug(slug)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return product


@router.post("/admin/products", status_code=201)
def create_product(data: ProductCreate, user: User = Depends(require_user),
                   storage: Storage = Depends(get_storage)):
    require_role(user, ["admin"])
    if not storage.categories.by_id(data.category_id):
        raise HTTPException(status_code=400, detail="Unknown category")
    try:
        product = storage.products.create(data)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    logger.info("Product %s created by %s", product.slug, user.username)
    return product


# Reviews
class ReviewDTO(BaseModel):
    rating: int
    comment: Optional[str] = None


@router.get("/products/{product_id}/reviews")
def product_reviews(product_id: int, storage: Storage = Depends(get_storage)):
    return storage.reviews.for_product(product_id)


@router.post("/products/{product_id}/reviews", status_code=201)
def add_review(product_id: int, data: ReviewDTO, user: User = Depends(require_user),
               storage: Storage = Depends(get_storage)):
    if not storage.products.by_id(product_id):
        raise HTTPException(status_code=404, detail="Product not found")
    try:
        return storage.create_review(product_id, user.id, data.rating, data.comment)
    except ValidationError:
        raise HTTPException(status_code=422, detail="Rating must be between 1 and 5")
    except LookupError:
        raise HTTPException(status_code=404, detail="Product not found")


# Cart
class CartKeyDTO(BaseModel):
    cart_key: str


class CartAddDTO(CartKeyDTO):
    product_id: int
    quantity: int = 1
    variant: Optional[Dict[str, str]] = None


class CartUpdateDTO(CartKeyDTO):
    product_id: int
    quantity: int


class CartRemoveDTO(CartKeyDTO):
    product_id: int


def cart_payload(cart_key: str, cart: ShoppingCart, storage: Storage) -> Dict[str, Any]:
    items = []
    for line in cart.items:
        product = storage.products.by_id(line.id)
        entry = line.model_dump()
        entry["product"] = {"slug": product.slug, "in_stock": product.in_stock} if product else None
        items.append(entry)
    return {"cart_key": cart_key, "items": items, "totals": cart.totals()}


@router.get("/cart")
def cart_get(cart_key: str, storage: Storage = Depends(get_storage)):
    cart = ShoppingCart(storage.peek_cart(cart_key))
    return cart_payload(cart_key, cart, storage)


@router.post("/cart/add")
def cart_add(data: CartAddDTO, storage: Storage = Depends(get_storage)):
    product = storage.products.by_id(data.product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    if data.quantity < 1:
        raise HTTPException(status_code=400, detail="Quantity must be at least 1")
    for name, option in (data.variant or {}).items():
        if option not in (product.variants or {}).get(name, []):
            raise HTTPException(status_code=400, detail=f"Invalid {name} option: {option}")
    cart = ShoppingCart(storage.cart_store(data.cart_key))
    cart.add_item(CartLineItem(
        id=product.id,
        name=product.name,
        price=effective_price(product),
        image_url=product.image_url,
        quantity=data.quantity,
        variant=data.variant,
    ))
    return cart_payload(data.cart_key, cart, storage)


@router.post("/cart/update")
def cart_update(data: CartUpdateDTO, storage: Storage = Depends(get_storage)):
    cart = ShoppingCart(storage.cart_store(data.cart_key))
    cart.update_item_quantity(data.product_id, data.quantity)
    return cart_payload(data.cart_key, cart, storage)


@router.post("/cart/remove")
def cart_remove(data: CartRemoveDTO, storage: Storage = Depends(get_storage)):
    cart = ShoppingCart(storage.cart_store(data.cart_key))
    cart.remove_item(data.product_id)
    return cart_payload(data.cart_key, cart, storage)


@router.post("/cart/clear")
def cart_clear(data: CartKeyDTO, storage: Storage = Depends(get_storage)):
    cart = ShoppingCart(storage.cart_store(data.cart_key))
    cart.clear_cart()
    return cart_payload(data.cart_key, cart, storage)


# Checkout
class CheckoutDTO(BaseModel):
    cart_key: str
    address: str
    ward: str
    district: str
    city: str
    payment_method: PaymentMethod = "cod"


@router.post("/checkout", status_code=201)
def checkout(data: CheckoutDTO, user: User = Depends(require_user), storage: Storage = Depends(get_storage)):
    cart = ShoppingCart(storage.cart_store(data.cart_key))
    if not cart.items:
        raise HTTPException(status_code=400, detail="Cart is empty")
    totals = cart.totals()
    # payment is simulated: non-COD methods wait on an external confirmation
    payment_status = "pending" if data.payment_method == "cod" else "processing"
    order = storage.create_order(
        user_id=user.id,
        total_amount=totals["total"],
        shipping_address=f"{data.address}, {data.ward}, {data.district}, {data.city}",
        payment_method=data.payment_method,
        payment_status=payment_status,
    )
    items = [
        storage.create_order_item(order.id, line.id, line.quantity, line.price, line.variant)
        for line in cart.items
    ]
    cart.clear_cart()
    storage.drop_cart(data.cart_key)
    logger.info("Order %s placed by %s (total=%s %s)", order.id, user.username, order.total_amount,
                PRIMARY_CURRENCY)
    return {"order": order, "items": items, "totals": totals}


# Orders
@router.get("/user/orders")
def list_user_orders(user: User = Depends(require_user), storage: Storage = Depends(get_storage)):
    return storage.user_orders(user.id)


@router.get("/orders/{order_id}")
def get_order(order_id: int, user: User = Depends(require_user), storage: Storage = Depends(get_storage)):
    order = storage.order_by_id(order_id)
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")
    if order.user_id != user.id and user.role != "admin":
        raise HTTPException(status_code=403, detail="Forbidden")
    return order.model_dump() | {"items": storage.order_items(order.id)}


# Blog posts
@router.get("/blog-posts")
def list_blog_posts(category: Optional[str] = None, tag: Optional[str] = None,
                    limit: Optional[int] = Query(None, ge=0), storage: Storage = Depends(get_storage)):
    return storage.list_blog_posts(category=category, tag=tag, limit=limit)


@router.get("/blog-posts/related/{slug}")
def get_related_blog_posts(slug: str, storage: Storage = Depends(get_storage)):
    post = storage.blog_post_by_slug(slug)
    if not post:
        raise HTTPException(status_code=404, detail="Blog post not found")
    return storage.related_blog_posts(post.id)


@router.get("/blog-posts/{slug}")
def get_blog_post(slug: str, storage: Storage = Depends(get_storage)):
    post = storage.blog_post_by_slug(slug)
    if not post:
        raise HTTPException(status_code=404, detail="Blog post not found")
    return post


# Sample seed endpoint (dev only)
@router.post("/dev/seed")
def dev_seed(storage: Storage = Depends(get_storage)):
    return {"ok": True, "seeded": seed_database(storage)}


def build_app(storage: Optional[Storage] = None, seed: bool = SEED_DEMO_DATA) -> FastAPI:
    app = FastAPI(title=f"{STORE_NAME} API", version="1.0.0")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[o.strip() for o in ALLOWED_ORIGINS] if ALLOWED_ORIGINS else ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(Exception, global_exception_handler)
    app.state.storage = storage if storage is not None else Storage()
    if seed:
        seed_database(app.state.storage)
    app.include_router(router)
    return app


app = build_app()


if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("PORT", 8000))
    uvicorn.run(app, host="0.0.0.0", port=port)
