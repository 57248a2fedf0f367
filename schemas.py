"""
Football Shop Data Schemas

Each Pydantic model below describes one collection held by the in-memory storage. Write shapes
(``*Create``) omit the fields the storage owns: ids, timestamps and the derived rating aggregates.

Money is integer Vietnamese đồng. Ratings are Decimals rounded to one place.
"""
from datetime import datetime
from decimal import Decimal
from typing import Annotated, List, Optional, Dict, Literal

from pydantic import BaseModel, Field, EmailStr, PlainSerializer, model_validator


OrderStatus = Literal["pending", "processing", "shipped", "delivered", "cancelled"]
PaymentMethod = Literal["cod", "momo", "zalopay", "visa", "qr"]
PaymentStatus = Literal["pending", "processing", "paid", "failed"]

# exact in memory, plain number on the wire
Rating = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


class User(BaseModel):
    id: int
    username: str
    email: EmailStr
    full_name: str
    phone: Optional[str] = None
    address: Optional[str] = None
    role: str = Field("customer", description="customer | admin")
    password_hash: str


class UserCreate(BaseModel):
    username: str = Field(..., min_length=3)
    email: EmailStr
    full_name: str
    phone: Optional[str] = None
    address: Optional[str] = None
    password_hash: str


class CategoryCreate(BaseModel):
    name: str
    slug: str
    description: Optional[str] = None
    image_url: Optional[str] = None


class Category(CategoryCreate):
    id: int


class ProductCreate(BaseModel):
    name: str
    slug: str
    description: Optional[str] = None
    price: int = Field(..., gt=0)
    discount_price: Optional[int] = Field(None, gt=0)
    category_id: int
    brand: Optional[str] = None
    image_url: str
    image_urls: List[str] = []
    in_stock: bool = True
    featured: bool = False
    is_new: bool = False
    variants: Optional[Dict[str, List[str]]] = Field(
        None, description="e.g. {'size': ['S', 'M'], 'color': ['Đỏ']}"
    )

    @model_validator(mode="after")
    def check_discount(self):
        if self.discount_price is not None and self.discount_price >= self.price:
            raise ValueError("discount_price must be lower than price")
        return self


class Product(ProductCreate):
    id: int
    created_at: datetime
    average_rating: Rating = Field(Decimal("0"), ge=0, le=5)
    review_count: int = Field(0, ge=0)


class ReviewCreate(BaseModel):
    product_id: int
    user_id: int
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = None


class Review(ReviewCreate):
    id: int
    created_at: datetime


class CartLineItem(BaseModel):
    id: int = Field(..., description="Product id, not a unique line identity")
    name: str
    price: int = Field(..., ge=0)  # unit price captured at add-to-cart time
    image_url: Optional[str] = None
    quantity: int = Field(1, ge=1)
    variant: Optional[Dict[str, str]] = None


class Order(BaseModel):
    id: int
    user_id: int
    status: OrderStatus = "pending"
    total_amount: int
    shipping_address: str
    payment_method: PaymentMethod
    payment_status: PaymentStatus = "pending"
    created_at: datetime
    updated_at: datetime


class OrderItem(BaseModel):
    id: int
    order_id: int
    product_id: int
    quantity: int = Field(..., ge=1)
    price: int
    variant_data: Optional[Dict[str, str]] = None


class BlogPostCreate(BaseModel):
    title: str
    slug: str
    content: str
    image_url: Optional[str] = None
    user_id: int


class BlogPost(BlogPostCreate):
    id: int
    created_at: datetime
    updated_at: datetime
