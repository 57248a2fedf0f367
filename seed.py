"""Demo catalog for local development and tests."""
import logging
from datetime import datetime, timedelta, timezone

from database import Storage
from schemas import BlogPostCreate, CategoryCreate, ProductCreate, UserCreate
from security import hash_password

logger = logging.getLogger("footballshop.seed")

IMG = "https://images.unsplash.com/{}?w=500&auto=format&fit=crop&q=60"

CATEGORIES = [
    {"name": "Áo bóng đá", "slug": "ao-bong-da", "description": "Áo đấu chính hãng",
     "image_url": IMG.format("photo-1517466787929-bc90951d0974")},
    {"name": "Giày bóng đá", "slug": "giay-bong-da", "description": "Giày đá bóng chuyên dụng",
     "image_url": IMG.format("photo-1511886929837-354d1a99fc32")},
    {"name": "Bóng", "slug": "bong", "description": "Bóng thi đấu & tập luyện",
     "image_url": IMG.format("photo-1579952363873-27f3bade9f55")},
    {"name": "Phụ kiện", "slug": "phu-kien", "description": "Găng tay, băng bảo vệ & hơn thế",
     "image_url": IMG.format("photo-1552667466-07770ae110d0")},
]

# category is an index into CATEGORIES
PRODUCTS = [
    {"name": "Áo Manchester United 2023/24", "slug": "ao-manchester-united-2023-24",
     "description": "Áo đấu sân nhà chính hãng Manchester United mùa giải 2023/24",
     "price": 1550000, "discount_price": 1250000, "category": 0, "brand": "Adidas",
     "image_url": IMG.format("photo-1511746315387-c4a76990fdce"), "featured": True,
     "variants": {"size": ["S", "M", "L", "XL"], "color": ["Đỏ"]}},
    {"name": "Nike Mercurial Superfly 9", "slug": "nike-mercurial-superfly-9",
     "description": "Giày đá bóng chuyên nghiệp Nike Mercurial Superfly 9 Elite",
     "price": 2500000, "category": 1, "brand": "Nike",
     "image_url": IMG.format("photo-1575386753795-a2bf6a6f8b87"), "featured": True,
     "variants": {"size": ["39", "40", "41", "42", "43", "44"], "color": ["Xanh", "Đen"]}},
    {"name": "Adidas Al Rihla Pro", "slug": "adidas-al-rihla-pro",
     "description": "Bóng thi đấu chuyên nghiệp Adidas Al Rihla Pro - Trái bóng chính thức World Cup 2022",
     "price": 950000, "category": 2, "brand": "Adidas",
     "image_url": IMG.format("photo-1579952363873-27f3bade9f55"), "featured": True, "is_new": True,
     "variants": {"size": ["5"]}},
    {"name": "Reusch Arrow Pro G3", "slug": "reusch-arrow-pro-g3",
     "description": "Găng tay thủ môn chuyên nghiệp Reusch Arrow Pro G3",
     "price": 1400000, "discount_price": 1190000, "category": 3, "brand": "Reusch",
     "image_url": IMG.format("photo-1602919545767-54b776c4c2e5"), "featured": True,
     "variants": {"size": ["7", "8", "9", "10"]}},
    {"name": "Áo Barcelona 2023/24", "slug": "ao-barcelona-2023-24",
     "description": "Áo đấu sân nhà chính hãng Barcelona mùa giải 2023/24",
     "price": 1350000, "category": 0, "brand": "Nike",
     "image_url": IMG.format("photo-1511886929837-354d1a99fc32"), "featured": True,
     "variants": {"size": ["S", "M", "L", "XL"], "color": ["Xanh đỏ"]}},
    {"name": "Puma Future Z 1.4", "slug": "puma-future-z-1-4",
     "description": "Giày đá bóng mới nhất 2023 Puma Future Z 1.4 dành cho các cầu thủ chuyên nghiệp",
     "price": 2150000, "category": 1, "brand": "Puma",
     "image_url": IMG.format("photo-1542291026-7eec264c27ff"), "is_new": True,
     "variants": {"size": ["39", "40", "41", "42", "43", "44"], "color": ["Đen", "Trắng"]}},
    {"name": "Áo Liverpool 2023/24", "slug": "ao-liverpool-2023-24",
     "description": "Áo đấu sân nhà mùa mới Liverpool 2023/24",
     "price": 1290000, "category": 0, "brand": "Nike",
     "image_url": IMG.format("photo-1565303337137-59748c162f76"), "is_new": True,
     "variants": {"size": ["S", "M", "L", "XL"], "color": ["Đỏ"]}},
    {"name": "Nike Academy Team Backpack", "slug": "nike-academy-team-backpack",
     "description": "Balo thể thao đa năng Nike Academy Team Backpack",
     "price": 890000, "category": 3, "brand": "Nike",
     "image_url": IMG.format("photo-1553588542-24a2586f1be1"), "is_new": True,
     "variants": {"color": ["Đen", "Xanh"]}},
]

BLOG_POSTS = [
    {"title": "Top 10 giày đá bóng tốt nhất cho sân cỏ nhân tạo",
     "slug": "top-10-giay-da-bong-tot-nhat-cho-san-co-nhan-tao",
     "content": "Khám phá những mẫu giày đá bóng được các cầu thủ chuyên nghiệp đánh giá cao nhất cho sân cỏ "
                "nhân tạo năm 2023. Từ Nike Mercurial đến Adidas Predator, bài viết sẽ giúp bạn lựa chọn "
                "đôi giày phù hợp nhất.",
     "image_url": IMG.format("photo-1511886929837-354d1a99fc32")},
    {"title": "Bí quyết chọn áo đấu phù hợp với thể trạng và phong cách",
     "slug": "bi-quyet-chon-ao-dau-phu-hop-voi-the-trang-va-phong-cach",
     "content": "Hướng dẫn chi tiết cách chọn size áo đấu, chất liệu và kiểu dáng phù hợp với từng loại hình "
                "thể và phong cách chơi bóng. Bạn sẽ biết cách chọn áo đấu vừa đẹp vừa thoải mái khi thi đấu.",
     "image_url": IMG.format("photo-1431324155629-1a6deb1dec8d")},
    {"title": "Cách bảo quản và vệ sinh giày đá bóng kéo dài tuổi thọ",
     "slug": "cach-bao-quan-va-ve-sinh-giay-da-bong-keo-dai-tuoi-tho",
     "content": "Những mẹo đơn giản nhưng hiệu quả giúp bảo quản giày đá bóng luôn như mới và kéo dài tuổi thọ "
                "trong điều kiện sử dụng thường xuyên. Từ cách vệ sinh đến cách bảo quản đúng cách.",
     "image_url": IMG.format("photo-1508098682722-e99c643e7f0b")},
]

# (product index, rating, comment)
REVIEWS = [
    (0, 5, "Chất liệu áo rất tốt, form áo chuẩn. Rất hài lòng với sản phẩm!"),
    (1, 4, "Giày rất nhẹ và ôm chân, cảm giác bóng tốt. Tuy nhiên hơi đắt một chút."),
    (2, 5, "Bóng chính hãng, rất đáng đồng tiền bỏ ra. Đường may chắc chắn."),
]

ADMIN_USERNAME = "admin"
ADMIN_PASSWORD = "admin123"


def seed_database(storage: Storage) -> bool:
    """Load the demo catalog. Returns False when the storage already holds data."""
    if storage.categories.list_all():
        logger.info("Storage already seeded, skipping")
        return False

    categories = [storage.categories.create(CategoryCreate(**c)) for c in CATEGORIES]

    base = datetime.now(timezone.utc) - timedelta(days=len(PRODUCTS))
    products = []
    for offset, raw in enumerate(PRODUCTS):
        raw = dict(raw)
        raw["category_id"] = categories[raw.pop("category")].id
        products.append(storage.products.create(ProductCreate(**raw), created_at=base + timedelta(days=offset)))

    admin = storage.create_user(UserCreate(
        username=ADMIN_USERNAME,
        email="admin@footballshop.com",
        full_name="Admin User",
        phone="0123456789",
        address="123 Admin Street",
        password_hash=hash_password(ADMIN_PASSWORD),
    ), role="admin")

    for offset, raw in enumerate(BLOG_POSTS):
        storage.create_blog_post(BlogPostCreate(user_id=admin.id, **raw), created_at=base + timedelta(hours=offset))

    for index, rating, comment in REVIEWS:
        storage.create_review(products[index].id, admin.id, rating, comment)

    logger.info("Seeded %d categories, %d products, %d blog posts",
                len(categories), len(products), len(BLOG_POSTS))
    return True
