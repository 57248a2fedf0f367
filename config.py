import os
from typing import get_args

from schemas import PaymentMethod

# Configuration
STORE_NAME = os.getenv("STORE_NAME", "Football Shop")
PRIMARY_CURRENCY = os.getenv("PRIMARY_CURRENCY", "VND")
FREE_SHIPPING_THRESHOLD = int(os.getenv("FREE_SHIPPING_THRESHOLD", "2000000"))  # đồng
FLAT_SHIPPING_COST = int(os.getenv("FLAT_SHIPPING_COST", "30000"))
RELATED_PRODUCTS_LIMIT = int(os.getenv("RELATED_PRODUCTS_LIMIT", "4"))
SEARCH_RESULTS_LIMIT = int(os.getenv("SEARCH_RESULTS_LIMIT", "10"))
ALLOWED_ORIGINS = os.getenv("ALLOWED_ORIGINS", "*").split(",")
SEED_DEMO_DATA = os.getenv("SEED_DEMO_DATA", "true").lower() in ("1", "true", "yes")

# Security
JWT_SECRET = os.getenv("JWT_SECRET", "devsecret_change_me")
JWT_EXP_MIN = int(os.getenv("JWT_EXP_MIN", "60"))

PAYMENT_METHODS = list(get_args(PaymentMethod))
