"""Sale lookup for product pages and cart lines.

Sales live outside the variant engine: this module only decides which
percentage applies to a product, and the cart projector applies it to the
base price.
"""
import json
import logging
from datetime import datetime, timezone

from flask import current_app

from storefront import extensions
from storefront.models.sale import Sale

logger = logging.getLogger(__name__)

CACHE_KEY = "sales:active"


def _load_active_sales(now):
    return [s.to_dict() for s in Sale.query.all() if s.is_active(now)]


def get_active_sales(now=None):
    """Active sales as plain dicts, cached in Redis when it is configured."""
    now = now or datetime.now(timezone.utc)
    ttl = current_app.config.get("SALE_CACHE_SECONDS", 0)
    client = extensions.redis_client

    if client and ttl:
        try:
            cached = client.get(CACHE_KEY)
            if cached:
                return json.loads(cached)
        except Exception as e:
            logger.warning("Sale cache read failed (%s), using database", e)

    sales = _load_active_sales(now)

    if client and ttl:
        try:
            client.setex(CACHE_KEY, ttl, json.dumps(sales))
        except Exception as e:
            logger.warning("Sale cache write failed (%s)", e)
    return sales


def invalidate_sale_cache():
    if extensions.redis_client:
        try:
            extensions.redis_client.delete(CACHE_KEY)
        except Exception as e:
            logger.warning("Sale cache invalidation failed (%s)", e)


def find_best_sale(product, now=None):
    """Best sale for a product, matched by product id or category slug.

    Highest percentage wins; on a tie, the sale that ends first.
    """
    best = None
    for sale in get_active_sales(now):
        applies_by_id = str(product.id) in sale["product_ids"]
        applies_by_category = bool(product.category) and (
            product.category in sale["category_slugs"]
        )
        if not applies_by_id and not applies_by_category:
            continue
        if best is None:
            best = sale
        elif sale["discount_percent"] > best["discount_percent"] or (
            sale["discount_percent"] == best["discount_percent"]
            and sale["ends_at"] < best["ends_at"]
        ):
            best = sale
    return best


def effective_discount(product, sale=None):
    """The larger of the product's own discount and the sale percentage."""
    sale_percent = sale["discount_percent"] if sale else 0
    return max(product.discount or 0, sale_percent or 0)
