import logging
import re
from datetime import datetime, timezone
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from storefront.extensions import db
from storefront.models.product import Product
from storefront.services.variants import (
    ProductConfiguration,
    SelectionState,
    auto_select,
    dump_addons,
    dump_variants,
    parse_tree,
)
from storefront.services.variants.tree import Specification

logger = logging.getLogger(__name__)


class ProductPayload(BaseModel):
    """Product import shape, as exported by the catalog admin."""

    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(min_length=1)
    slug: Optional[str] = None
    description: str = ""
    category: str = ""
    price: int = Field(ge=0)
    stock: int = 0
    discount: int = Field(0, ge=0, le=100)
    images: list[str] = Field(default_factory=list)
    specifications: list[Specification] = Field(default_factory=list)
    variants: list[dict] = Field(default_factory=list)
    addons: list[dict] = Field(default_factory=list)
    status: Literal["DRAFT", "PUBLISHED", "HIDDEN"] = "DRAFT"


def generate_slug(name):
    """Lowercase, hyphen-separated slug from a product name."""
    slug = re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")
    return slug or "product"


def import_product(data):
    """Create or replace a product from an import payload.

    The variant tree is parsed before anything is written, so a malformed tree
    raises pydantic.ValidationError and leaves the database untouched.

    Returns (product, created).
    """
    payload = ProductPayload.model_validate(data)
    tree = parse_tree(payload.variants, payload.addons)
    slug = (payload.slug or generate_slug(payload.name)).strip().lower()

    product = Product.query.filter_by(slug=slug).first()
    created = product is None
    if created:
        product = Product(slug=slug)
        db.session.add(product)

    product.name = payload.name
    product.description = payload.description
    product.category = payload.category
    product.price = payload.price
    product.stock = payload.stock
    product.discount = payload.discount
    product.images = payload.images
    product.specifications = [s.model_dump() for s in payload.specifications]
    product.variants = dump_variants(tree.variants)
    product.addons = dump_addons(tree.addons)
    product.status = payload.status
    product.updated_at = datetime.now(timezone.utc)

    db.session.commit()
    logger.info(
        "%s product %s (%d variants, %d add-ons)",
        "Created" if created else "Updated",
        slug,
        len(tree.variants),
        len(tree.addons),
    )
    return product, created


def get_product_by_slug(slug):
    """Get a single product by slug (for product page)."""
    return Product.query.filter_by(slug=slug.lower()).first()


def get_visible_product(slug):
    product = get_product_by_slug(slug)
    if not product or not product.is_visible:
        return None
    return product


def initial_selection(product, tree=None):
    """Selection a product page starts from: every single-option choice made."""
    tree = tree or product.tree()
    return auto_select(SelectionState(), tree.variants)


def build_configuration(product, state, tree=None):
    tree = tree or product.tree()
    return ProductConfiguration.build(
        tree,
        state,
        base_price=product.price,
        stock=product.stock,
        images=product.images or [],
        specifications=[
            Specification.model_validate(s) for s in (product.specifications or [])
        ],
    )


def get_stats():
    """Product counts by status for the stats command."""
    rows = (
        db.session.query(Product.status, db.func.count(Product.id))
        .group_by(Product.status)
        .all()
    )
    return dict(rows)
