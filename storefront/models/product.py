from datetime import datetime, timezone
from storefront.extensions import db
from storefront.services.variants.tree import parse_tree


class Product(db.Model):
    __tablename__ = "products"

    id = db.Column(db.Integer, primary_key=True)
    slug = db.Column(db.String(255), unique=True, nullable=False, index=True)
    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, default="")
    category = db.Column(db.String(100), default="", index=True)  # category slug
    price = db.Column(db.Integer, nullable=False)  # in paise
    stock = db.Column(db.Integer, nullable=False, default=0)  # used when no variants
    discount = db.Column(db.Integer, nullable=False, default=0)  # percent
    images = db.Column(db.JSON, default=list)  # ["https://..."]
    specifications = db.Column(db.JSON, default=list)  # [{"name", "value"}]
    # Variant tree and add-ons, stored in their JSON wire shape
    variants = db.Column(db.JSON, default=list)
    addons = db.Column(db.JSON, default=list)
    status = db.Column(
        db.String(20), nullable=False, default="DRAFT", index=True
    )
    created_at = db.Column(
        db.DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at = db.Column(
        db.DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    VALID_STATUSES = {"DRAFT", "PUBLISHED", "HIDDEN"}

    @property
    def price_display(self):
        """Price in rupees as a float for display."""
        return self.price / 100

    @property
    def is_visible(self):
        return self.status == "PUBLISHED"

    def tree(self):
        """Parse the stored variant/add-on JSON into engine models."""
        return parse_tree(self.variants, self.addons)

    def to_dict(self):
        return {
            "id": self.id,
            "slug": self.slug,
            "name": self.name,
            "description": self.description or "",
            "category": self.category or "",
            "price": self.price,
            "stock": self.stock,
            "discount": self.discount,
            "images": list(self.images or []),
            "specifications": list(self.specifications or []),
            "variants": list(self.variants or []),
            "addons": list(self.addons or []),
            "status": self.status,
        }

    def __repr__(self):
        return f"<Product {self.slug}: {self.name}>"
