from datetime import datetime, timezone
from storefront.extensions import db


def _aware(value):
    # SQLite hands back naive datetimes even for timezone=True columns
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class Sale(db.Model):
    __tablename__ = "sales"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    discount_percent = db.Column(db.Integer, nullable=False, default=0)
    product_ids = db.Column(db.JSON, default=list)  # ["12", "15"]
    category_slugs = db.Column(db.JSON, default=list)  # ["sarees"]
    starts_at = db.Column(db.DateTime(timezone=True), nullable=True)
    ends_at = db.Column(db.DateTime(timezone=True), nullable=False, index=True)
    created_at = db.Column(
        db.DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )

    def is_active(self, now=None):
        now = now or datetime.now(timezone.utc)
        starts_at = _aware(self.starts_at)
        if starts_at and starts_at > now:
            return False
        return _aware(self.ends_at) > now

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "discount_percent": self.discount_percent,
            "product_ids": [str(p) for p in (self.product_ids or [])],
            "category_slugs": list(self.category_slugs or []),
            "ends_at": _aware(self.ends_at).astimezone(timezone.utc).isoformat(),
        }

    def __repr__(self):
        return f"<Sale {self.name} -{self.discount_percent}%>"
