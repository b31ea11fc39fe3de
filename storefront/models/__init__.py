from storefront.models.product import Product  # noqa: F401
from storefront.models.sale import Sale  # noqa: F401
