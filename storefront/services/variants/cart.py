"""Turn a resolved configuration into a cart line item."""
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from storefront.services.variants.resolver import (
    calculate_addons_total,
    calculate_available_stock,
    calculate_final_price,
    get_variant_image,
)
from storefront.services.variants.selection import SelectedAddon
from storefront.services.variants.tree import (
    CHILD_KEYS,
    NAME_KEYS,
    find_addon,
    find_option,
)


def is_on_sale(discount_percent):
    return bool(discount_percent) and discount_percent > 0


def calculate_sale_price(price, discount_percent):
    """Apply a percentage discount, rounding half up to whole minor units.

    Percentages outside (0, 100) leave the price alone.
    """
    if not discount_percent or discount_percent <= 0 or discount_percent >= 100:
        return price
    discounted = Decimal(price) * (100 - Decimal(str(discount_percent))) / 100
    return int(discounted.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def calculate_line_unit_price(config, discount_percent=0):
    """Unit price with the sale applied to the base price only.

    Variant price deltas and add-on totals pass through undiscounted:
    discounted base + (final - base - add-ons) + add-ons.
    """
    final_price = calculate_final_price(config)
    addons_total = calculate_addons_total(config)
    variant_adjustment = final_price - config.base_price - addons_total
    discounted_base = calculate_sale_price(config.base_price, discount_percent)
    return discounted_base + variant_adjustment + addons_total


class _Model(BaseModel):
    model_config = ConfigDict(
        frozen=True, alias_generator=to_camel, populate_by_name=True
    )


class CartVariant(_Model):
    name: str
    option_value: str  # display label, raw value when the option is gone
    option_label: Optional[str] = None
    children: tuple["CartVariant", ...] = ()

    def to_payload(self, depth=1):
        data = {
            NAME_KEYS[depth]: self.name,
            "optionValue": self.option_value,
            "optionLabel": self.option_label,
        }
        if self.children and depth in CHILD_KEYS:
            data[CHILD_KEYS[depth]] = [
                child.to_payload(depth + 1) for child in self.children
            ]
        return data


CartVariant.model_rebuild()


class CartLine(_Model):
    product_id: str
    name: str
    slug: Optional[str] = None
    unit_price: int
    image: Optional[str] = None
    variants: tuple[CartVariant, ...] = ()
    addons: tuple[SelectedAddon, ...] = ()
    quantity: int
    sale_name: Optional[str] = None
    sale_percent: Optional[int] = None

    @property
    def line_total(self):
        return self.unit_price * self.quantity

    def to_payload(self):
        data = self.model_dump(mode="json", by_alias=True, exclude={"variants"})
        data["variants"] = [variant.to_payload() for variant in self.variants]
        return data


def _cart_variants(selections, option_of):
    out = []
    for selected in selections:
        option = option_of(selected)
        children = ()
        if option is not None and selected.children:

            def child_option(child, option=option):
                sub_variant = option.find_sub_variant(child.name)
                return sub_variant.find_option(child.option_value) if sub_variant else None

            children = _cart_variants(selected.children, child_option)
        out.append(
            CartVariant(
                name=selected.name,
                option_value=option.label if option else selected.option_value,
                option_label=option.label if option else None,
                children=children,
            )
        )
    return tuple(out)


def _addon_offered(addons, selected):
    addon = find_addon(addons, selected.addon_name)
    return addon is not None and addon.find_option(selected.option_label) is not None


def project_cart_line(
    config,
    product_id,
    name,
    quantity,
    slug=None,
    discount_percent=0,
    sale_name=None,
    sale_percent=None,
):
    """Flatten a configuration into the line item the order service stores.

    Quantity is capped at the available stock; callers are expected to have
    run validate_add_to_cart first. discount_percent is what the unit price is
    reduced by. sale_name and sale_percent describe the sale that applies, if
    any, and the sale's percent can be below the product's own discount.
    Add-ons the tree doesn't offer are left off the line.
    """
    available = calculate_available_stock(config)

    def top_option(selected):
        return find_option(config.variants, selected.name, selected.option_value)

    return CartLine(
        product_id=str(product_id),
        name=name,
        slug=slug,
        unit_price=calculate_line_unit_price(config, discount_percent),
        image=get_variant_image(config),
        variants=_cart_variants(config.selected_variants, top_option),
        addons=tuple(
            selected
            for selected in config.selected_addons
            if _addon_offered(config.addons, selected)
        ),
        quantity=max(0, min(quantity, available)),
        sale_name=sale_name if is_on_sale(sale_percent) else None,
        sale_percent=sale_percent if is_on_sale(sale_percent) else None,
    )
