"""Checks that gate adding a configured product to the cart.

An incomplete selection is a normal state while the customer is still choosing,
so nothing here raises: each check returns a result object with the names the
customer still has to pick.
"""
from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from storefront.services.variants.resolver import calculate_available_stock
from storefront.services.variants.selection import find_selected
from storefront.services.variants.tree import find_option


class _Result(BaseModel):
    model_config = ConfigDict(
        frozen=True, alias_generator=to_camel, populate_by_name=True
    )


class VariantValidation(_Result):
    is_valid: bool
    missing_variants: tuple[str, ...] = ()


class SubVariantValidation(_Result):
    is_valid: bool
    missing_sub_variants: tuple[str, ...] = ()


class AddonValidation(_Result):
    is_valid: bool
    missing_addons: tuple[str, ...] = ()


class StockCheck(_Result):
    is_valid: bool
    available_stock: int
    quantity: int
    error: Optional[str] = None
    warning: Optional[str] = None


class CartGate(_Result):
    is_valid: bool
    quantity: int = 0
    available_stock: int = 0
    error: Optional[str] = None
    warning: Optional[str] = None


def validate_required_variants(config):
    """Every top-level variant flagged ``required`` needs a resolvable selection."""
    missing = []
    for variant in config.variants:
        if not variant.required or variant.name in missing:
            continue
        selected = find_selected(config.selected_variants, variant.name)
        if selected is None or find_option(
            config.variants, selected.name, selected.option_value
        ) is None:
            missing.append(variant.name)
    return VariantValidation(is_valid=not missing, missing_variants=tuple(missing))


def _missing_below(option, selected_children, prefix):
    """Sub-levels are implicitly required: if an option declares them, pick one."""
    missing = []
    for sub_variant in option.sub_variants:
        label = f"{prefix} - {sub_variant.name}"
        chosen = find_selected(selected_children, sub_variant.name)
        sub_option = sub_variant.find_option(chosen.option_value) if chosen else None
        if sub_option is None:
            missing.append(label)
            continue
        missing.extend(_missing_below(sub_option, chosen.children, label))
    return missing


def validate_required_sub_variants(config):
    missing = []
    for selected in config.selected_variants:
        option = find_option(config.variants, selected.name, selected.option_value)
        if option is None:
            continue
        missing.extend(_missing_below(option, selected.children, selected.name))
    return SubVariantValidation(
        is_valid=not missing, missing_sub_variants=tuple(missing)
    )


def validate_required_addons(config):
    """Required add-ons (or required add-on options) need a quantity above 0."""
    missing = []
    for addon in config.addons:
        chosen = {
            selected.option_label
            for selected in config.selected_addons
            if selected.addon_name == addon.name
            and selected.quantity > 0
            and addon.find_option(selected.option_label) is not None
        }
        if addon.required and not chosen:
            missing.append(addon.name)
        elif any(o.required and o.label not in chosen for o in addon.options):
            missing.append(addon.name)

    # keep the first occurrence of duplicated add-on names
    missing = tuple(dict.fromkeys(missing))
    return AddonValidation(is_valid=not missing, missing_addons=missing)


def check_stock(available_stock, quantity):
    if available_stock <= 0:
        return StockCheck(
            is_valid=False,
            available_stock=available_stock,
            quantity=0,
            error="This product is out of stock",
        )
    if quantity > available_stock:
        return StockCheck(
            is_valid=True,
            available_stock=available_stock,
            quantity=available_stock,
            warning=f"Quantity reduced to available stock ({available_stock}).",
        )
    return StockCheck(is_valid=True, available_stock=available_stock, quantity=quantity)


def sync_quantity(quantity, available_stock):
    """Keep the product page's quantity picker within the available stock."""
    if available_stock <= 0:
        return 0
    if quantity > available_stock:
        return available_stock
    if quantity <= 0:
        return 1
    return quantity


def validate_add_to_cart(config, quantity):
    """Run the add-to-cart checks in order and report the first failure.

    Order: required variants, required sub-levels, required add-ons, stock.
    """
    available = calculate_available_stock(config)

    variants = validate_required_variants(config)
    if not variants.is_valid:
        return CartGate(
            is_valid=False,
            available_stock=available,
            error=f"Please select: {', '.join(variants.missing_variants)}",
        )

    sub_variants = validate_required_sub_variants(config)
    if not sub_variants.is_valid:
        return CartGate(
            is_valid=False,
            available_stock=available,
            error=f"Please select: {', '.join(sub_variants.missing_sub_variants)}",
        )

    addons = validate_required_addons(config)
    if not addons.is_valid:
        return CartGate(
            is_valid=False,
            available_stock=available,
            error=(
                "Please select required add-ons: "
                f"{', '.join(addons.missing_addons)}"
            ),
        )

    stock = check_stock(available, quantity)
    return CartGate(
        is_valid=stock.is_valid,
        quantity=stock.quantity,
        available_stock=available,
        error=stock.error,
        warning=stock.warning,
    )
