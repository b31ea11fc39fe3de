"""Price, stock and image resolution for a configured product.

Everything here is a pure function of a ProductConfiguration, so callers can
recompute freely on every selection change.
"""
from typing import NamedTuple, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from storefront.services.variants.selection import (
    SelectedAddon,
    SelectedVariant,
    find_selected,
)
from storefront.services.variants.tree import (
    Addon,
    Specification,
    Variant,
    find_addon,
    find_option,
)


class _Model(BaseModel):
    model_config = ConfigDict(
        frozen=True, alias_generator=to_camel, populate_by_name=True
    )


class ProductConfiguration(_Model):
    """Product tree merged with the customer's current selections.

    Built fresh for every evaluation and never stored. ``stock`` is the
    product's own stock, which only applies when it has no variants.
    """

    base_price: int
    stock: int = 0
    variants: tuple[Variant, ...] = ()
    addons: tuple[Addon, ...] = ()
    images: tuple[str, ...] = ()
    specifications: tuple[Specification, ...] = ()
    selected_variants: tuple[SelectedVariant, ...] = ()
    selected_addons: tuple[SelectedAddon, ...] = ()

    @classmethod
    def build(cls, tree, state, base_price, stock=0, images=(), specifications=()):
        return cls(
            base_price=base_price,
            stock=stock,
            variants=tree.variants,
            addons=tree.addons,
            images=tuple(images or ()),
            specifications=tuple(specifications or ()),
            selected_variants=state.selected_variants,
            selected_addons=state.selected_addons,
        )


class Resolution(NamedTuple):
    leaves: tuple
    complete: bool


def _resolve_option(option, selected_children):
    """Collect the leaves reached from option through the chosen children.

    The chain is complete only when every declared sub-level on the way down
    has a selection that resolves.
    """
    if option.is_leaf:
        return Resolution((option,), True)
    leaves = ()
    complete = True
    for sub_variant in option.sub_variants:
        chosen = find_selected(selected_children, sub_variant.name)
        sub_option = sub_variant.find_option(chosen.option_value) if chosen else None
        if sub_option is None:
            complete = False
            continue
        below = _resolve_option(sub_option, chosen.children)
        leaves += below.leaves
        complete = complete and below.complete
    return Resolution(leaves, complete)


def resolve_selection(variants, selected):
    """Walk one top-level selection down to its leaves.

    Returns None when the selection doesn't match the tree at all, which
    callers treat the same as no selection.
    """
    option = find_option(variants, selected.name, selected.option_value)
    if option is None:
        return None
    return _resolve_option(option, selected.children)


def calculate_addons_total(config):
    total = 0
    for selected in config.selected_addons:
        addon = find_addon(config.addons, selected.addon_name)
        option = addon.find_option(selected.option_label) if addon else None
        if option is not None:
            total += option.price * selected.quantity
    return total


def calculate_final_price(config):
    """Base price plus leaf price modifiers plus add-ons.

    Options that have sub-variants never contribute their own modifier. The
    result is not clamped; display code decides what to do with a negative.
    """
    price = config.base_price
    for selected in config.selected_variants:
        resolution = resolve_selection(config.variants, selected)
        if resolution is None:
            continue
        price += sum(leaf.price_modifier for leaf in resolution.leaves)
    return price + calculate_addons_total(config)


def calculate_available_stock(config):
    """Stock available for the current selection.

    Products without variants report their own stock. Otherwise the answer is
    the lowest leaf stock across the selected chains, and 0 while any selected
    chain still stops short of a leaf: nothing is purchasable until the
    customer has picked all the way down.
    """
    if not config.variants:
        return config.stock

    stocks = []
    for selected in config.selected_variants:
        resolution = resolve_selection(config.variants, selected)
        if resolution is None:
            continue
        if not resolution.complete:
            return 0
        stocks.extend(leaf.stock for leaf in resolution.leaves)
    if not stocks:
        return 0
    return max(0, min(stocks))


def _deepest_image(option, selected_children):
    for sub_variant in option.sub_variants:
        chosen = find_selected(selected_children, sub_variant.name)
        sub_option = sub_variant.find_option(chosen.option_value) if chosen else None
        if sub_option is not None:
            image = _deepest_image(sub_option, chosen.children)
            if image:
                return image
    return option.image or None


def get_variant_image(config) -> Optional[str]:
    """Image for the most specific selected option, else the product's first."""
    for selected in config.selected_variants:
        option = find_option(config.variants, selected.name, selected.option_value)
        if option is None:
            continue
        image = _deepest_image(option, selected.children)
        if image:
            return image
    return config.images[0] if config.images else None


def _walk_selected(options_of, selections, prefix=()):
    """Yield (path, option) for every resolvable selection, parents first."""
    for selected in selections:
        option = options_of(selected)
        if option is None:
            continue
        path = prefix + (selected.name,)
        yield path, option

        def child_option(child, option=option):
            sub_variant = option.find_sub_variant(child.name)
            return sub_variant.find_option(child.option_value) if sub_variant else None

        yield from _walk_selected(child_option, selected.children, path)


def iter_selected_options(config):
    def top_option(selected):
        return find_option(config.variants, selected.name, selected.option_value)

    return _walk_selected(top_option, config.selected_variants)


def get_combined_specifications(config):
    """Product specifications with selected options' specifications applied.

    A selected option's specification replaces the product's entry of the same
    name in place; new names are appended. Deeper options win.
    """
    combined = {spec.name: spec for spec in config.specifications}
    for _, option in iter_selected_options(config):
        for spec in option.specifications:
            combined[spec.name] = spec
    return tuple(combined.values())


class SummaryVariant(_Model):
    name: str
    value: str


class SummaryAddon(_Model):
    name: str
    option: str
    quantity: int
    price: int


class ConfigurationSummary(_Model):
    variants: tuple[SummaryVariant, ...]
    addons: tuple[SummaryAddon, ...]
    total_price: int
    available_stock: int


def generate_configuration_summary(config):
    variants = tuple(
        SummaryVariant(name=" - ".join(path), value=option.label)
        for path, option in iter_selected_options(config)
    )
    addons = []
    for selected in config.selected_addons:
        addon = find_addon(config.addons, selected.addon_name)
        option = addon.find_option(selected.option_label) if addon else None
        addons.append(
            SummaryAddon(
                name=selected.addon_name,
                option=selected.option_label,
                quantity=selected.quantity,
                price=(option.price if option else 0) * selected.quantity,
            )
        )
    return ConfigurationSummary(
        variants=variants,
        addons=tuple(addons),
        total_price=calculate_final_price(config),
        available_stock=calculate_available_stock(config),
    )
