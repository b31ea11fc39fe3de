"""Variant and add-on tree models.

A product's variant tree is at most three levels deep:

    Variant -> Option -> SubVariant -> SubOption -> SubSubVariant -> SubSubOption

All three levels share the same node types. Only the JSON key that holds an
option's children changes with depth ("subVariants" under a top-level option,
"subSubVariants" under a sub option). An option with no children is a leaf,
and only leaves contribute stock and price to a resolved configuration.
"""
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

MAX_DEPTH = 3

# JSON keys per level (1 = top level)
NAME_KEYS = {1: "variantName", 2: "subVariantName", 3: "subSubVariantName"}
CHILD_KEYS = {1: "subVariants", 2: "subSubVariants"}

VariantType = Literal["color", "text", "size", "dropdown"]
AddonType = Literal["checkbox", "radio", "quantity"]


class _Node(BaseModel):
    model_config = ConfigDict(
        frozen=True, alias_generator=to_camel, populate_by_name=True
    )


class Specification(_Node):
    name: str
    value: str


class Option(_Node):
    label: str
    value: str
    price_modifier: int = 0  # minor units, may be negative
    stock: int = 0
    image: Optional[str] = None
    sku: Optional[str] = None
    specifications: tuple[Specification, ...] = ()
    sub_variants: tuple["Variant", ...] = ()

    @model_validator(mode="before")
    @classmethod
    def _normalize(cls, data):
        if not isinstance(data, dict):
            return data
        data = dict(data)
        if "subSubVariants" in data:
            data.setdefault("subVariants", data.pop("subSubVariants"))
        # Legacy products stored sub-variants as free text; those carry no tree.
        for key in ("subVariants", "sub_variants"):
            if key in data and not isinstance(data[key], (list, tuple)):
                data.pop(key)
        if "label" not in data and "value" in data:
            data["label"] = data["value"]
        return data

    @property
    def is_leaf(self):
        return not self.sub_variants

    def find_sub_variant(self, name):
        for sub_variant in self.sub_variants:
            if sub_variant.name == name:
                return sub_variant
        return None


class Variant(_Node):
    name: str
    type: VariantType = "dropdown"
    required: bool = False
    options: tuple[Option, ...] = ()

    def find_option(self, value):
        for option in self.options:
            if option.value == value:
                return option
        return None


Option.model_rebuild()


class AddonOption(_Node):
    label: str
    price: int = 0
    required: bool = False
    description: Optional[str] = None
    image: Optional[str] = None


class Addon(_Node):
    name: str
    description: Optional[str] = None
    type: AddonType = "quantity"
    required: bool = False
    max_quantity: int = Field(0, ge=0)  # 0 = unlimited
    options: tuple[AddonOption, ...] = ()

    def find_option(self, label):
        for option in self.options:
            if option.label == label:
                return option
        return None


class ProductTree(_Node):
    """A product's variant tree plus its add-ons, as parsed from JSON."""

    variants: tuple[Variant, ...] = ()
    addons: tuple[Addon, ...] = ()

    @model_validator(mode="after")
    def _check_depth(self):
        depth = tree_depth(self.variants)
        if depth > MAX_DEPTH:
            raise ValueError(
                f"variant tree is {depth} levels deep, at most {MAX_DEPTH} allowed"
            )
        return self


def tree_depth(variants):
    if not variants:
        return 0
    return 1 + max(
        (tree_depth(option.sub_variants) for v in variants for option in v.options),
        default=0,
    )


def find_variant(variants, name):
    for variant in variants:
        if variant.name == name:
            return variant
    return None


def find_option(variants, variant_name, option_value):
    """Look up an option by variant name and value.

    Same-named variants are searched in declaration order, so legacy trees that
    split one variant into several entries still resolve.
    """
    for variant in variants:
        if variant.name == variant_name:
            option = variant.find_option(option_value)
            if option is not None:
                return option
    return None


def find_addon(addons, name):
    for addon in addons:
        if addon.name == name:
            return addon
    return None


def parse_tree(variants=None, addons=None):
    """Validate raw JSON variants/add-ons into a ProductTree.

    Raises pydantic.ValidationError on malformed input.
    """
    return ProductTree.model_validate(
        {"variants": variants or [], "addons": addons or []}
    )


def dump_variants(variants, depth=1):
    """Serialize variants back to JSON using the per-level child keys."""
    out = []
    for variant in variants:
        data = variant.model_dump(by_alias=True, exclude={"options"})
        data["options"] = []
        for option in variant.options:
            item = option.model_dump(
                by_alias=True, exclude={"sub_variants"}, exclude_none=True
            )
            if option.sub_variants:
                item[CHILD_KEYS[depth]] = dump_variants(option.sub_variants, depth + 1)
            data["options"].append(item)
        out.append(data)
    return out


def dump_addons(addons):
    return [addon.model_dump(by_alias=True, exclude_none=True) for addon in addons]
