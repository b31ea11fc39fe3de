"""Tests for parsing and serializing variant trees."""
import pytest
from pydantic import ValidationError

from storefront.services.variants import dump_variants, parse_tree
from storefront.services.variants.tree import find_option, tree_depth

from conftest import FRAME_VARIANT, SIZE_VARIANT


def test_parse_reads_camel_case_fields(size_tree):
    size = size_tree.variants[0]
    assert size.name == "Size"
    assert size.required is True
    large = size.find_option("L")
    assert not large.is_leaf
    glossy = large.find_sub_variant("Finish").find_option("glossy")
    assert glossy.is_leaf
    assert glossy.price_modifier == 50
    assert glossy.stock == 4


def test_sub_sub_variants_key_is_read_at_second_level(frame_tree):
    oak = find_option(frame_tree.variants, "Frame", "wood").find_sub_variant(
        "Species"
    ).find_option("oak")
    stain = oak.find_sub_variant("Stain")
    assert [o.value for o in stain.options] == ["natural", "dark"]
    assert tree_depth(frame_tree.variants) == 3


def test_text_sub_variants_are_treated_as_leaf():
    tree = parse_tree(
        [
            {
                "name": "Engraving",
                "type": "text",
                "options": [
                    {"label": "Yes", "value": "yes", "subVariants": "Name, Date"}
                ],
            }
        ]
    )
    assert tree.variants[0].options[0].is_leaf


def test_label_defaults_to_value():
    tree = parse_tree([{"name": "Size", "options": [{"value": "XL"}]}])
    assert tree.variants[0].options[0].label == "XL"


def test_tree_deeper_than_three_levels_is_rejected():
    leaf = {"label": "x", "value": "x"}
    level4 = {"name": "L4", "options": [leaf]}
    level3 = {"name": "L3", "options": [{"label": "c", "value": "c", "subVariants": [level4]}]}
    level2 = {"name": "L2", "options": [{"label": "b", "value": "b", "subVariants": [level3]}]}
    level1 = {"name": "L1", "options": [{"label": "a", "value": "a", "subVariants": [level2]}]}
    with pytest.raises(ValidationError):
        parse_tree([level1])


def test_unknown_variant_type_is_rejected():
    with pytest.raises(ValidationError):
        parse_tree([{"name": "Size", "type": "slider", "options": []}])


def test_dump_uses_per_level_child_keys(frame_tree):
    dumped = dump_variants(frame_tree.variants)
    wood = dumped[0]["options"][0]
    assert "subVariants" in wood
    oak = wood["subVariants"][0]["options"][0]
    assert "subSubVariants" in oak
    assert "subVariants" not in oak
    assert parse_tree(dumped) == frame_tree


def test_dump_keeps_price_and_stock_names(size_tree):
    dumped = dump_variants(size_tree.variants)
    small = dumped[0]["options"][1]
    assert small["priceModifier"] == -20
    assert small["stock"] == 7
    assert parse_tree([SIZE_VARIANT, FRAME_VARIANT]).variants[0] == size_tree.variants[0]
