"""Tests for selection state updates and auto-selection."""
import pytest

from storefront.services.variants import (
    ProductConfiguration,
    SelectionState,
    Selector,
    auto_select,
    calculate_final_price,
    clear_selection,
    dump_selection,
    normalize_selection,
    parse_tree,
    prune_selection,
    select_option,
    select_sub_option,
    select_sub_sub_option,
    set_addon_quantity,
)

from conftest import COLOR_VARIANT, EXTRA_STRAPS, GIFT_WRAP, SIZE_VARIANT


def test_select_option_adds_entry(color_tree, empty_state):
    state = select_option(empty_state, color_tree.variants, "Color", "blue")
    assert [(s.name, s.option_value) for s in state.selected_variants] == [
        ("Color", "blue")
    ]
    # input state untouched
    assert empty_state.selected_variants == ()


def test_select_option_replaces_previous_choice_in_place(full_tree, empty_state):
    state = select_option(empty_state, full_tree.variants, "Color", "red")
    state = select_option(state, full_tree.variants, "Size", "S")
    state = select_option(state, full_tree.variants, "Color", "blue")
    assert [(s.name, s.option_value) for s in state.selected_variants] == [
        ("Color", "blue"),
        ("Size", "S"),
    ]


def test_sub_option_requires_parent_selection(size_tree, empty_state):
    state = select_sub_option(empty_state, size_tree.variants, "Size", "Finish", "matte")
    assert state == empty_state


def test_sub_option_is_stored_under_parent(size_tree, empty_state):
    state = select_option(empty_state, size_tree.variants, "Size", "L")
    state = select_sub_option(state, size_tree.variants, "Size", "Finish", "glossy")
    size = state.selected_variants[0]
    assert size.find_child("Finish").option_value == "glossy"


def test_changing_parent_drops_unreachable_children(size_tree, empty_state):
    state = select_option(empty_state, size_tree.variants, "Size", "L")
    state = select_sub_option(state, size_tree.variants, "Size", "Finish", "glossy")
    state = select_option(state, size_tree.variants, "Size", "S")
    assert state.selected_variants[0].children == ()


def test_reselecting_same_option_keeps_children(size_tree, empty_state):
    state = select_option(empty_state, size_tree.variants, "Size", "L")
    state = select_sub_option(state, size_tree.variants, "Size", "Finish", "matte")
    again = select_option(state, size_tree.variants, "Size", "L")
    assert again == state


def test_changing_sub_option_drops_sub_sub_selection(frame_tree, empty_state):
    variants = frame_tree.variants
    state = select_option(empty_state, variants, "Frame", "wood")
    state = select_sub_option(state, variants, "Frame", "Species", "oak")
    state = select_sub_sub_option(state, variants, "Frame", "Species", "Stain", "dark")
    species = state.selected_variants[0].find_child("Species")
    assert species.find_child("Stain").option_value == "dark"

    state = select_sub_option(state, variants, "Frame", "Species", "pine")
    species = state.selected_variants[0].find_child("Species")
    assert species.option_value == "pine"
    assert species.children == ()


def test_sub_sub_option_requires_grandparent(frame_tree, empty_state):
    variants = frame_tree.variants
    state = select_option(empty_state, variants, "Frame", "wood")
    unchanged = select_sub_sub_option(state, variants, "Frame", "Species", "Stain", "dark")
    assert unchanged == state


def test_unknown_option_is_ignored(color_tree, empty_state):
    assert select_option(empty_state, color_tree.variants, "Color", "green") == empty_state
    assert select_option(empty_state, color_tree.variants, "Shade", "red") == empty_state


def test_clear_selection_removes_subtree(size_tree, empty_state):
    state = select_option(empty_state, size_tree.variants, "Size", "L")
    state = select_sub_option(state, size_tree.variants, "Size", "Finish", "matte")
    assert clear_selection(state, ["Size", "Finish"]).selected_variants[0].children == ()
    assert clear_selection(state, ["Size"]).selected_variants == ()


def test_set_addon_quantity_upserts_and_prunes_zero(full_tree, empty_state):
    addons = full_tree.addons
    state = set_addon_quantity(empty_state, addons, "Extra Straps", "Leather", 2)
    state = set_addon_quantity(state, addons, "Extra Straps", "Nylon", 1)
    state = set_addon_quantity(state, addons, "Extra Straps", "Leather", 1)
    assert [(a.option_label, a.quantity) for a in state.selected_addons] == [
        ("Nylon", 1),
        ("Leather", 1),
    ]
    state = set_addon_quantity(state, addons, "Extra Straps", "Nylon", 0)
    assert [a.option_label for a in state.selected_addons] == ["Leather"]


def test_addon_quantity_is_capped(full_tree, empty_state):
    state = set_addon_quantity(empty_state, full_tree.addons, "Extra Straps", "Leather", 10)
    assert state.selected_addons[0].quantity == 3
    state = set_addon_quantity(state, full_tree.addons, "Gift Wrap", "Yes", 5)
    assert state.selected_addons[-1].quantity == 1


def test_radio_addon_keeps_one_option(empty_state):
    tree = parse_tree(
        addons=[
            {
                "name": "Warranty",
                "type": "radio",
                "options": [{"label": "1 year", "price": 0}, {"label": "3 years", "price": 500}],
            }
        ]
    )
    state = set_addon_quantity(empty_state, tree.addons, "Warranty", "1 year", 1)
    state = set_addon_quantity(state, tree.addons, "Warranty", "3 years", 1)
    assert [a.option_label for a in state.selected_addons] == ["3 years"]


def test_negative_addon_quantity_raises(full_tree, empty_state):
    with pytest.raises(ValueError):
        set_addon_quantity(empty_state, full_tree.addons, "Gift Wrap", "Yes", -1)


def test_unknown_addon_is_ignored(full_tree, empty_state):
    state = set_addon_quantity(empty_state, full_tree.addons, "Engraving", "Yes", 1)
    assert state == empty_state


def test_auto_select_picks_single_options_and_cascades():
    tree = parse_tree(
        [
            {"name": "Material", "options": [{"label": "Cotton", "value": "cotton"}]},
            {
                "name": "Size",
                "options": [
                    {
                        "label": "M",
                        "value": "M",
                        "subVariants": [
                            {
                                "name": "Fit",
                                "options": [
                                    {
                                        "label": "Slim",
                                        "value": "slim",
                                        "subSubVariants": [
                                            {
                                                "name": "Length",
                                                "options": [{"label": "Long", "value": "long"}],
                                            }
                                        ],
                                    }
                                ],
                            }
                        ],
                    }
                ],
            },
            COLOR_VARIANT,
        ]
    )
    state = auto_select(SelectionState(), tree.variants)
    assert dump_selection(state)["selectedVariants"] == [
        {"variantName": "Material", "optionValue": "cotton"},
        {
            "variantName": "Size",
            "optionValue": "M",
            "subVariants": [
                {
                    "subVariantName": "Fit",
                    "optionValue": "slim",
                    "subSubVariants": [
                        {"subSubVariantName": "Length", "optionValue": "long"}
                    ],
                }
            ],
        },
    ]


def test_auto_select_groups_same_named_variants(empty_state):
    tree = parse_tree(
        [
            {"name": "Color", "options": [{"label": "Red", "value": "red"}]},
            {"name": "Color", "options": [{"label": "Blue", "value": "blue"}]},
        ]
    )
    assert auto_select(empty_state, tree.variants) == empty_state


def test_auto_select_cascades_below_user_choice(empty_state):
    tree = parse_tree(
        [
            {
                "name": "Size",
                "options": [
                    {"label": "S", "value": "S"},
                    {
                        "label": "L",
                        "value": "L",
                        "subVariants": [
                            {"name": "Finish", "options": [{"label": "Matte", "value": "matte"}]}
                        ],
                    },
                ],
            }
        ]
    )
    state = select_option(empty_state, tree.variants, "Size", "L")
    state = auto_select(state, tree.variants)
    assert state.selected_variants[0].find_child("Finish").option_value == "matte"


def test_auto_select_never_overrides_and_is_idempotent(empty_state):
    tree = parse_tree(
        [
            {"name": "Material", "options": [{"label": "Cotton", "value": "cotton"}]},
            SIZE_VARIANT,
        ]
    )
    state = select_option(empty_state, tree.variants, "Size", "S")
    once = auto_select(state, tree.variants)
    twice = auto_select(once, tree.variants)
    assert once == twice
    assert once.selected_variants[0].option_value == "S"
    assert once.selected_variants[1].name == "Material"


def test_prune_selection_drops_stale_references(size_tree, empty_state):
    state = select_option(empty_state, size_tree.variants, "Size", "L")
    state = select_sub_option(state, size_tree.variants, "Size", "Finish", "glossy")
    edited = parse_tree(
        [
            {
                "name": "Size",
                "options": [
                    {
                        "label": "Large",
                        "value": "L",
                        "subVariants": [
                            {"name": "Finish", "options": [{"label": "Matte", "value": "matte"}]}
                        ],
                    }
                ],
            }
        ]
    )
    pruned = prune_selection(state, edited.variants)
    assert pruned.selected_variants[0].children == ()


def test_selector_auto_selects_on_load_and_after_changes():
    tree = parse_tree([COLOR_VARIANT], [GIFT_WRAP])
    selector = Selector(tree)
    assert selector.state.selected_variants == ()

    selector.select(["Color"], "blue")
    selector.set_addon_quantity("Gift Wrap", "Yes", 1)
    assert selector.state.selected_variants[0].option_value == "blue"
    assert selector.state.selected_addons[0].addon_name == "Gift Wrap"

    selector.replace_tree(
        parse_tree([{"name": "Color", "options": [{"label": "Red", "value": "red"}]}])
    )
    assert selector.state.selected_variants[0].option_value == "red"


def test_selection_parses_per_level_keys():
    state = SelectionState.model_validate(
        {
            "selectedVariants": [
                {
                    "variantName": "Size",
                    "optionValue": "L",
                    "optionLabel": "Large",
                    "subVariants": [{"subVariantName": "Finish", "optionValue": "glossy"}],
                }
            ],
            "selectedAddons": [
                {"addonName": "Gift Wrap", "optionLabel": "Yes", "quantity": 0}
            ],
        }
    )
    assert state.selected_variants[0].find_child("Finish").option_value == "glossy"
    assert state.selected_addons == ()


def test_posted_duplicates_collapse_to_last_entry():
    state = SelectionState.model_validate(
        {
            "selectedVariants": [
                {"variantName": "Color", "optionValue": "blue"},
                {"variantName": "Size", "optionValue": "S"},
                {"variantName": "Color", "optionValue": "blue"},
            ],
            "selectedAddons": [
                {"addonName": "Extra Straps", "optionLabel": "Leather", "quantity": 1},
                {"addonName": "Extra Straps", "optionLabel": "Leather", "quantity": 2},
            ],
        }
    )
    assert [(s.name, s.option_value) for s in state.selected_variants] == [
        ("Color", "blue"),
        ("Size", "S"),
    ]
    assert [a.quantity for a in state.selected_addons] == [2]

    tree = parse_tree([COLOR_VARIANT])
    config = ProductConfiguration.build(tree, state, base_price=1000)
    assert calculate_final_price(config) == 1200


def test_posted_duplicate_children_collapse():
    state = SelectionState.model_validate(
        {
            "selectedVariants": [
                {
                    "variantName": "Size",
                    "optionValue": "L",
                    "subVariants": [
                        {"subVariantName": "Finish", "optionValue": "matte"},
                        {"subVariantName": "Finish", "optionValue": "glossy"},
                    ],
                }
            ]
        }
    )
    children = state.selected_variants[0].children
    assert len(children) == 1
    assert children[0].option_value == "glossy"


def test_normalize_selection_applies_addon_rules():
    tree = parse_tree(
        [COLOR_VARIANT],
        [
            GIFT_WRAP,
            EXTRA_STRAPS,
            {
                "name": "Card",
                "type": "radio",
                "options": [{"label": "Birthday", "price": 20}, {"label": "Thanks", "price": 20}],
            },
        ],
    )
    posted = SelectionState.model_validate(
        {
            "selectedVariants": [{"variantName": "Color", "optionValue": "green"}],
            "selectedAddons": [
                {"addonName": "Gift Wrap", "optionLabel": "Yes", "quantity": 7},
                {"addonName": "Extra Straps", "optionLabel": "Nylon", "quantity": 9},
                {"addonName": "Card", "optionLabel": "Birthday", "quantity": 1},
                {"addonName": "Card", "optionLabel": "Thanks", "quantity": 3},
                {"addonName": "Engraving", "optionLabel": "Name", "quantity": 1},
            ],
        }
    )
    state = normalize_selection(posted, tree)
    assert state.selected_variants == ()
    assert [(a.addon_name, a.option_label, a.quantity) for a in state.selected_addons] == [
        ("Gift Wrap", "Yes", 1),
        ("Extra Straps", "Nylon", 3),
        ("Card", "Thanks", 1),
    ]


def test_normalize_lets_auto_select_replace_stale_choice():
    tree = parse_tree([{"name": "Color", "options": [{"label": "Red", "value": "red"}]}])
    posted = SelectionState.model_validate(
        {"selectedVariants": [{"variantName": "Color", "optionValue": "blue"}]}
    )
    assert auto_select(posted, tree.variants) == posted

    state = auto_select(normalize_selection(posted, tree), tree.variants)
    assert state.selected_variants[0].option_value == "red"


def test_selector_clear_reruns_auto_select():
    tree = parse_tree(
        [COLOR_VARIANT, {"name": "Material", "options": [{"label": "Cotton", "value": "cotton"}]}]
    )
    selector = Selector(tree)
    selector.select(["Color"], "red")
    selector.clear(["Material"])
    assert [s.name for s in selector.state.selected_variants] == ["Color", "Material"]

    selector.clear(["Color"])
    assert [s.name for s in selector.state.selected_variants] == ["Material"]
