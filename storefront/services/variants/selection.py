"""Customer selection state for a product's variant tree and add-ons.

Selection state is immutable: every operation returns a new SelectionState and
leaves its input untouched. The tree is passed in alongside the state so
operations can drop child selections that are no longer reachable.
"""
import logging

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from storefront.services.variants.tree import (
    CHILD_KEYS,
    MAX_DEPTH,
    NAME_KEYS,
    find_addon,
    find_option,
)

logger = logging.getLogger(__name__)


def _last_wins(items, key):
    """Collapse entries sharing a key: the last one wins, at the first one's position."""
    latest = {}
    for item in items:
        latest[key(item)] = item
    out = []
    for item in items:
        k = key(item)
        if latest.get(k) is not None:
            out.append(latest.pop(k))
    return tuple(out)


class _Selection(BaseModel):
    model_config = ConfigDict(
        frozen=True, alias_generator=to_camel, populate_by_name=True
    )


class SelectedVariant(_Selection):
    """A chosen option at any level, with the selections made beneath it."""

    name: str
    option_value: str
    children: tuple["SelectedVariant", ...] = ()

    @model_validator(mode="before")
    @classmethod
    def _normalize(cls, data):
        if not isinstance(data, dict):
            return data
        data = dict(data)
        for key in NAME_KEYS.values():
            if key in data:
                data.setdefault("name", data.pop(key))
        for key in CHILD_KEYS.values():
            if key in data:
                data.setdefault("children", data.pop(key))
        if data.get("children") is None:
            data.pop("children", None)
        return data

    @field_validator("children")
    @classmethod
    def _one_per_name(cls, value):
        return _last_wins(value, lambda s: s.name)

    def find_child(self, name):
        return find_selected(self.children, name)


SelectedVariant.model_rebuild()


class SelectedAddon(_Selection):
    addon_name: str
    option_label: str
    quantity: int = Field(1, ge=0)


class SelectionState(_Selection):
    selected_variants: tuple[SelectedVariant, ...] = ()
    selected_addons: tuple[SelectedAddon, ...] = ()

    @field_validator("selected_variants")
    @classmethod
    def _one_per_variant(cls, value):
        return _last_wins(value, lambda s: s.name)

    @field_validator("selected_addons")
    @classmethod
    def _drop_empty_addons(cls, value):
        value = _last_wins(value, lambda a: (a.addon_name, a.option_label))
        return tuple(a for a in value if a.quantity > 0)


def find_selected(selections, name):
    for selected in selections:
        if selected.name == name:
            return selected
    return None


def _upsert(selections, new):
    """Replace the selection with new.name in place, or append it."""
    out = []
    replaced = False
    for selected in selections:
        if selected.name == new.name:
            out.append(new)
            replaced = True
        else:
            out.append(selected)
    if not replaced:
        out.append(new)
    return tuple(out)


def _prune(selections, sub_variants):
    """Keep only the selections that still resolve against sub_variants."""
    kept = []
    for selected in selections:
        sub_variant = None
        for candidate in sub_variants:
            if candidate.name == selected.name:
                sub_variant = candidate
                break
        if sub_variant is None:
            continue
        option = sub_variant.find_option(selected.option_value)
        if option is None:
            continue
        children = _prune(selected.children, option.sub_variants)
        if children != selected.children:
            selected = selected.model_copy(update={"children": children})
        kept.append(selected)
    return tuple(kept)


def _select(selections, variants, path, option_value):
    """Set the option at the end of path, or return None if path doesn't resolve."""
    name = path[0]
    current = find_selected(selections, name)

    if len(path) == 1:
        option = find_option(variants, name, option_value)
        if option is None:
            return None
        children = _prune(current.children, option.sub_variants) if current else ()
        return _upsert(
            selections,
            SelectedVariant(name=name, option_value=option_value, children=children),
        )

    if current is None:
        return None
    option = find_option(variants, name, current.option_value)
    if option is None:
        return None
    children = _select(current.children, option.sub_variants, path[1:], option_value)
    if children is None:
        return None
    return _upsert(selections, current.model_copy(update={"children": children}))


def select_path(state, variants, path, option_value):
    """Select option_value for the variant at path (1 to 3 names, top level first).

    Deeper levels require their parents to be selected already. A path that
    doesn't resolve against the tree leaves the state unchanged.
    """
    path = tuple(path)
    if not path or len(path) > MAX_DEPTH:
        logger.warning("Ignoring selection with invalid path %r", path)
        return state
    selected = _select(state.selected_variants, variants, path, option_value)
    if selected is None:
        logger.warning(
            "Ignoring selection %s=%r: not reachable in variant tree",
            " / ".join(path),
            option_value,
        )
        return state
    return state.model_copy(update={"selected_variants": selected})


def select_option(state, variants, variant_name, option_value):
    return select_path(state, variants, (variant_name,), option_value)


def select_sub_option(state, variants, variant_name, sub_variant_name, option_value):
    return select_path(state, variants, (variant_name, sub_variant_name), option_value)


def select_sub_sub_option(
    state, variants, variant_name, sub_variant_name, sub_sub_variant_name, option_value
):
    return select_path(
        state,
        variants,
        (variant_name, sub_variant_name, sub_sub_variant_name),
        option_value,
    )


def _clear(selections, path):
    if len(path) == 1:
        return tuple(s for s in selections if s.name != path[0])
    current = find_selected(selections, path[0])
    if current is None:
        return selections
    children = _clear(current.children, path[1:])
    return _upsert(selections, current.model_copy(update={"children": children}))


def clear_selection(state, path):
    """Remove the selection at path together with everything beneath it."""
    path = tuple(path)
    if not path:
        return state
    return state.model_copy(
        update={"selected_variants": _clear(state.selected_variants, path)}
    )


def set_addon_quantity(state, addons, addon_name, option_label, quantity):
    """Set how many of an add-on option the customer wants.

    Quantity 0 removes the entry. Checkbox and radio add-ons hold at most one of
    an option, quantity add-ons are capped at max_quantity when one is set, and
    picking a radio option drops the add-on's other options.
    """
    if quantity < 0:
        raise ValueError("quantity must be >= 0")

    remaining = tuple(
        a
        for a in state.selected_addons
        if not (a.addon_name == addon_name and a.option_label == option_label)
    )
    if quantity == 0:
        return state.model_copy(update={"selected_addons": remaining})

    addon = find_addon(addons, addon_name)
    if addon is None or addon.find_option(option_label) is None:
        logger.warning(
            "Ignoring add-on %r / %r: not offered for this product",
            addon_name,
            option_label,
        )
        return state

    if addon.type in ("checkbox", "radio"):
        quantity = 1
    elif addon.max_quantity:
        quantity = min(quantity, addon.max_quantity)

    if addon.type == "radio":
        remaining = tuple(a for a in remaining if a.addon_name != addon_name)

    entry = SelectedAddon(
        addon_name=addon_name, option_label=option_label, quantity=quantity
    )
    return state.model_copy(update={"selected_addons": remaining + (entry,)})


def _cascade(selected, resolve):
    """Auto-select single-option sub-levels beneath an already selected option."""
    option = resolve(selected)
    if option is None:
        return selected
    children = selected.children
    for sub_variant in option.sub_variants:
        if len(sub_variant.options) == 1 and find_selected(children, sub_variant.name) is None:
            children = children + (
                SelectedVariant(
                    name=sub_variant.name, option_value=sub_variant.options[0].value
                ),
            )

    def child_option(child):
        sub_variant = option.find_sub_variant(child.name)
        return sub_variant.find_option(child.option_value) if sub_variant else None

    children = tuple(_cascade(child, child_option) for child in children)
    if children == selected.children:
        return selected
    return selected.model_copy(update={"children": children})


def auto_select(state, variants):
    """Fill in every choice that has exactly one possible answer.

    Top-level variants are grouped by name first, so a name only counts as
    single-option when all of its entries together offer one option. Selection
    then cascades down each selected chain into sub-levels that offer a single
    option. Existing selections are never replaced, which makes this safe to
    run again whenever the tree or the selection changes.
    """
    grouped = {}
    for variant in variants:
        grouped.setdefault(variant.name, []).extend(variant.options)

    selections = state.selected_variants
    for name, options in grouped.items():
        if len(options) == 1 and find_selected(selections, name) is None:
            selections = selections + (
                SelectedVariant(name=name, option_value=options[0].value),
            )

    def top_option(selected):
        return find_option(variants, selected.name, selected.option_value)

    selections = tuple(_cascade(selected, top_option) for selected in selections)
    if selections == state.selected_variants:
        return state
    return state.model_copy(update={"selected_variants": selections})


def prune_selection(state, variants):
    """Drop selections that no longer resolve against a (changed) tree."""
    kept = []
    for selected in state.selected_variants:
        option = find_option(variants, selected.name, selected.option_value)
        if option is None:
            continue
        children = _prune(selected.children, option.sub_variants)
        kept.append(selected.model_copy(update={"children": children}))
    kept = tuple(kept)
    if kept == state.selected_variants:
        return state
    return state.model_copy(update={"selected_variants": kept})


def normalize_selection(state, tree):
    """Bring a selection that came from outside back in line with the tree.

    Stale variant selections are pruned, add-ons the tree doesn't offer are
    dropped, and add-on quantities are replayed through set_addon_quantity so
    the checkbox, radio and max_quantity rules hold. Radio add-ons keep the
    last listed option.
    """
    state = prune_selection(state, tree.variants)
    addons = state.selected_addons
    state = state.model_copy(update={"selected_addons": ()})
    for selected in addons:
        state = set_addon_quantity(
            state,
            tree.addons,
            selected.addon_name,
            selected.option_label,
            selected.quantity,
        )
    return state


def dump_selected_variants(selections, depth=1):
    """Serialize selections using the per-level JSON keys."""
    out = []
    for selected in selections:
        item = {NAME_KEYS[depth]: selected.name, "optionValue": selected.option_value}
        if selected.children and depth in CHILD_KEYS:
            item[CHILD_KEYS[depth]] = dump_selected_variants(selected.children, depth + 1)
        out.append(item)
    return out


def dump_selection(state):
    return {
        "selectedVariants": dump_selected_variants(state.selected_variants),
        "selectedAddons": [
            a.model_dump(by_alias=True) for a in state.selected_addons
        ],
    }


class Selector:
    """Owns the selection state for one product page.

    This is the single writer of the state: UI events call its methods, and
    the resolver only ever reads ``selector.state``.
    """

    def __init__(self, tree, state=None):
        self.tree = tree
        state = normalize_selection(state or SelectionState(), tree)
        self.state = auto_select(state, tree.variants)

    def select(self, path, option_value):
        state = select_path(self.state, self.tree.variants, path, option_value)
        self.state = auto_select(state, self.tree.variants)
        return self.state

    def clear(self, path):
        state = clear_selection(self.state, path)
        self.state = auto_select(state, self.tree.variants)
        return self.state

    def set_addon_quantity(self, addon_name, option_label, quantity):
        self.state = set_addon_quantity(
            self.state, self.tree.addons, addon_name, option_label, quantity
        )
        return self.state

    def replace_tree(self, tree):
        """Swap in fresh product data, keeping whatever selections still apply."""
        self.tree = tree
        state = normalize_selection(self.state, tree)
        self.state = auto_select(state, tree.variants)
        return self.state
