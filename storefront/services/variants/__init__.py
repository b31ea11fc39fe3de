"""Product variant configuration, pricing and stock resolution."""
from storefront.services.variants.cart import (  # noqa: F401
    CartLine,
    calculate_line_unit_price,
    calculate_sale_price,
    is_on_sale,
    project_cart_line,
)
from storefront.services.variants.resolver import (  # noqa: F401
    ProductConfiguration,
    calculate_addons_total,
    calculate_available_stock,
    calculate_final_price,
    generate_configuration_summary,
    get_combined_specifications,
    get_variant_image,
)
from storefront.services.variants.selection import (  # noqa: F401
    SelectedAddon,
    SelectedVariant,
    SelectionState,
    Selector,
    auto_select,
    clear_selection,
    dump_selection,
    normalize_selection,
    prune_selection,
    select_option,
    select_path,
    select_sub_option,
    select_sub_sub_option,
    set_addon_quantity,
)
from storefront.services.variants.tree import (  # noqa: F401
    Addon,
    AddonOption,
    Option,
    ProductTree,
    Variant,
    dump_addons,
    dump_variants,
    parse_tree,
)
from storefront.services.variants.validator import (  # noqa: F401
    check_stock,
    sync_quantity,
    validate_add_to_cart,
    validate_required_addons,
    validate_required_sub_variants,
    validate_required_variants,
)
