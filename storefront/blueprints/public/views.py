"""Public product endpoints: variant trees, quotes and cart lines."""
from flask import abort, current_app, request
from storefront.blueprints.public import public_bp
from storefront.blueprints.public.schemas import (
    CartLineRequest,
    QuoteRequest,
    SelectionRequest,
)
from storefront.services import sale_service
from storefront.services.product_service import (
    build_configuration,
    get_visible_product,
    initial_selection,
)
from storefront.services.variants import (
    auto_select,
    calculate_available_stock,
    calculate_final_price,
    clear_selection,
    dump_selection,
    generate_configuration_summary,
    get_combined_specifications,
    get_variant_image,
    normalize_selection,
    project_cart_line,
    select_path,
    set_addon_quantity,
    validate_add_to_cart,
    validate_required_addons,
    validate_required_sub_variants,
    validate_required_variants,
)


def _product_or_404(slug):
    product = get_visible_product(slug)
    if not product:
        abort(404)
    return product


def _quote(product, tree, state):
    config = build_configuration(product, state, tree)
    sale = sale_service.find_best_sale(product)
    return {
        "selection": dump_selection(state),
        "price": calculate_final_price(config),
        "availableStock": calculate_available_stock(config),
        "image": get_variant_image(config),
        "discountPercent": sale_service.effective_discount(product, sale),
        "specifications": [
            s.model_dump() for s in get_combined_specifications(config)
        ],
        "variantValidation": validate_required_variants(config).model_dump(
            by_alias=True
        ),
        "subVariantValidation": validate_required_sub_variants(config).model_dump(
            by_alias=True
        ),
        "addonValidation": validate_required_addons(config).model_dump(
            by_alias=True
        ),
        "summary": generate_configuration_summary(config).model_dump(by_alias=True),
    }


@public_bp.route("/products/<slug>")
def product_detail(slug):
    """Product with its variant tree and the auto-selected starting selection."""
    product = _product_or_404(slug)
    tree = product.tree()
    data = product.to_dict()
    data.update(_quote(product, tree, initial_selection(product, tree)))
    return data


@public_bp.route("/products/<slug>/selection", methods=["POST"])
def update_selection(slug):
    """Apply one selection change and return the new state with its quote."""
    product = _product_or_404(slug)
    body = SelectionRequest.model_validate(request.get_json(force=True) or {})
    tree = product.tree()
    action = body.action
    state = normalize_selection(body.selection, tree)

    if action.type == "option":
        state = select_path(state, tree.variants, action.path, action.value)
    elif action.type == "clear":
        state = clear_selection(state, action.path)
    else:
        state = set_addon_quantity(
            state, tree.addons, action.addon_name, action.option_label, action.quantity
        )

    # New options may have become reachable
    state = auto_select(state, tree.variants)
    return _quote(product, tree, state)


@public_bp.route("/products/<slug>/quote", methods=["POST"])
def quote(slug):
    product = _product_or_404(slug)
    body = QuoteRequest.model_validate(request.get_json(force=True) or {})
    tree = product.tree()
    return _quote(product, tree, normalize_selection(body.selection, tree))


@public_bp.route("/products/<slug>/cart-line", methods=["POST"])
def cart_line(slug):
    """Validate the configuration and build the line for the cart service."""
    product = _product_or_404(slug)
    body = CartLineRequest.model_validate(request.get_json(force=True) or {})
    tree = product.tree()
    state = normalize_selection(body.selection, tree)
    config = build_configuration(product, state, tree)

    quantity = min(body.quantity, current_app.config["MAX_LINE_QUANTITY"])
    gate = validate_add_to_cart(config, quantity)
    if not gate.is_valid:
        return {"error": gate.error}, 422

    sale = sale_service.find_best_sale(product)
    line = project_cart_line(
        config,
        product_id=product.id,
        name=product.name,
        quantity=gate.quantity,
        slug=product.slug,
        discount_percent=sale_service.effective_discount(product, sale),
        sale_name=sale["name"] if sale else None,
        sale_percent=sale["discount_percent"] if sale else None,
    )
    return {"item": line.to_payload(), "warning": gate.warning}, 201
