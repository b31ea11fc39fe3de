"""Flask CLI commands for catalog operations."""
import json

import click
from flask import current_app
from pydantic import ValidationError


def _parse_select(value):
    """'Size/Finish=Glossy' -> (("Size", "Finish"), "Glossy")"""
    if "=" not in value:
        raise click.BadParameter(f"expected PATH=VALUE, got {value!r}")
    path, option_value = value.split("=", 1)
    names = tuple(p.strip() for p in path.split("/") if p.strip())
    if not names:
        raise click.BadParameter(f"empty variant path in {value!r}")
    return names, option_value.strip()


def _parse_addon(value):
    """'Gift Wrap:Yes=2' -> ("Gift Wrap", "Yes", 2)"""
    try:
        name_label, quantity = value.rsplit("=", 1)
        addon_name, option_label = name_label.split(":", 1)
        quantity = int(quantity)
    except ValueError:
        raise click.BadParameter(f"expected NAME:LABEL=QTY, got {value!r}")
    if quantity < 0:
        raise click.BadParameter(f"add-on quantity must be 0 or more, got {quantity}")
    return addon_name.strip(), option_label.strip(), quantity


def register_cli(app):
    @app.cli.command("init-db")
    def init_db():
        """Create all tables."""
        from storefront.extensions import db

        db.create_all()
        click.echo("Database initialized.")

    @app.cli.command("seed-demo")
    def seed_demo():
        """Seed demo products and a sale (idempotent)."""
        from datetime import datetime, timedelta, timezone
        from storefront.extensions import db
        from storefront.models.product import Product
        from storefront.models.sale import Sale
        from storefront.services.product_service import import_product

        # Only seed if no products exist yet
        if Product.query.first():
            click.echo("Products already exist, skipping demo seed.")
            return

        demo_products = [
            {
                "name": "Classic Cotton Tee",
                "category": "tops",
                "price": 99900,
                "status": "PUBLISHED",
                "images": ["https://cdn.example.com/tee.jpg"],
                "variants": [
                    {
                        "name": "Color",
                        "type": "color",
                        "required": True,
                        "options": [
                            {"label": "Red", "value": "red", "stock": 5},
                            {
                                "label": "Blue",
                                "value": "blue",
                                "stock": 3,
                                "priceModifier": 20000,
                                "image": "https://cdn.example.com/tee-blue.jpg",
                            },
                        ],
                    }
                ],
                "addons": [
                    {
                        "name": "Gift Wrap",
                        "type": "checkbox",
                        "options": [{"label": "Yes", "price": 10000}],
                    }
                ],
            },
            {
                "name": "Oak Dining Table",
                "category": "furniture",
                "price": 4500000,
                "status": "PUBLISHED",
                "variants": [
                    {
                        "name": "Size",
                        "type": "size",
                        "required": True,
                        "options": [
                            {
                                "label": "Large",
                                "value": "L",
                                "subVariants": [
                                    {
                                        "name": "Finish",
                                        "type": "dropdown",
                                        "options": [
                                            {"label": "Matte", "value": "matte", "stock": 10},
                                            {
                                                "label": "Glossy",
                                                "value": "glossy",
                                                "stock": 4,
                                                "priceModifier": 5000,
                                            },
                                        ],
                                    }
                                ],
                            }
                        ],
                    }
                ],
            },
            {
                "name": "Ceramic Mug",
                "category": "kitchen",
                "price": 45000,
                "stock": 40,
                "status": "PUBLISHED",
            },
        ]
        for data in demo_products:
            import_product(data)
        click.echo(f"Seeded {len(demo_products)} demo products.")

        db.session.add(
            Sale(
                name="Furniture Week",
                discount_percent=20,
                category_slugs=["furniture"],
                ends_at=datetime.now(timezone.utc) + timedelta(days=7),
            )
        )
        db.session.commit()
        click.echo("Seeded 1 sale.")

    @app.cli.command("import-product")
    @click.argument("path", type=click.Path(exists=True, dir_okay=False))
    def import_product_cmd(path):
        """Create or update a product from a JSON file."""
        from storefront.services.product_service import import_product

        with open(path, encoding="utf-8") as fh:
            data = json.load(fh)
        try:
            product, created = import_product(data)
        except ValidationError as e:
            raise click.ClickException(f"Invalid product file:\n{e}")
        click.echo(f"{'Created' if created else 'Updated'}: {product.slug} ({product.name})")

    @app.cli.command("quote")
    @click.argument("slug")
    @click.option("--select", "selects", multiple=True, help="PATH=VALUE, e.g. Size/Finish=glossy")
    @click.option("--addon", "addons", multiple=True, help="NAME:LABEL=QTY")
    @click.option("--quantity", default=1, type=int)
    def quote(slug, selects, addons, quantity):
        """Price a product configuration from the command line."""
        from storefront.services.product_service import (
            build_configuration,
            get_product_by_slug,
        )
        from storefront.services.variants import (
            Selector,
            calculate_available_stock,
            calculate_final_price,
            validate_add_to_cart,
        )

        product = get_product_by_slug(slug)
        if not product:
            raise click.ClickException(f"No product with slug {slug!r}")

        selector = Selector(product.tree())
        for value in selects:
            path, option_value = _parse_select(value)
            selector.select(path, option_value)
        for value in addons:
            selector.set_addon_quantity(*_parse_addon(value))

        config = build_configuration(product, selector.state, selector.tree)
        gate = validate_add_to_cart(config, quantity)
        click.echo(f"Price: {calculate_final_price(config)}")
        click.echo(f"Available stock: {calculate_available_stock(config)}")
        if gate.is_valid:
            click.echo(f"OK to add {gate.quantity}")
        else:
            click.echo(f"Blocked: {gate.error}")
        if gate.warning:
            click.echo(f"Warning: {gate.warning}")

    @app.cli.command("stats")
    def stats():
        """Show product statistics."""
        from storefront.services.product_service import get_stats

        s = get_stats()
        total = sum(s.values())
        click.echo(f"Total products: {total}")
        for status, count in sorted(s.items()):
            click.echo(f"  {status}: {count}")
        click.echo(f"Max line quantity: {current_app.config['MAX_LINE_QUANTITY']}")
