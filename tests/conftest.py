import pytest
from storefront import create_app
from storefront.extensions import db as _db
from storefront.services.variants import SelectionState, parse_tree


@pytest.fixture(scope="session")
def app():
    """Create application for testing."""
    app = create_app("testing")
    with app.app_context():
        _db.create_all()
        yield app
        _db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def db(app):
    """Per-test database session with rollback."""
    with app.app_context():
        _db.session.begin_nested()
        yield _db
        _db.session.rollback()


COLOR_VARIANT = {
    "name": "Color",
    "type": "color",
    "required": True,
    "options": [
        {"label": "Red", "value": "red", "stock": 5, "priceModifier": 0},
        {
            "label": "Blue",
            "value": "blue",
            "stock": 3,
            "priceModifier": 200,
            "image": "blue.jpg",
        },
    ],
}

SIZE_VARIANT = {
    "name": "Size",
    "type": "size",
    "required": True,
    "options": [
        {
            "label": "Large",
            "value": "L",
            # ignored: L has sub-variants
            "stock": 99,
            "priceModifier": 999,
            "image": "large.jpg",
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
                            "priceModifier": 50,
                        },
                    ],
                }
            ],
        },
        {"label": "Small", "value": "S", "stock": 7, "priceModifier": -20},
    ],
}

FRAME_VARIANT = {
    "name": "Frame",
    "type": "dropdown",
    "options": [
        {
            "label": "Wood",
            "value": "wood",
            "subVariants": [
                {
                    "name": "Species",
                    "options": [
                        {
                            "label": "Oak",
                            "value": "oak",
                            "image": "oak.jpg",
                            "subSubVariants": [
                                {
                                    "name": "Stain",
                                    "options": [
                                        {
                                            "label": "Natural",
                                            "value": "natural",
                                            "stock": 6,
                                            "priceModifier": 30,
                                            "image": "oak-natural.jpg",
                                        },
                                        {
                                            "label": "Dark",
                                            "value": "dark",
                                            "stock": 2,
                                            "priceModifier": 45,
                                        },
                                    ],
                                }
                            ],
                        },
                        {"label": "Pine", "value": "pine", "stock": 12},
                    ],
                }
            ],
        },
        {"label": "Metal", "value": "metal", "stock": 8, "priceModifier": 10},
    ],
}

GIFT_WRAP = {
    "name": "Gift Wrap",
    "type": "checkbox",
    "options": [{"label": "Yes", "price": 100, "required": True}],
}

EXTRA_STRAPS = {
    "name": "Extra Straps",
    "type": "quantity",
    "maxQuantity": 3,
    "options": [{"label": "Leather", "price": 40}, {"label": "Nylon", "price": 15}],
}


@pytest.fixture
def color_tree():
    return parse_tree([COLOR_VARIANT])


@pytest.fixture
def size_tree():
    return parse_tree([SIZE_VARIANT])


@pytest.fixture
def frame_tree():
    return parse_tree([FRAME_VARIANT])


@pytest.fixture
def full_tree():
    return parse_tree(
        [COLOR_VARIANT, SIZE_VARIANT, FRAME_VARIANT], [GIFT_WRAP, EXTRA_STRAPS]
    )


@pytest.fixture
def empty_state():
    return SelectionState()
