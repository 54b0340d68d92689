import pytest

from retail_api.errors import ValidationError
from retail_api.services.pagination import filter_items, matches, paginate

ITEMS = [f"item-{i:02d}" for i in range(12)]


def test_paginate__middle_and_last_page():
    page = paginate(ITEMS, 2, 5)
    assert page.items == ITEMS[5:10]
    assert page.total_count == 12
    assert page.total_pages == 3

    last = paginate(ITEMS, 3, 5)
    assert last.items == ["item-10", "item-11"]


def test_paginate__past_the_end_is_empty():
    page = paginate(ITEMS, 4, 5)
    assert page.items == []
    assert page.total_count == 12


def test_paginate__empty_listing():
    page = paginate([], 1, 10)
    assert page.items == []
    assert page.total_pages == 0


@pytest.mark.parametrize("page_number, page_size", [(0, 5), (-1, 5), (1, 0)])
def test_paginate__rejects_bad_arguments(page_number, page_size):
    with pytest.raises(ValidationError):
        paginate(ITEMS, page_number, page_size)


def test_filter_items__case_insensitive_on_any_field():
    products = [
        {"name": "Desk Lamp", "category": "Lighting"},
        {"name": "Office Chair", "category": "Furniture"},
        {"name": "Floor lamp", "category": "Lighting"},
    ]

    assert filter_items(products, "LAMP", ["name"]) == [products[0], products[2]]
    assert filter_items(products, "furn", ["name", "category"]) == [products[1]]
    assert filter_items(products, "  ", ["name"]) == products
    assert filter_items(products, None, ["name"]) == products


def test_matches__attribute_access_and_missing_fields():
    class Item:
        name = "Kettle"
        description = None

    assert matches(Item(), "kett", ["name", "description"])
    assert not matches(Item(), "toaster", ["name", "description", "category"])


def test_filter_items__shoe_search():
    products = [
        {"name": "Red Shoe", "description": "Canvas", "category": "Footwear"},
        {"name": "Blue Hat", "description": "Felt", "category": "Hats"},
        {"name": "Sandal", "description": "Leather", "category": "shoe"},
    ]

    assert filter_items(products, "shoe", ["name", "description", "category"]) == [products[0], products[2]]
