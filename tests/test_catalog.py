from types import SimpleNamespace

from condition_reports.constants import RoomType
from condition_reports.services import catalog


def test_every_room_type_has_a_checklist():
    for room_type in RoomType:
        categories = catalog.get_categories(room_type)
        assert categories, room_type
        ids = [category.id for category in categories]
        assert len(ids) == len(set(ids))


def test_standard_room_checklist_order():
    ids = [category.id for category in catalog.get_categories("Standard")]
    assert ids == ["walls", "windows", "floors", "doors", "ceiling", "lighting", "power"]


def test_unknown_room_type_has_no_categories():
    assert catalog.get_categories("Garage") == ()
    assert catalog.get_category("Garage", "walls") is None


def test_get_category_and_index():
    category = catalog.get_category(RoomType.BATHROOM, "toilet")
    assert category is not None
    assert category.name == "Toilet"
    assert catalog.category_index(RoomType.BATHROOM, "walls") == 0
    assert catalog.category_index(RoomType.BATHROOM, "missing") is None


def test_sort_items_follows_catalog_order_and_keeps_unknowns_last():
    items = [
        SimpleNamespace(category_id="power"),
        SimpleNamespace(category_id="mystery"),
        SimpleNamespace(category_id="walls"),
        SimpleNamespace(category_id="doors"),
    ]
    ordered = catalog.sort_items(RoomType.STANDARD, items)
    assert [item.category_id for item in ordered] == ["walls", "doors", "power", "mystery"]
