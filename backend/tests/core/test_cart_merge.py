"""Tests for guest-to-user cart merging."""

from stylesage.core.cart_merge import item_key, merge_items, total_items


def _item(pid, size="M", color="Black", qty=1):
    return {"productId": pid, "size": size, "color": color, "quantity": qty}


def test_item_key_combines_product_color_and_size():
    assert item_key(_item("p1", "L", "Red")) == "p1-Red-L"


def test_matching_items_sum_quantities():
    merged = merge_items([_item("p1", qty=2)], [_item("p1", qty=3)])
    assert merged == [_item("p1", qty=5)]


def test_different_color_is_a_different_line():
    merged = merge_items([_item("p1", color="Black")], [_item("p1", color="White")])
    assert [item["color"] for item in merged] == ["Black", "White"]


def test_inputs_are_not_mutated():
    user = [_item("p1", qty=1)]
    session = [_item("p1", qty=1)]
    merge_items(user, session)
    assert user[0]["quantity"] == 1
    assert session[0]["quantity"] == 1


def test_total_items_sums_quantities():
    assert total_items([_item("a", qty=2), _item("b", qty=3)]) == 5
    assert total_items([]) == 0
