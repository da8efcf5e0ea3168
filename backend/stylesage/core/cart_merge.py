"""Cart Merge — guest-to-user cart migration rules over plain item dicts.

Invariants:
    - Item identity is "<product_id>-<color>-<size>"
    - Merging sums quantities for matching keys, appends the rest in session order
    - Inputs are never mutated; merge returns new lists

Design Decisions:
    - Items stay plain dicts (the cart is stored as a JSON document)
"""


def item_key(item: dict) -> str:
    return f"{item['productId']}-{item.get('color', '')}-{item['size']}"


def total_items(items: list[dict]) -> int:
    return sum(int(item.get("quantity", 0)) for item in items)


def merge_items(user_items: list[dict], session_items: list[dict]) -> list[dict]:
    """Fold session cart items into the user cart."""
    merged = [dict(item) for item in user_items]
    index = {item_key(item): item for item in merged}
    for session_item in session_items:
        key = item_key(session_item)
        existing = index.get(key)
        if existing is not None:
            existing["quantity"] = int(existing["quantity"]) + int(session_item["quantity"])
        else:
            copy = dict(session_item)
            merged.append(copy)
            index[key] = copy
    return merged
