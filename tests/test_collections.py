from apps.realtime.collections import (
    CollectionStore,
    delete_item,
    delete_where,
    insert_item,
    replace_all,
    update_item,
    update_where,
    upsert_item,
)


def test_insert_is_idempotent():
    prev = [{"id": 1, "name": "a"}]
    assert insert_item({"id": 1, "name": "b"})(prev) == prev
    assert insert_item({"id": 2})(prev) == [{"id": 1, "name": "a"}, {"id": 2}]


def test_update_merges_or_replaces():
    prev = [{"id": 1, "name": "a", "x": 1}]
    assert update_item({"id": 1, "name": "b"})(prev) == [{"id": 1, "name": "b", "x": 1}]
    assert update_item({"id": 1, "name": "b"}, merge=False)(prev) == [{"id": 1, "name": "b"}]
    assert update_item({"id": 9})(prev) == prev


def test_upsert():
    assert upsert_item({"id": 1})([]) == [{"id": 1}]
    assert upsert_item({"id": 1, "v": 2})([{"id": 1, "v": 1}]) == [{"id": 1, "v": 2}]


def test_deletes():
    prev = [{"id": 1, "bid_id": 5}, {"id": 2, "bid_id": 6}]
    assert delete_item(1)(prev) == [{"id": 2, "bid_id": 6}]
    assert delete_where("bid_id", 6)(prev) == [{"id": 1, "bid_id": 5}]


def test_update_where():
    prev = [{"id": 1, "vendor_id": 3}, {"id": 2, "vendor_id": 4}]
    assert update_where("vendor_id", 3, {"vendor_name": "X"})(prev)[0]["vendor_name"] == "X"


def test_reducers_do_not_mutate_input():
    prev = [{"id": 1}]
    insert_item({"id": 2})(prev)
    delete_item(1)(prev)
    replace_all([])(prev)
    assert prev == [{"id": 1}]


def test_store_setters_accept_lists_and_reducers():
    store = CollectionStore()
    setter = store.setter("bids")
    setter([{"id": 1}])
    setter(insert_item({"id": 2}))
    assert store.get("bids") == [{"id": 1}, {"id": 2}]
    assert set(store.updaters().as_dict()) == {"bids", "vendors", "bid_vendors", "project_notes"}
