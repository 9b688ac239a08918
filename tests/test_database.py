import json
import logging

import pytest

from database import JsonStore


def test_load_missing_collection_is_empty(tmp_path):
    store = JsonStore(tmp_path / "nowhere")
    assert store.load("products") == []


def test_load_empty_file_is_empty(tmp_path):
    (tmp_path / "orders.json").write_text("", encoding="utf-8")
    assert JsonStore(tmp_path).load("orders") == []


def test_corrupt_collection_is_empty_and_logged(tmp_path, caplog):
    (tmp_path / "products.json").write_text("{not json", encoding="utf-8")
    with caplog.at_level(logging.WARNING, logger="database"):
        assert JsonStore(tmp_path).load("products") == []
    assert "not valid JSON" in caplog.text


def test_non_array_collection_is_empty(tmp_path, caplog):
    (tmp_path / "products.json").write_text('{"id": "x"}', encoding="utf-8")
    with caplog.at_level(logging.WARNING, logger="database"):
        assert JsonStore(tmp_path).load("products") == []
    assert "not a JSON array" in caplog.text


def test_save_overwrites_whole_collection_pretty_printed(tmp_path):
    store = JsonStore(tmp_path)
    store.save("products", [{"id": "a"}, {"id": "b"}])
    store.save("products", [{"id": "c"}])

    raw = (tmp_path / "products.json").read_text(encoding="utf-8")
    assert json.loads(raw) == [{"id": "c"}]
    assert raw == json.dumps([{"id": "c"}], indent=2)
    assert not (tmp_path / "products.json.tmp").exists()


def test_append_keeps_insertion_order(tmp_path):
    store = JsonStore(tmp_path)
    for i in range(3):
        store.append("orders", {"id": f"ord_{i}"})
    assert [r["id"] for r in store.load("orders")] == ["ord_0", "ord_1", "ord_2"]


def test_append_replaces_corrupt_file(tmp_path):
    (tmp_path / "orders.json").write_text("garbage", encoding="utf-8")
    store = JsonStore(tmp_path)
    store.append("orders", {"id": "ord_1"})
    assert store.load("orders") == [{"id": "ord_1"}]


def test_mutate_returns_callback_result(tmp_path):
    store = JsonStore(tmp_path)
    store.save("products", [{"id": "a"}])
    count = store.mutate("products", lambda records: len(records))
    assert count == 1


def test_ensure_collections_creates_missing_files_only(tmp_path):
    data_dir = tmp_path / "data"
    store = JsonStore(data_dir)
    data_dir.mkdir()
    (data_dir / "products.json").write_text('[{"id": "keep"}]', encoding="utf-8")

    store.ensure_collections("products", "orders")

    assert store.load("products") == [{"id": "keep"}]
    assert (data_dir / "orders.json").read_text(encoding="utf-8") == "[]"


def test_concurrent_appends_are_not_lost(tmp_path):
    from concurrent.futures import ThreadPoolExecutor

    store = JsonStore(tmp_path)
    with ThreadPoolExecutor(max_workers=8) as pool:
        list(pool.map(lambda i: store.append("orders", {"id": i}), range(50)))

    assert sorted(r["id"] for r in store.load("orders")) == list(range(50))


def test_missing_collection_is_logged(tmp_path, caplog):
    with caplog.at_level(logging.WARNING, logger="database"):
        assert JsonStore(tmp_path).load("orders") == []
    assert "does not exist" in caplog.text


def test_save_refuses_non_json_numbers_and_keeps_old_contents(tmp_path):
    store = JsonStore(tmp_path)
    store.save("orders", [{"id": "ord_1", "total": 7.0}])

    with pytest.raises(ValueError):
        store.save("orders", [{"id": "ord_2", "total": float("inf")}])

    assert store.load("orders") == [{"id": "ord_1", "total": 7.0}]
    assert not (tmp_path / "orders.json.tmp").exists()
