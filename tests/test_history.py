import json

import pytest
from botocore.exceptions import ClientError
from structlog.testing import capture_logs

from stockpro.config import Settings
from stockpro.history import HISTORY_CAPACITY, HISTORY_KEY, HistoryItem, HistoryStore, build_history_store
from stockpro.tools.dynamodb_tool import DynamoDBStorage
from stockpro.tools.local_storage import FileStorage, MemoryStorage


class FakeTable:
    def __init__(self, fail=False):
        self.items = {}
        self.fail = fail

    def _check(self, op):
        if self.fail:
            raise ClientError({"Error": {"Code": "AccessDeniedException", "Message": "denied"}}, op)

    def get_item(self, Key):
        self._check("GetItem")
        item = self.items.get(Key["storage_key"])
        return {"Item": item} if item else {}

    def put_item(self, Item):
        self._check("PutItem")
        self.items[Item["storage_key"]] = Item

    def delete_item(self, Key):
        self._check("DeleteItem")
        self.items.pop(Key["storage_key"], None)


def _add(store, n):
    return store.add({"tickerSymbol": f"T{n}"}, {"predictedPrice": float(n), "analysis": "a"})


def test_empty_store_lists_nothing():
    assert HistoryStore(MemoryStorage()).list() == []


def test_add_round_trip():
    store = HistoryStore(MemoryStorage())
    item = _add(store, 1)
    [loaded] = store.list()
    assert loaded == item
    assert loaded.input == {"tickerSymbol": "T1"}
    assert len(item.id.split("-")[0]) == 8


def test_sixth_add_evicts_oldest_newest_first():
    store = HistoryStore(MemoryStorage())
    for n in range(1, 7):
        _add(store, n)
    tickers = [i.input["tickerSymbol"] for i in store.list()]
    assert len(tickers) == HISTORY_CAPACITY
    assert tickers == ["T6", "T5", "T4", "T3", "T2"]


def test_items_stored_as_one_json_array_under_key():
    storage = MemoryStorage()
    _add(HistoryStore(storage), 1)
    data = json.loads(storage.get(HISTORY_KEY))
    assert isinstance(data, list)
    assert set(data[0]) == {"id", "timestamp", "input", "output"}


def test_timestamp_carries_configured_timezone():
    item = _add(HistoryStore(MemoryStorage(), tz_name="UTC"), 1)
    assert item.timestamp.endswith("+00:00")


@pytest.mark.parametrize("raw", ["{not json", '{"a": 1}', '[{"id": "x"}]'])
def test_corrupt_history_is_cleared(raw):
    storage = MemoryStorage()
    storage.put(HISTORY_KEY, raw)
    with capture_logs() as logs:
        assert HistoryStore(storage).list() == []
    assert storage.get(HISTORY_KEY) is None
    assert any(e["event"] == "history.corrupt" for e in logs)


def test_clear():
    store = HistoryStore(MemoryStorage())
    _add(store, 1)
    store.clear()
    assert store.list() == []


def test_capacity_must_be_positive():
    with pytest.raises(ValueError):
        HistoryStore(MemoryStorage(), capacity=0)


def test_history_item_dict_round_trip():
    d = {"id": "a", "timestamp": "t", "input": {}, "output": {}}
    assert HistoryItem.from_dict(d).to_dict() == d


def test_file_storage_persists_across_instances(tmp_path):
    path = tmp_path / "runs" / "history.json"
    _add(HistoryStore(FileStorage(str(path))), 1)
    items = HistoryStore(FileStorage(str(path))).list()
    assert [i.input["tickerSymbol"] for i in items] == ["T1"]
    assert not (tmp_path / "runs" / "history.json.tmp").exists()


def test_file_storage_unreadable_file_is_empty(tmp_path):
    path = tmp_path / "history.json"
    path.write_text("garbage", encoding="utf-8")
    storage = FileStorage(str(path))
    assert storage.get(HISTORY_KEY) is None
    storage.put("k", "v")
    assert json.loads(path.read_text(encoding="utf-8")) == {"k": "v"}


def test_dynamodb_storage_with_fake_table():
    table = FakeTable()
    store = HistoryStore(DynamoDBStorage("t", "eu-west-2", table=table))
    _add(store, 1)
    assert HISTORY_KEY in table.items
    assert len(store.list()) == 1
    store.clear()
    assert table.items == {}


def test_dynamodb_errors_are_wrapped():
    storage = DynamoDBStorage("t", "eu-west-2", table=FakeTable(fail=True))
    with pytest.raises(RuntimeError, match="get_item failed: denied"):
        storage.get(HISTORY_KEY)
    with pytest.raises(RuntimeError, match="put_item failed"):
        storage.put(HISTORY_KEY, "[]")


@pytest.mark.parametrize("backend,storage_cls", [
    ("memory", MemoryStorage),
    ("file", FileStorage),
    ("dynamodb", DynamoDBStorage),
])
def test_build_history_store_backends(backend, storage_cls, tmp_path):
    store = build_history_store(Settings(history_backend=backend, history_path=str(tmp_path / "h.json")))
    assert isinstance(store.storage, storage_cls)


def test_build_history_store_disabled():
    assert build_history_store(Settings(history_backend="none")) is None
