# ==============================================
# Tests for Storage Module
# ==============================================
#
# RecordSource and BulkWriter run against FakeCollection;
# MongoClient runs against a mocked pymongo client.
# ==============================================

import uuid
from unittest import mock

import pytest
from pymongo.errors import AutoReconnect, ConnectionFailure

from collection_etl.config import Namespace
from collection_etl.errors import PipelineStateError
from collection_etl.storage.bulk_writer import BulkWriter
from collection_etl.storage.mongo_client import MongoClient
from collection_etl.storage.record_source import RecordSource

from conftest import FakeCollection


class TestRecordSource:
    def test_streams_in_order_with_read_ahead(self):
        collection = FakeCollection([{"n": 1}, {"n": 2}, {"n": 3}])
        source = RecordSource(collection, read_ahead=500)

        assert [doc["n"] for doc in source] == [1, 2, 3]
        assert collection.find_calls == [{"query": {}, "batch_size": 500}]
        assert collection.cursors[0].closed

    def test_nothing_fetched_until_iterated(self):
        collection = FakeCollection([{"n": 1}])
        RecordSource(collection, read_ahead=10)
        assert collection.find_calls == []

    def test_single_use(self):
        source = RecordSource(FakeCollection([{"n": 1}]), read_ahead=10)
        list(source)
        with pytest.raises(PipelineStateError):
            iter(source)

    def test_approximate_count(self):
        source = RecordSource(FakeCollection([{}] * 3, estimated_count=1000), read_ahead=10)
        assert source.approximate_count() == 1000

    def test_cursor_error_propagates(self):
        source = RecordSource(FakeCollection([{"n": i} for i in range(10)], fail_cursor_after=4), read_ahead=2)
        seen = []
        with pytest.raises(AutoReconnect):
            for document in source:
                seen.append(document)
        assert len(seen) == 4

    def test_invalid_read_ahead(self):
        with pytest.raises(ValueError):
            RecordSource(FakeCollection(), read_ahead=0)


class TestBulkWriter:
    def test_unordered_insert(self, target_collection):
        batch = [{"_id": uuid.uuid4()} for _ in range(5)]
        result = BulkWriter(target_collection).write(batch)

        assert result.ok
        assert result.inserted == 5
        assert target_collection.insert_calls == [{"size": 5, "ordered": False}]

    def test_duplicate_does_not_block_siblings(self, target_collection):
        existing = uuid.uuid4()
        target_collection.seed([{"_id": existing}])
        batch = [{"_id": uuid.uuid4()}, {"_id": existing}, {"_id": uuid.uuid4()}]

        result = BulkWriter(target_collection).write(batch)

        assert not result.ok
        assert result.inserted == 2
        assert result.error_count == 1
        assert result.errors[0]["code"] == 11000
        assert "op" not in result.errors[0]
        assert len(target_collection.inserted) == 3

    def test_empty_batch_skips_call(self, target_collection):
        result = BulkWriter(target_collection).write([])
        assert result.inserted == 0
        assert target_collection.insert_calls == []

    def test_driver_errors_propagate(self):
        collection = mock.Mock()
        collection.insert_many.side_effect = AutoReconnect("gone")
        with pytest.raises(AutoReconnect):
            BulkWriter(collection).write([{"_id": 1}])


class TestMongoClient:
    @pytest.fixture
    def pymongo_client(self):
        with mock.patch("collection_etl.storage.mongo_client.PyMongoClient") as client_cls:
            yield client_cls

    def test_connect_uses_standard_uuids(self, pymongo_client):
        client = MongoClient("mongodb://db:27017", appname="etl")
        client.connect()

        pymongo_client.assert_called_once_with(
            "mongodb://db:27017", appname="etl", uuidRepresentation="standard"
        )
        pymongo_client.return_value.admin.command.assert_called_once_with("ping")

    def test_collection_by_namespace(self, pymongo_client):
        with MongoClient("mongodb://db:27017") as client:
            handle = client.collection(Namespace("etl", "src"))

        instance = pymongo_client.return_value
        instance.__getitem__.assert_called_with("etl")
        instance.__getitem__.return_value.__getitem__.assert_called_with("src")
        assert handle is instance.__getitem__.return_value.__getitem__.return_value
        instance.close.assert_called_once()

        collection = pymongo_client.return_value.__getitem__.return_value.__getitem__.return_value
        collection.drop.assert_called_once()

    def test_not_connected(self):
        with pytest.raises(PipelineStateError):
            MongoClient("mongodb://db:27017").collection(Namespace("etl", "src"))

    def test_failed_ping_closes_client(self, pymongo_client):
        pymongo_client.return_value.admin.command.side_effect = ConnectionFailure("refused")
        client = MongoClient("mongodb://db:27017")

        with pytest.raises(ConnectionFailure):
            client.connect()
        pymongo_client.return_value.close.assert_called_once()
        assert client.client is None
