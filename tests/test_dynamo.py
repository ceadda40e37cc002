from decimal import Decimal

from boto3.dynamodb.conditions import Key

from openapi_coverage.capture.observation import Observation
from openapi_coverage.capture.store import ObservationStore
from openapi_coverage.storage.dynamo import (
    fetch_run_observations,
    flush_observations,
    persist_store,
    write_observation,
)

TABLE_NAME = "openapi-coverage-test"
REGION = "us-east-1"


def _obs(**kwargs) -> Observation:
    defaults = dict(
        method="POST",
        url="https://api.example.com/api/orders",
        timestamp=1_700_000_000_000,
        status=201,
        duration_ms=42,
    )
    defaults.update(kwargs)
    return Observation(**defaults)


def _items(table, run_id: str = "run-1") -> list[dict]:
    return table.query(KeyConditionExpression=Key("PK").eq(f"RUN#{run_id}"))["Items"]


class TestWriteObservation:
    def test_writes_record(self, dynamo_table):
        write_observation(dynamo_table, "run-1", _obs())
        [item] = _items(dynamo_table)
        assert item["method"] == "POST"
        assert item["status"] == Decimal(201)
        assert item["duration_ms"] == Decimal(42)
        assert item["SK"].startswith("OBS#1700000000000#")

    def test_sets_ttl(self, dynamo_table):
        write_observation(dynamo_table, "run-1", _obs(), ttl_days=2)
        [item] = _items(dynamo_table)
        assert item["ttl"] == Decimal(1_700_000_000 + 2 * 86400)

    def test_skips_absent_fields(self, dynamo_table):
        write_observation(dynamo_table, "run-1", _obs(status=None, duration_ms=None))
        [item] = _items(dynamo_table)
        assert "status" not in item
        assert "duration_ms" not in item
        assert "query_params" not in item

    def test_same_millisecond_does_not_overwrite(self, dynamo_table):
        write_observation(dynamo_table, "run-1", _obs())
        write_observation(dynamo_table, "run-1", _obs())
        assert len(_items(dynamo_table)) == 2


class TestFlushObservations:
    def test_batch_write(self, dynamo_table):
        flush_observations([_obs(timestamp=1_000 + i) for i in range(30)], dynamo_table, "run-1")
        assert len(_items(dynamo_table)) == 30

    def test_empty_batch(self, dynamo_table):
        flush_observations([], dynamo_table, "run-1")
        assert _items(dynamo_table) == []


class TestFetchRunObservations:
    def test_round_trips_observations(self, dynamo_table):
        written = [
            _obs(timestamp=2_000, query_params={"page": "1"}, headers={"accept": "*/*"}),
            _obs(timestamp=1_000, method="GET", status=None),
        ]
        flush_observations(written, dynamo_table, "run-1")

        fetched = fetch_run_observations(table_name=TABLE_NAME, run_id="run-1", region=REGION)
        # Oldest first
        assert fetched == [written[1], written[0]]

    def test_isolates_runs(self, dynamo_table):
        write_observation(dynamo_table, "run-1", _obs())
        write_observation(dynamo_table, "run-2", _obs())
        assert len(fetch_run_observations(table_name=TABLE_NAME, run_id="run-2", region=REGION)) == 1

    def test_returns_empty_for_unknown_run(self, dynamo_table):
        assert fetch_run_observations(table_name=TABLE_NAME, run_id="nonexistent", region=REGION) == []


class TestPersistStore:
    def test_mirrors_store_into_table(self, dynamo_table):
        store = ObservationStore()
        buffer = persist_store(store, run_id="run-9", table_name=TABLE_NAME, region=REGION)
        for i in range(3):
            store.append(_obs(timestamp=1_000 + i))
        buffer.close()

        fetched = fetch_run_observations(table_name=TABLE_NAME, run_id="run-9", region=REGION)
        assert [o.timestamp for o in fetched] == [1_000, 1_001, 1_002]

    def test_stops_after_close(self, dynamo_table):
        store = ObservationStore()
        buffer = persist_store(store, run_id="run-9", table_name=TABLE_NAME, region=REGION)
        buffer.close()
        store.append(_obs())
        buffer.flush()
        assert fetch_run_observations(table_name=TABLE_NAME, run_id="run-9", region=REGION) == []
