import itertools
import json
import logging
import uuid
from collections.abc import Callable

import boto3
from boto3.dynamodb.conditions import Key

from openapi_coverage.capture.buffer import ObservationBuffer
from openapi_coverage.capture.observation import Observation
from openapi_coverage.capture.store import ObservationStore

logger = logging.getLogger(__name__)

DEFAULT_TABLE = "openapi-coverage"

# SK = OBS#{timestamp}#{process}#{sequence}: sorts by time, then keeps each
# process's own append order for calls recorded in the same millisecond
_PROCESS_ID = uuid.uuid4().hex[:12]
_SEQUENCE = itertools.count()


def _to_item(run_id: str, obs: Observation, ttl_days: int) -> dict:
    item: dict = {
        "PK": f"RUN#{run_id}",
        "SK": f"OBS#{obs.timestamp:013d}#{_PROCESS_ID}#{next(_SEQUENCE):010d}",
        "method": obs.method,
        "url": obs.url,
        "timestamp": obs.timestamp,
        "ttl": obs.timestamp // 1000 + ttl_days * 86400,
    }
    if obs.status is not None:
        item["status"] = obs.status
    if obs.duration_ms is not None:
        item["duration_ms"] = obs.duration_ms
    # Stored as JSON text: DynamoDB rejects Python floats inside maps
    if obs.query_params is not None:
        item["query_params"] = json.dumps(obs.query_params, default=str)
    if obs.headers is not None:
        item["headers"] = json.dumps(obs.headers, default=str)
    return item


def _from_item(item: dict) -> Observation:
    status = item.get("status")
    duration = item.get("duration_ms")
    return Observation(
        method=str(item["method"]),
        url=str(item["url"]),
        timestamp=int(item["timestamp"]),
        query_params=json.loads(item["query_params"]) if "query_params" in item else None,
        headers=json.loads(item["headers"]) if "headers" in item else None,
        status=int(status) if status is not None else None,
        duration_ms=int(duration) if duration is not None else None,
    )


def write_observation(table, run_id: str, obs: Observation, ttl_days: int = 7) -> None:
    """Write a single observation under the run's partition."""
    table.put_item(Item=_to_item(run_id, obs, ttl_days))


def flush_observations(
    observations: list[Observation],
    table,
    run_id: str,
    ttl_days: int = 7,
) -> None:
    """Write a batch of observations using DynamoDB batch writes."""
    if not observations:
        return
    with table.batch_writer() as batch:
        for obs in observations:
            batch.put_item(Item=_to_item(run_id, obs, ttl_days))
    logger.debug("openapi-coverage: wrote %d observation(s) for run %s", len(observations), run_id)


def make_flush_fn(
    table_name: str,
    region: str | None,
    run_id: str,
    ttl_days: int = 7,
) -> Callable[[list[Observation]], None]:
    """Return a flush function that writes to a specific DynamoDB table and run."""
    _table = None

    def get_table():
        nonlocal _table
        if _table is None:
            dynamodb = boto3.resource("dynamodb", region_name=region)
            _table = dynamodb.Table(table_name)
        return _table

    def flush_fn(observations: list[Observation]) -> None:
        flush_observations(observations, get_table(), run_id, ttl_days)

    return flush_fn


def persist_store(
    store: ObservationStore,
    *,
    run_id: str,
    table_name: str = DEFAULT_TABLE,
    region: str | None = None,
    ttl_days: int = 7,
    buffer_max_size: int = 100,
    buffer_flush_interval: float = 30.0,
) -> ObservationBuffer:
    """Mirror every observation appended to ``store`` into DynamoDB.

    Call ``close()`` on the returned buffer at the end of the run to flush the
    remainder.
    """
    buffer = ObservationBuffer(
        flush_fn=make_flush_fn(table_name=table_name, region=region, run_id=run_id, ttl_days=ttl_days),
        max_size=buffer_max_size,
        flush_interval=buffer_flush_interval,
    )
    return buffer.attach(store)


def fetch_run_observations(table_name: str, run_id: str, region: str | None = None) -> list[Observation]:
    """Read back every observation recorded for a run, oldest first."""
    dynamodb = boto3.resource("dynamodb", region_name=region)
    table = dynamodb.Table(table_name)

    items: list[dict] = []
    kwargs: dict = {
        "KeyConditionExpression": Key("PK").eq(f"RUN#{run_id}")
    }

    while True:
        response = table.query(**kwargs)
        items.extend(response["Items"])
        last_key = response.get("LastEvaluatedKey")
        if not last_key:
            break
        kwargs["ExclusiveStartKey"] = last_key

    return [_from_item(item) for item in items]
