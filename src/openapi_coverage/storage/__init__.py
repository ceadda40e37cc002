from openapi_coverage.storage.dynamo import fetch_run_observations, persist_store

__all__ = ["fetch_run_observations", "persist_store"]
