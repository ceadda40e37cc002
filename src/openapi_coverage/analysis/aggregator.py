from openapi_coverage.capture.extractor import endpoint_key
from openapi_coverage.capture.observation import EndpointUsage, Observation


def aggregate(observations: list[Observation]) -> list[EndpointUsage]:
    """Merge observations by "METHOD /path" key, in order of first appearance."""
    groups: dict[str, EndpointUsage] = {}

    for obs in observations:
        key = endpoint_key(obs.method, obs.url)
        duration = obs.duration_ms or 0

        if key not in groups:
            groups[key] = EndpointUsage(
                endpoint=key,
                call_count=1,
                total_duration=duration,
                average_duration=float(duration),
                status_codes={obs.status} if obs.status is not None else set(),
                first_called=obs.timestamp,
                last_called=obs.timestamp,
            )
        else:
            usage = groups[key]
            usage.call_count += 1
            usage.total_duration += duration
            usage.average_duration = usage.total_duration / usage.call_count
            if obs.status is not None:
                usage.status_codes.add(obs.status)
            if obs.timestamp < usage.first_called:
                usage.first_called = obs.timestamp
            if obs.timestamp > usage.last_called:
                usage.last_called = obs.timestamp

    return list(groups.values())
