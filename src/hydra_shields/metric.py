from prometheus_client import Counter

request_counter = Counter(
    "hydra_shields_num_req", "Total number of requests", labelnames=["path"]
)

upstream_call_count = Counter(
    "hydra_shields_num_upstream_calls",
    "Total number of Hydra API calls",
    labelnames=["kind"],
)

cache_lookup_counter = Counter(
    "hydra_shields_cache_lookups",
    "Fetch cache lookups",
    labelnames=["cache", "result"],
)

error_counter = Counter(
    "hydra_shields_error_counter", "Total number of errors", labelnames=["context"]
)

verdict_counter = Counter(
    "hydra_shields_verdicts",
    "Resolved jobset verdicts",
    labelnames=["verdict"],
)
