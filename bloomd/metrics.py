from prometheus_client import Counter, Histogram

# Total HTTP requests by method + path
HTTP_REQUESTS_TOTAL = Counter(
    "bloomd_http_requests_total",
    "Total HTTP requests to bloomd",
    ["method", "path"],
)

# Filter operations by kind (insert / contains)
FILTER_OPERATIONS_TOTAL = Counter(
    "bloomd_filter_operations_total",
    "Total filter operations served",
    ["op"],
)

# contains verdicts ("present" may be a false positive)
CONTAINS_RESULTS_TOTAL = Counter(
    "bloomd_contains_results_total",
    "Membership verdicts returned by contains",
    ["result"],
)

# Time spent inside the shared filter, lock wait included
FILTER_OPERATION_LATENCY_SECONDS = Histogram(
    "bloomd_filter_operation_latency_seconds",
    "Filter operation latency (seconds), lock wait included",
    ["op"],
    buckets=(0.00005, 0.0001, 0.00025, 0.0005, 0.001, 0.0025, 0.005, 0.01, 0.025, 0.05),
)

# Errors by type
BLOOMD_ERRORS_TOTAL = Counter(
    "bloomd_errors_total",
    "Total bloomd errors by type",
    ["type"],
)
