"""
Prometheus metrics for the license service.

Custom metrics for business logic and performance monitoring.
"""

from prometheus_client import Counter, Histogram

# HTTP metrics
http_requests_total = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status_code"],
)

http_request_duration_seconds = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 2.0, 5.0, 10.0],
)

# License metrics
licenses_issued_total = Counter(
    "licenses_issued_total",
    "Total licenses issued",
    ["type"],
)

license_validations_total = Counter(
    "license_validations_total",
    "Total license token validations by outcome",
    ["result"],
)

license_first_activations_total = Counter(
    "license_first_activations_total",
    "Total licenses activated for the first time",
)

licenses_renewed_total = Counter(
    "licenses_renewed_total",
    "Total licenses renewed",
)

licenses_revoked_total = Counter(
    "licenses_revoked_total",
    "Total licenses revoked",
)

licenses_transferred_total = Counter(
    "licenses_transferred_total",
    "Total licenses transferred to another clinic",
)

# Error metrics
errors_total = Counter(
    "errors_total",
    "Total errors",
    ["error_type", "endpoint"],
)
