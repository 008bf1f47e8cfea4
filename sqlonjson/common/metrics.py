"""
Prometheus metrics for monitoring and observability.

Provides counters and histograms for tracking:
- Conversions and their outcome
- Tables and rows loaded into backends
- DDL/DML statements issued
"""

import time
from functools import wraps
from typing import Callable

from prometheus_client import (
    Counter,
    Histogram,
    generate_latest,
    CollectorRegistry,
)

# Create a global registry
REGISTRY = CollectorRegistry()

# ========== Counters ==========

# Conversions
conversions_total = Counter(
    "sqlonjson_conversions_total",
    "Total number of JSON to SQL conversions",
    ["status"],  # success/failure
    registry=REGISTRY,
)

# Tables created
tables_created_total = Counter(
    "sqlonjson_tables_created_total",
    "Total number of tables created from JSON arrays",
    registry=REGISTRY,
)

# Rows loaded
rows_loaded_total = Counter(
    "sqlonjson_rows_loaded_total",
    "Total number of rows inserted into backends",
    registry=REGISTRY,
)

# Statements issued
backend_statements_total = Counter(
    "sqlonjson_backend_statements_total",
    "Total number of statements executed against backends",
    ["kind"],  # ddl/dml
    registry=REGISTRY,
)

# ========== Histograms ==========

# Conversion latency
conversion_duration_seconds = Histogram(
    "sqlonjson_conversion_duration_seconds",
    "Time to parse, flatten and load a JSON document",
    buckets=(0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0, 5.0),
    registry=REGISTRY,
)


# ========== Metric Decorators ==========

def track_conversion(func: Callable):
    """
    Decorator to track conversion latency and outcome.

    Args:
        func: Function performing a conversion
    """
    @wraps(func)
    def wrapper(*args, **kwargs):
        start_time = time.time()
        status = "success"
        try:
            return func(*args, **kwargs)
        except Exception:
            status = "failure"
            raise
        finally:
            conversion_duration_seconds.observe(time.time() - start_time)
            conversions_total.labels(status=status).inc()

    return wrapper


def get_metrics() -> bytes:
    """
    Get current metrics in Prometheus format.

    Returns:
        Metrics as bytes
    """
    return generate_latest(REGISTRY)
