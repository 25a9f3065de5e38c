"""
Monitoring module for Prometheus metrics.
"""
from .prometheus import (
    http_requests_total,
    http_request_duration,
    task_transitions_total,
    tasks_by_status,
    login_failures_total,
    db_pool_connections,
    errors_total,
    rate_limit_violations_total,
    update_db_pool_metrics,
    record_task_status_counts,
    record_task_transition,
)

from .middleware import metrics_middleware, normalize_endpoint

__all__ = [
    'http_requests_total',
    'http_request_duration',
    'task_transitions_total',
    'tasks_by_status',
    'login_failures_total',
    'db_pool_connections',
    'errors_total',
    'rate_limit_violations_total',
    'update_db_pool_metrics',
    'record_task_status_counts',
    'record_task_transition',
    'metrics_middleware',
    'normalize_endpoint',
]
