"""
Prometheus metrics for monitoring.

Exposed at GET /metrics.
"""
from prometheus_client import Counter, Histogram, Gauge, Info
import logging

from .. import __version__

logger = logging.getLogger(__name__)

# HTTP Metrics
http_requests_total = Counter(
    'internos_http_requests_total',
    'Total HTTP requests',
    ['method', 'endpoint', 'status']
)

http_request_duration = Histogram(
    'internos_http_request_duration_seconds',
    'HTTP request duration',
    ['method', 'endpoint']
)

# Task Metrics
task_transitions_total = Counter(
    'internos_task_transitions_total',
    'Task lifecycle transitions',
    ['action', 'to_status']
)

tasks_by_status = Gauge(
    'internos_tasks_by_status',
    'Current tasks by status (refreshed on dashboard reads)',
    ['status']
)

# Auth Metrics
login_failures_total = Counter(
    'internos_login_failures_total',
    'Rejected login attempts'
)

# Database Metrics
db_pool_connections = Gauge(
    'internos_db_pool_connections',
    'Database pool connections',
    ['state']  # checked_in, checked_out, overflow
)

# Error Metrics
errors_total = Counter(
    'internos_errors_total',
    'Total errors',
    ['type', 'severity']
)

rate_limit_violations_total = Counter(
    'internos_rate_limit_violations_total',
    'Total rate limit violations by endpoint',
    ['endpoint', 'client_type']
)

# System Info
app_info = Info('internos_app', 'Application information')
app_info.info({
    'name': 'internos-api',
    'version': __version__
})


def update_db_pool_metrics(pool_status: dict):
    """Update database pool gauges from Database.get_pool_status()."""
    for state in ('checked_in', 'checked_out', 'overflow'):
        if state in pool_status:
            db_pool_connections.labels(state=state).set(pool_status[state])


def record_task_status_counts(status_counts: dict):
    """Update task status gauge from a dict of status counts."""
    for status, count in status_counts.items():
        tasks_by_status.labels(status=status).set(count)


def record_task_transition(action: str, to_status: str):
    task_transitions_total.labels(action=action, to_status=to_status).inc()
