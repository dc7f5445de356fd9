"""
Prometheus metrics blueprint for observability.

Exposes /metrics endpoint with HTTP request metrics and ledger counters.
This endpoint should be restricted to internal network or monitoring systems only.
"""
from flask import Blueprint, Response, request, g
from prometheus_client import Counter, Histogram, Gauge, generate_latest, CONTENT_TYPE_LATEST, REGISTRY
import time

metrics_bp = Blueprint('metrics', __name__)

# One process owns the register (cart and settlement latch), so the
# default single-process registry is the only one needed.
registry = REGISTRY

# HTTP Request Metrics
http_requests_total = Counter(
    'http_requests_total',
    'Total HTTP requests',
    ['method', 'endpoint', 'http_status'],
    registry=registry
)

http_request_duration_seconds = Histogram(
    'http_request_duration_seconds',
    'HTTP request latency in seconds',
    ['method', 'endpoint'],
    registry=registry,
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0)
)

http_requests_in_flight = Gauge(
    'http_requests_in_flight',
    'Number of HTTP requests currently being processed',
    registry=registry
)

# Ledger Metrics
sales_settled_total = Counter(
    'minimart_sales_settled_total',
    'Sales settled at the register',
    registry=registry
)

sales_revenue_total = Counter(
    'minimart_sales_revenue_total',
    'Revenue of settled sales',
    registry=registry
)

parked_carts_evicted_total = Counter(
    'minimart_parked_carts_evicted_total',
    'Parked carts moved to the trash because the queue was full',
    registry=registry
)


def record_sale(sale):
    """Register hook: count a settled sale."""
    sales_settled_total.inc()
    sales_revenue_total.inc(float(sale.total))


def record_eviction(parked_cart):
    """Register hook: count a parked cart pushed out of a full queue."""
    parked_carts_evicted_total.inc()


def setup_metrics_instrumentation(app):
    """
    Setup before_request and after_request hooks for automatic metrics collection.

    This should be called from app factory after app creation.
    """

    @app.before_request
    def before_request_metrics():
        """Record request start time and increment in-flight counter."""
        g._prometheus_metrics_start_time = time.time()
        http_requests_in_flight.inc()

    @app.after_request
    def after_request_metrics(response):
        """Record request metrics after response is ready."""
        try:
            if hasattr(g, '_prometheus_metrics_start_time'):
                duration = time.time() - g._prometheus_metrics_start_time

                # Get endpoint name (e.g., 'catalog.list_products')
                endpoint = request.endpoint or 'unknown'
                method = request.method
                status = response.status_code

                http_request_duration_seconds.labels(
                    method=method,
                    endpoint=endpoint
                ).observe(duration)

                http_requests_total.labels(
                    method=method,
                    endpoint=endpoint,
                    http_status=status
                ).inc()

                http_requests_in_flight.dec()
        except Exception as e:
            # Don't break request flow if metrics fail
            app.logger.warning(f"Failed to record metrics: {e}")

        return response


@metrics_bp.route('/metrics')
def metrics():
    """
    Prometheus metrics endpoint.

    Not authenticated: restrict it by network rules in production.
    """
    return Response(generate_latest(registry), mimetype=CONTENT_TYPE_LATEST)
