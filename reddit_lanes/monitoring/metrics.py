"""Prometheus metrics for monitoring the lane feed client."""

import logging
import time
from typing import Optional

from prometheus_client import Counter, Gauge, Histogram, start_http_server

logger = logging.getLogger(__name__)

LANE_FETCHES = Counter(
    "reddit_lanes_fetches_total",
    "Number of lane fetches started",
    ["kind"],
)

API_ERRORS = Counter(
    "reddit_lanes_api_errors_total",
    "Number of provider errors encountered",
    ["error_type"],
)

STALE_RESPONSES = Counter(
    "reddit_lanes_stale_responses_total",
    "Number of superseded responses discarded",
    ["source"],
)

SEARCHES = Counter(
    "reddit_lanes_searches_total",
    "Number of topic searches issued to the provider",
    ["outcome"],
)

OPEN_LANES = Gauge(
    "reddit_lanes_open_lanes",
    "Number of lanes currently open",
)

REQUEST_DURATION = Histogram(
    "reddit_lanes_request_duration_seconds",
    "Duration of provider requests in seconds",
    ["endpoint"],
    buckets=[0.1, 0.25, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0],
)


class PrometheusExporter:
    """Prometheus metrics exporter for the lane feed client."""

    def __init__(self, port: int = 8000):
        """
        Initialize the Prometheus exporter.

        Args:
            port: Port to expose metrics on
        """
        self.port = port
        self.server_started = False

    def start_server(self) -> None:
        """Start the Prometheus metrics server."""
        if not self.server_started:
            try:
                start_http_server(self.port)
                self.server_started = True
                logger.info(f"Started Prometheus metrics server on port {self.port}")
            except OSError as e:
                logger.error(f"Failed to start Prometheus metrics server: {str(e)}")

    def record_lane_fetch(self, kind: str) -> None:
        """
        Record a lane fetch.

        Args:
            kind: 'initial' for first-page loads, 'more' for pagination
        """
        LANE_FETCHES.labels(kind=kind).inc()

    def record_api_error(self, error_type: str) -> None:
        """
        Record a provider error.

        Args:
            error_type: Error class name (e.g. 'NetworkError', 'NotFoundError')
        """
        API_ERRORS.labels(error_type=error_type).inc()

    def record_stale_response(self, source: str) -> None:
        """Record a response dropped because a newer request superseded it."""
        STALE_RESPONSES.labels(source=source).inc()

    def record_search(self, outcome: str) -> None:
        """
        Record a search call.

        Args:
            outcome: 'applied', 'stale' or 'error'
        """
        SEARCHES.labels(outcome=outcome).inc()

    def set_open_lanes(self, count: int) -> None:
        OPEN_LANES.set(count)

    def time_request(self, endpoint: str) -> "RequestTimer":
        """
        Create a context manager for timing provider requests.

        Args:
            endpoint: 'listing' or 'search'

        Returns:
            RequestTimer context manager
        """
        return RequestTimer(endpoint)


class RequestTimer:
    """Context manager for timing provider requests."""

    def __init__(self, endpoint: str):
        self.endpoint = endpoint
        self.start_time: Optional[float] = None

    def __enter__(self) -> "RequestTimer":
        self.start_time = time.time()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self.start_time is not None:
            duration = time.time() - self.start_time
            REQUEST_DURATION.labels(endpoint=self.endpoint).observe(duration)
