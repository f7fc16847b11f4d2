from __future__ import annotations

from dataclasses import dataclass

from prometheus_client import CollectorRegistry, Counter, Histogram, generate_latest
from prometheus_client.exposition import CONTENT_TYPE_LATEST

from app.comptoir.core.config import settings


@dataclass
class MetricsSnapshot:
    content: bytes
    content_type: str


class Metrics:
    def __init__(self) -> None:
        self.enabled = settings.METRICS_ENABLED
        self._registry = None
        self._http_requests_total = None
        self._http_request_duration_ms = None
        self._lock_wait_timeout_total = None
        self._cash_shifts_opened_total = None
        self._cash_shifts_closed_total = None
        self._sales_recorded_total = None
        if self.enabled:
            self._initialize_registry()

    def _initialize_registry(self) -> None:
        self._registry = CollectorRegistry()
        self._http_requests_total = Counter(
            "http_requests_total",
            "HTTP requests by route/method/status.",
            ["route", "method", "status"],
            registry=self._registry,
        )
        self._http_request_duration_ms = Histogram(
            "http_request_duration_ms",
            "HTTP request latency in milliseconds.",
            ["route", "method", "status"],
            buckets=(5, 10, 25, 50, 100, 250, 500, 1000, 2500, 5000, 10000),
            registry=self._registry,
        )
        self._lock_wait_timeout_total = Counter(
            "lock_wait_timeout_total",
            "Lock wait timeout occurrences.",
            registry=self._registry,
        )
        self._cash_shifts_opened_total = Counter(
            "cash_shifts_opened_total",
            "Cash shifts opened.",
            registry=self._registry,
        )
        self._cash_shifts_closed_total = Counter(
            "cash_shifts_closed_total",
            "Cash shifts closed by variance classification.",
            ["variance"],
            registry=self._registry,
        )
        self._sales_recorded_total = Counter(
            "sales_recorded_total",
            "Sales recorded by payment method.",
            ["payment_method"],
            registry=self._registry,
        )

    def record_http_request(self, *, route: str, method: str, status_code: int, latency_ms: float) -> None:
        if not self.enabled:
            return
        labels = {"route": route, "method": method, "status": str(status_code)}
        self._http_requests_total.labels(**labels).inc()
        self._http_request_duration_ms.labels(**labels).observe(latency_ms)

    def increment_lock_wait_timeout(self) -> None:
        if not self.enabled:
            return
        self._lock_wait_timeout_total.inc()

    def increment_shift_opened(self) -> None:
        if not self.enabled:
            return
        self._cash_shifts_opened_total.inc()

    def increment_shift_closed(self, variance: str) -> None:
        if not self.enabled:
            return
        self._cash_shifts_closed_total.labels(variance=variance).inc()

    def increment_sale_recorded(self, payment_method: str) -> None:
        if not self.enabled:
            return
        self._sales_recorded_total.labels(payment_method=payment_method).inc()

    def render(self) -> MetricsSnapshot:
        if not self.enabled:
            return MetricsSnapshot(content=b"metrics_disabled\n", content_type="text/plain")
        return MetricsSnapshot(content=generate_latest(self._registry), content_type=CONTENT_TYPE_LATEST)


metrics = Metrics()
