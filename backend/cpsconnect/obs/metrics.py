"""Central registry for Prometheus metrics used across the backend."""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram


REQUEST_COUNTER = Counter(
	"cpsconnect_http_requests_total",
	"Total HTTP requests processed",
	["route", "method", "status"],
)

REQUEST_LATENCY = Histogram(
	"cpsconnect_http_request_duration_seconds",
	"HTTP request latency in seconds",
	["route", "method"],
	buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0),
)

REDIS_UP = Gauge(
	"cpsconnect_redis_up",
	"Redis connectivity status (1=up, 0=down)",
)

POSTGRES_UP = Gauge(
	"cpsconnect_postgres_up",
	"Postgres connectivity status (1=up, 0=down)",
)

ALUMNI_TRANSITIONS = Counter(
	"cpsconnect_alumni_transitions_total",
	"Alumni profile lifecycle transitions committed",
	["action", "status"],
)

ALUMNI_TRANSITION_REJECTS = Counter(
	"cpsconnect_alumni_transition_rejects_total",
	"Alumni profile lifecycle operations refused",
	["reason"],
)

ALUMNI_NOTIFICATIONS = Counter(
	"cpsconnect_alumni_notifications_total",
	"Alumni notification emails attempted",
	["kind", "result"],
)

ALUMNI_CONTACT_REQUESTS = Counter(
	"cpsconnect_alumni_contact_requests_total",
	"Contact requests relayed between alumni",
	["result"],
)

ALUMNI_RECOMMENDATIONS = Counter(
	"cpsconnect_alumni_recommendations_total",
	"Recommendations sent between alumni",
)

ALUMNI_IMPORT_ROWS = Counter(
	"cpsconnect_alumni_import_rows_total",
	"Rows processed by the alumni bulk import",
	["result"],
)

DIRECTORY_QUERIES = Counter(
	"cpsconnect_directory_queries_total",
	"Directory queries served",
	["kind"],
)

DIRECTORY_LATENCY = Histogram(
	"cpsconnect_directory_query_duration_seconds",
	"Directory query latency in seconds",
	["kind"],
	buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0),
)

DIRECTORY_CEILING_HITS = Counter(
	"cpsconnect_directory_fetch_ceiling_total",
	"Directory searches whose candidate fetch reached the configured ceiling",
)


def observe_request(route: str, method: str, status: int, elapsed_seconds: float) -> None:
	REQUEST_COUNTER.labels(route=route, method=method, status=str(status)).inc()
	REQUEST_LATENCY.labels(route=route, method=method).observe(elapsed_seconds)


def mark_redis(ok: bool) -> None:
	REDIS_UP.set(1 if ok else 0)


def mark_postgres(ok: bool) -> None:
	POSTGRES_UP.set(1 if ok else 0)


def inc_alumni_transition(action: str, status: str) -> None:
	ALUMNI_TRANSITIONS.labels(action=action, status=status).inc()


def inc_alumni_transition_reject(reason: str) -> None:
	ALUMNI_TRANSITION_REJECTS.labels(reason=reason).inc()


def inc_alumni_notification(kind: str, result: str) -> None:
	ALUMNI_NOTIFICATIONS.labels(kind=kind, result=result).inc()


def inc_contact_request(result: str) -> None:
	ALUMNI_CONTACT_REQUESTS.labels(result=result).inc()


def inc_recommendation() -> None:
	ALUMNI_RECOMMENDATIONS.inc()


def inc_import_rows(result: str, count: int = 1) -> None:
	if count > 0:
		ALUMNI_IMPORT_ROWS.labels(result=result).inc(count)


def inc_directory_query(kind: str) -> None:
	DIRECTORY_QUERIES.labels(kind=kind).inc()


def observe_directory_latency(kind: str, latency_seconds: float) -> None:
	DIRECTORY_LATENCY.labels(kind=kind).observe(latency_seconds)


def inc_directory_ceiling() -> None:
	DIRECTORY_CEILING_HITS.inc()
