# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Prometheus metrics — single source of truth for all metric objects.
Imported by services and middleware. Never instantiated in controllers.
"""

from prometheus_client import Counter, Gauge, Histogram

# ── HTTP Metrics (used by middleware) ──
REQUEST_COUNT = Counter(
    "duty_requests_total",
    "Total HTTP requests to the duty roster service",
    ["method", "endpoint", "status"],
)
REQUEST_LATENCY = Histogram(
    "duty_request_duration_seconds",
    "Request latency in seconds",
    ["method", "endpoint"],
)
HTTP_ERRORS = Counter(
    "duty_http_errors_total",
    "Total HTTP error responses",
    ["method", "endpoint", "status"],
)

# ── Business Metrics (updated by service layer only) ──
SCHEDULE_PREVIEWS = Counter(
    "duty_schedule_previews_total",
    "Total weekly schedules generated for preview",
)
SCHEDULE_CONFIRMATIONS = Counter(
    "duty_schedule_confirmations_total",
    "Weekly schedule confirmations by outcome",
    ["outcome"],
)
WEEKDAY_SOLVER_ATTEMPTS = Histogram(
    "duty_weekday_solver_attempts",
    "Attempts the weekday solver needed per generated schedule",
    buckets=[1, 2, 3, 5, 10, 20, 35, 50],
)
WEEKDAY_SOLVER_FALLBACKS = Counter(
    "duty_weekday_solver_fallbacks_total",
    "Schedules that fell back to the deterministic weekday rotation",
)
ANNOUNCEMENTS_SENT = Counter(
    "duty_announcements_sent_total",
    "Announcements handed to the chat channel",
    ["kind", "status"],
)
ROSTER_MEMBERS = Gauge(
    "duty_roster_members",
    "Team members in the last roster snapshot",
)
