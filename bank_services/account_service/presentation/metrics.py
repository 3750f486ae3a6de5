from __future__ import annotations

from fastapi import FastAPI
from prometheus_client import Counter
from prometheus_fastapi_instrumentator import Instrumentator

AUTH_REJECTION_COUNTER = Counter(
    "account_service_auth_rejections_total",
    "Count of requests rejected by the bearer token gate.",
    labelnames=("reason",),
)

TRANSFER_COUNTER = Counter(
    "account_service_transfers_total",
    "Count of completed transfers between accounts.",
)


def record_auth_rejection(reason: str) -> None:
    AUTH_REJECTION_COUNTER.labels(reason=reason).inc()


def record_transfer() -> None:
    TRANSFER_COUNTER.inc()


def setup_metrics(app: FastAPI) -> None:
    instrumentator = Instrumentator(
        should_group_status_codes=True,
        should_ignore_untemplated=True,
        excluded_handlers={"/metrics", "/health"},
    )
    instrumentator.instrument(app)
    instrumentator.expose(app, include_in_schema=False)
