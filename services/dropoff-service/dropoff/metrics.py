"""Prometheus counters exposed on ``/metrics``."""

from __future__ import annotations

from prometheus_client import Counter

REGISTRATIONS = Counter(
    "dropoff_registrations_total",
    "Account registrations by outcome.",
    ["outcome"],
)
LOGINS = Counter(
    "dropoff_logins_total",
    "Login attempts by outcome.",
    ["outcome"],
)
RECEIVER_SEARCHES = Counter(
    "dropoff_receiver_searches_total",
    "Receiver searches by whether any receiver matched.",
    ["result"],
)
