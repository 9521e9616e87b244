"""
Prometheus metrics for the payment lifecycle
"""

from prometheus_client import Counter, REGISTRY


def _counter(name: str, documentation: str, labels=()):
    # The app module can be imported more than once under test runners
    try:
        return Counter(name, documentation, list(labels))
    except ValueError:
        return REGISTRY._names_to_collectors[name]


PAYMENTS_CREATED = _counter(
    "payments_created_total",
    "Payments initiated",
    ["target", "method"]
)

PAYMENT_DECISIONS = _counter(
    "payment_decisions_total",
    "Admin payment decisions",
    ["outcome"]
)

TICKETS_ISSUED = _counter(
    "tickets_issued_total",
    "QR ticket images generated for completed payments"
)

TICKET_ISSUE_FAILURES = _counter(
    "ticket_issue_failures_total",
    "QR ticket generation failures (approval still committed)"
)

SOLD_OUT_REJECTIONS = _counter(
    "ticket_sold_out_rejections_total",
    "Approvals refused because the event was sold out"
)
