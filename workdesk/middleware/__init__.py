"""HTTP middleware: timeout, request ID, correlation ID, request log.

Applied in workdesk.main; order matters (last added = outermost).
"""

from workdesk.middleware.correlation_id import CorrelationIDMiddleware
from workdesk.middleware.request_id import RequestIDMiddleware
from workdesk.middleware.request_log import RequestLogMiddleware
from workdesk.middleware.timeout import TimeoutMiddleware

__all__ = [
    "CorrelationIDMiddleware",
    "RequestIDMiddleware",
    "RequestLogMiddleware",
    "TimeoutMiddleware",
]
