"""
Request metrics and Prometheus text exposition.
"""

import logging
import resource
import sys
import threading
import time
from typing import Dict, Optional

from lawhelp.storage import Storage

logger = logging.getLogger(__name__)

METRIC_HELP = [
    ("lawhelp_total_users", "gauge", "Total number of registered users"),
    ("lawhelp_active_chat_sessions", "gauge", "Number of active chat sessions"),
    ("lawhelp_total_messages", "counter", "Total number of chat messages"),
    ("lawhelp_lawyers_count", "gauge", "Total number of registered lawyers"),
    ("lawhelp_uptime_seconds", "counter", "Application uptime in seconds"),
    ("lawhelp_memory_usage_mb", "gauge", "Memory usage in megabytes"),
    ("lawhelp_response_time_ms", "gauge", "Average response time in milliseconds"),
    ("lawhelp_error_rate_percent", "gauge", "Error rate percentage"),
    ("lawhelp_requests_total", "counter", "Total number of HTTP requests"),
]


def memory_usage_mb() -> float:
    """Peak resident memory of this process."""
    usage = resource.getrusage(resource.RUSAGE_SELF).ru_maxrss
    # Bytes on macOS, kilobytes elsewhere
    divisor = 1024 * 1024 if sys.platform == "darwin" else 1024
    return round(usage / divisor, 1)


class MetricsCollector:
    def __init__(self):
        self.start_time = time.time()
        self.request_count = 0
        self.error_count = 0
        self.total_response_time_ms = 0.0
        self._lock = threading.Lock()

    def record_request(self, duration_ms: float, status: int):
        with self._lock:
            self.request_count += 1
            self.total_response_time_ms += duration_ms
            if status >= 400:
                self.error_count += 1

    @property
    def uptime_seconds(self) -> int:
        return int(time.time() - self.start_time)

    def collect(self, storage: Optional[Storage] = None) -> Dict[str, float]:
        counts = storage.stats() if storage is not None else {}
        with self._lock:
            requests = self.request_count
            error_rate = (self.error_count / requests) * 100 if requests else 0.0
            avg_response = self.total_response_time_ms / requests if requests else 0.0

        return {
            "lawhelp_total_users": counts.get("total_users", 0),
            "lawhelp_active_chat_sessions": counts.get("active_chat_sessions", 0),
            "lawhelp_total_messages": counts.get("total_messages", 0),
            "lawhelp_lawyers_count": counts.get("lawyers_count", 0),
            "lawhelp_uptime_seconds": self.uptime_seconds,
            "lawhelp_memory_usage_mb": memory_usage_mb(),
            "lawhelp_response_time_ms": round(avg_response, 2),
            "lawhelp_error_rate_percent": round(error_rate, 2),
            "lawhelp_requests_total": requests,
        }

    def render_prometheus(self, storage: Optional[Storage] = None) -> str:
        values = self.collect(storage)
        blocks = []
        for name, metric_type, help_text in METRIC_HELP:
            blocks.append(f"# HELP {name} {help_text}\n# TYPE {name} {metric_type}\n{name} {values[name]}")
        return "\n\n".join(blocks) + "\n"


metrics_collector = MetricsCollector()
