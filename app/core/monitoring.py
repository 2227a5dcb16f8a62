# app/core/monitoring.py - request counters behind /api/health

import time
import logging
from datetime import datetime
from threading import Lock
from typing import Any, Dict, Optional

from fastapi import Request

logger = logging.getLogger("monitoring")

# share of 5xx responses above which the API reports itself degraded
DEGRADED_FAILURE_RATE = 0.05


class Monitoring:
    def __init__(self):
        self._lock = Lock()
        self.total = 0
        self.failed = 0
        self.total_ms = 0.0
        self.last_error: Optional[Dict[str, Any]] = None

    def record_request(self, success: bool, response_time_ms: float):
        with self._lock:
            self.total += 1
            self.total_ms += response_time_ms
            if not success:
                self.failed += 1

    def record_error(self, error: str, path: Optional[str] = None):
        self.last_error = {"error": error, "path": path, "timestamp": datetime.utcnow().isoformat()}
        logger.error(f"Server error on {path}: {error}")

    def get_health_status(self) -> Dict[str, Any]:
        with self._lock:
            total, failed, total_ms = self.total, self.failed, self.total_ms
        failure_rate = failed / total if total else 0.0
        return {
            "status": "degraded" if failure_rate > DEGRADED_FAILURE_RATE else "ok",
            "total_requests": total,
            "requests_failed": failed,
            "average_response_time_ms": round(total_ms / total, 2) if total else 0.0,
            "last_error": self.last_error,
        }


async def monitoring_middleware(request: Request, call_next):
    """Time every request; 5xx responses count as failures"""
    monitor: Monitoring = request.app.state.monitoring
    started = time.perf_counter()
    try:
        response = await call_next(request)
    except Exception as e:
        monitor.record_request(False, (time.perf_counter() - started) * 1000)
        monitor.record_error(str(e), request.url.path)
        raise
    success = response.status_code < 500
    monitor.record_request(success, (time.perf_counter() - started) * 1000)
    if not success:
        monitor.record_error(f"HTTP {response.status_code}", request.url.path)
    return response
