from __future__ import annotations

from dataclasses import dataclass
from threading import Lock

ANONYMOUS_ROLE = "anonymous"


@dataclass
class EndpointMetric:
    total_requests: int = 0
    total_duration_ms: float = 0.0
    error_count: int = 0

    def add(self, status_code: int, duration_ms: float) -> None:
        self.total_requests += 1
        self.total_duration_ms += duration_ms
        if status_code >= 400:
            self.error_count += 1

    @property
    def avg_duration_ms(self) -> float:
        return self.total_duration_ms / self.total_requests if self.total_requests else 0.0


class InMemoryRequestMetrics:
    def __init__(self) -> None:
        self._metrics: dict[tuple[str, str], EndpointMetric] = {}
        self._role_metrics: dict[str, EndpointMetric] = {}
        self._lock = Lock()

    def observe(
        self,
        endpoint: str,
        method: str,
        status_code: int,
        duration_ms: float,
        user_role: str | None = None,
    ) -> None:
        with self._lock:
            self._metrics.setdefault((endpoint, method), EndpointMetric()).add(status_code, duration_ms)
            # clientes e donos de restaurante separados; sem token conta como anônimo
            role = user_role or ANONYMOUS_ROLE
            self._role_metrics.setdefault(role, EndpointMetric()).add(status_code, duration_ms)

    def snapshot(self) -> dict[str, dict[str, float | int]]:
        with self._lock:
            result: dict[str, dict[str, float | int]] = {}
            for (endpoint, method), metric in self._metrics.items():
                result[f"{method} {endpoint}"] = {
                    "total_requests": metric.total_requests,
                    "total_duration_ms": round(metric.total_duration_ms, 2),
                    "avg_duration_ms": round(metric.avg_duration_ms, 2),
                    "error_count": metric.error_count,
                }
            return result

    def snapshot_per_role(self) -> dict[str, dict[str, float | int]]:
        with self._lock:
            return {
                role: {
                    "total_requests": metric.total_requests,
                    "error_count": metric.error_count,
                    "avg_duration_ms": round(metric.avg_duration_ms, 2),
                }
                for role, metric in self._role_metrics.items()
            }

    def reset(self) -> None:
        with self._lock:
            self._metrics.clear()
            self._role_metrics.clear()


request_metrics = InMemoryRequestMetrics()
