"""Observability Module - Logging, Tracing, and Metrics

This module provides:
1. Structured logging for the report pipeline
2. Per-component execution tracing
3. Latency and success-rate metrics per component
"""
import time
import logging
import functools
from typing import Dict, Any, Optional, Callable, List
from dataclasses import dataclass, field

from config.settings import LOG_LEVEL

# Configure structured logging
logging.basicConfig(
    level=getattr(logging, LOG_LEVEL, logging.INFO),
    format='%(asctime)s | %(name)s | %(levelname)s | %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S'
)

logger = logging.getLogger("healthspan")


@dataclass
class ComponentTrace:
    """Represents a single component execution trace."""
    component: str
    start: float = field(default_factory=time.perf_counter)
    duration_ms: Optional[float] = None
    success: bool = True
    error: Optional[str] = None

    def complete(self, success: bool = True, error: Optional[str] = None):
        """Mark trace as complete."""
        self.duration_ms = (time.perf_counter() - self.start) * 1000
        self.success = success
        self.error = error


@dataclass
class ReportMetrics:
    """Aggregated metrics for the scoring pipeline."""
    total_calls: int = 0
    successful_calls: int = 0
    failed_calls: int = 0
    latencies: Dict[str, List[float]] = field(default_factory=dict)

    @property
    def success_rate(self) -> float:
        if self.total_calls == 0:
            return 0.0
        return self.successful_calls / self.total_calls

    def record(self, trace: ComponentTrace):
        """Record a trace into metrics."""
        self.total_calls += 1
        if trace.success:
            self.successful_calls += 1
        else:
            self.failed_calls += 1

        if trace.duration_ms is not None:
            self.latencies.setdefault(trace.component, []).append(trace.duration_ms)

    def avg_latency_ms(self, component: str) -> float:
        values = self.latencies.get(component) or []
        return sum(values) / len(values) if values else 0.0

    def summary(self) -> Dict[str, Any]:
        """Return metrics summary."""
        return {
            "total_calls": self.total_calls,
            "failed_calls": self.failed_calls,
            "success_rate": f"{self.success_rate:.1%}",
            "component_avg_latency_ms": {
                name: round(self.avg_latency_ms(name), 2) for name in self.latencies
            },
        }

    def reset(self):
        self.total_calls = self.successful_calls = self.failed_calls = 0
        self.latencies.clear()


# Global metrics instance
metrics = ReportMetrics()


class Tracer:
    """Context manager for tracing one component call."""

    def __init__(self, component: str):
        self.trace = ComponentTrace(component=component)

    def __enter__(self):
        logger.info(f"▶ {self.trace.component} started")
        return self.trace

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type:
            self.trace.complete(success=False, error=str(exc_val))
            logger.error(f"✖ {self.trace.component} failed: {exc_val}")
        else:
            self.trace.complete(success=True)
            logger.info(f"✔ {self.trace.component} completed in {self.trace.duration_ms:.1f}ms")

        metrics.record(self.trace)
        return False  # Don't suppress exceptions


def trace_component(name: Optional[str] = None) -> Callable:
    """Decorator to trace a scoring function or agent method."""
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            with Tracer(name or func.__name__):
                return func(*args, **kwargs)
        return wrapper
    return decorator


def get_metrics_summary() -> Dict[str, Any]:
    """Get current metrics summary."""
    return metrics.summary()
