"""
Decorator for tracking AI provider metrics.
"""
import time
import functools
from chatgenius.utils.metrics import (
    ai_provider_requests_total,
    ai_provider_failures_total,
    ai_provider_latency_seconds,
)


def track_ai_provider_metrics_async(provider_name: str, operation: str):
    """
    Async decorator to track AI provider metrics.

    Args:
        provider_name: Provider name (openai)
        operation: Operation name (embed, complete)
    """
    def decorator(func):
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            start_time = time.time()

            ai_provider_requests_total.labels(
                provider=provider_name,
                operation=operation
            ).inc()

            try:
                result = await func(*args, **kwargs)
            except Exception:
                ai_provider_failures_total.labels(
                    provider=provider_name,
                    operation=operation
                ).inc()
                raise
            finally:
                ai_provider_latency_seconds.labels(
                    provider=provider_name,
                    operation=operation
                ).observe(time.time() - start_time)

            return result

        return wrapper
    return decorator
