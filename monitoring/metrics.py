"""
Core metrics and monitoring decorators for the voice assistant.

This module defines Prometheus metrics and decorators for tracking:
- Request latency and counts
- Error rates
- Pipeline processing time
- Tool execution time
- External API latency (LLM, transcription, synthesis and the task backend)
- Provider usage (calls per provider, mirrored from the usage tracker)
"""

import time
import functools
import logging
from typing import Optional, Callable
from prometheus_client import Counter, Histogram

logger = logging.getLogger(__name__)

# Request metrics
REQUEST_COUNT = Counter(
    'http_requests_total',
    'Total number of HTTP requests',
    ['method', 'endpoint', 'status']
)

REQUEST_LATENCY = Histogram(
    'http_request_duration_seconds',
    'HTTP request duration in seconds',
    ['method', 'endpoint'],
    buckets=[0.1, 0.5, 1.0, 2.0, 5.0, 10.0, float("inf")]
)

# Error metrics
ERROR_COUNT = Counter(
    'error_total',
    'Total number of errors',
    ['type', 'location']  # type: e.g., 'http', 'pipeline', 'tool'; location: specific component
)

# Pipeline metrics
PIPELINE_PROCESSING_TIME = Histogram(
    'pipeline_processing_duration_seconds',
    'Time spent processing in pipeline',
    ['pipeline_name'],
    buckets=[0.1, 0.5, 1.0, 2.0, 5.0, 10.0, float("inf")]
)

# Tool execution metrics
TOOL_EXECUTION_TIME = Histogram(
    'tool_execution_duration_seconds',
    'Time spent executing tools',
    ['tool_name'],
    buckets=[0.1, 0.5, 1.0, 2.0, 5.0, float("inf")]
)

# External API metrics
LLM_REQUEST_TIME = Histogram(
    'llm_request_duration_seconds',
    'Time spent waiting for LLM API',
    ['provider'],
    buckets=[0.5, 1.0, 2.0, 5.0, 10.0, float("inf")]
)

TRANSCRIPTION_REQUEST_TIME = Histogram(
    'transcription_request_duration_seconds',
    'Time spent waiting for the speech-to-text API',
    ['provider'],
    buckets=[0.1, 0.5, 1.0, 2.0, 5.0, float("inf")]
)

SYNTHESIS_REQUEST_TIME = Histogram(
    'synthesis_request_duration_seconds',
    'Time spent waiting for the speech synthesis API (until headers arrive)',
    ['provider'],
    buckets=[0.1, 0.5, 1.0, 2.0, 5.0, float("inf")]
)

TASK_API_REQUEST_TIME = Histogram(
    'task_api_request_duration_seconds',
    'Time spent waiting for the task-management backend',
    ['endpoint'],
    buckets=[0.1, 0.5, 1.0, 2.0, 5.0, float("inf")]
)

# Usage metrics
PROVIDER_CALLS = Counter(
    'provider_calls_total',
    'Number of billable provider invocations',
    ['provider']
)


def track_latency(metric: Histogram, labels: Optional[Callable] = None) -> Callable:
    """
    A decorator factory that tracks the execution time of a function using a Prometheus Histogram.

    Args:
        metric (Histogram): The Prometheus Histogram to record the timing in
        labels (Callable, optional): Function that receives the first positional argument
            (usually `self`) and returns the metric labels dictionary

    Returns:
        Callable: The decorated function
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            start_time = time.time()
            try:
                return func(*args, **kwargs)
            finally:
                duration = time.time() - start_time
                if labels and args:
                    metric.labels(**labels(args[0])).observe(duration)
                else:
                    metric.observe(duration)

                logger.debug(
                    f"Function {func.__name__} execution time: {duration:.2f} seconds",
                    extra={'duration': duration, 'function': func.__name__}
                )
        return wrapper
    return decorator


def track_errors(error_type: str, location) -> Callable:
    """
    A decorator factory that tracks errors occurring in a function.

    Args:
        error_type (str): Type of error (e.g., 'http', 'pipeline', 'tool')
        location (str | Callable): Where the error occurred, or a function that receives
            the first positional argument (usually `self`) and returns it

    Returns:
        Callable: The decorated function

    Example:
        @track_errors('pipeline', 'voice_command')
        def process_command(self, command):
            ...
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except Exception as e:
                where = location(args[0]) if callable(location) and args else location
                ERROR_COUNT.labels(type=error_type, location=where).inc()
                logger.error(
                    f"Error in {where} ({error_type}): {str(e)}",
                    extra={
                        'error_type': error_type,
                        'location': where,
                        'error': str(e)
                    },
                    exc_info=True
                )
                raise
        return wrapper
    return decorator


class timed:
    """
    Context manager form of `track_latency` for code that is not a whole function.

    Example:
        with timed(LLM_REQUEST_TIME, provider="groq"):
            client.chat.completions.create(...)
    """

    def __init__(self, metric: Histogram, **labels):
        self.metric = metric
        self.labels = labels
        self.duration = 0.0

    def __enter__(self):
        self._start = time.time()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.duration = time.time() - self._start
        if self.labels:
            self.metric.labels(**self.labels).observe(self.duration)
        else:
            self.metric.observe(self.duration)
        return False
