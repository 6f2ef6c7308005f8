"""
Monitoring package initializer.

This package exposes Prometheus metrics and helper decorators for tracking request,
pipeline, tool and provider performance.
"""

from .metrics import (
    REQUEST_COUNT,
    REQUEST_LATENCY,
    ERROR_COUNT,
    PIPELINE_PROCESSING_TIME,
    TOOL_EXECUTION_TIME,
    LLM_REQUEST_TIME,
    TRANSCRIPTION_REQUEST_TIME,
    SYNTHESIS_REQUEST_TIME,
    TASK_API_REQUEST_TIME,
    PROVIDER_CALLS,
    track_latency,
    track_errors,
    timed,
)

__all__ = [
    'REQUEST_COUNT',
    'REQUEST_LATENCY',
    'ERROR_COUNT',
    'PIPELINE_PROCESSING_TIME',
    'TOOL_EXECUTION_TIME',
    'LLM_REQUEST_TIME',
    'TRANSCRIPTION_REQUEST_TIME',
    'SYNTHESIS_REQUEST_TIME',
    'TASK_API_REQUEST_TIME',
    'PROVIDER_CALLS',
    'track_latency',
    'track_errors',
    'timed',
]
