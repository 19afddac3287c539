"""Shared utilities and helpers."""
from shared.diagnostics import (
    log_buffer,
    log_memory_usage,
    log_thread_status,
)

__all__ = [
    'log_buffer',
    'log_memory_usage',
    'log_thread_status',
]
