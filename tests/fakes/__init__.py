"""Exports for test fakes."""

from .cache import DictCache
from .http import CannedAdapter, FakeCall, FakeResponse, FakeSession
from .logger import RecordingLogger
from .resilience import FakeRateLimiter

__all__ = [
    "CannedAdapter",
    "DictCache",
    "FakeCall",
    "FakeRateLimiter",
    "FakeResponse",
    "FakeSession",
    "RecordingLogger",
]
