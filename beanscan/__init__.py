"""Minimal bean assembly discovery for running a single class in isolation."""

from .coordinator import CancelToken, ScanCoordinator, ScanOutcome, ScanStatus
from .registry import BeanRegistry
from .session import ScanResult, ScanSession, open_session

__version__ = "0.1.0"

__all__ = [
    "BeanRegistry",
    "CancelToken",
    "ScanCoordinator",
    "ScanOutcome",
    "ScanResult",
    "ScanSession",
    "ScanStatus",
    "open_session",
]
