"""Services layer for Segscribe session logic."""

from .availability import BackendAvailability, ModelAvailability
from .session_controller import SessionController
from .timer import SessionTimer

__all__ = [
    "BackendAvailability",
    "ModelAvailability",
    "SessionController",
    "SessionTimer",
]
