"""Pre-session check that the speech and summary services are ready."""

import logging
from typing import Protocol, Sequence

logger = logging.getLogger(__name__)


class ModelAvailability(Protocol):
    def is_available(self) -> bool:
        ...


class Initializable(Protocol):
    def initialize(self) -> bool:
        ...


class BackendAvailability:
    """Reports the models available when every backend initializes."""

    def __init__(self, backends: Sequence[Initializable]):
        self.backends = list(backends)

    def is_available(self) -> bool:
        for backend in self.backends:
            name = type(backend).__name__
            try:
                ready = backend.initialize()
            except Exception as e:
                logger.error(f"{name} failed to initialize: {e}")
                return False
            if not ready:
                logger.error(f"{name} is not available")
                return False
            logger.info(f"{name} is available")
        return True
