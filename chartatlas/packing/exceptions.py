"""Custom exceptions for atlas packing operations"""

from typing import Tuple


class PackingError(Exception):
    """Base exception for packing errors"""
    pass


class PackingAttemptsExceeded(PackingError):
    """The growth loop ran out of attempts without placing a single chart"""

    def __init__(self, container_size: Tuple[int, int], batch_size: int, attempts: int):
        self.container_size = container_size
        self.batch_size = batch_size
        self.attempts = attempts
        super().__init__(
            f"Packing exceeded {attempts} attempts for a batch of {batch_size} charts "
            f"(grid size {container_size[0]}x{container_size[1]})"
        )


class PackingInvariantError(PackingError):
    """Oracle or bookkeeping broke a packing contract (programming error)"""
    pass
