from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class UseCaseRequest:
    """Use case input DTO base."""
    pass


@dataclass(frozen=True)
class UseCaseResponse:
    """Use case output DTO base.

    Batch use cases report per-item failures in ``failed`` instead of
    raising; ``success`` is true when nothing failed.
    """
    failed: int = 0

    @property
    def success(self) -> bool:
        return self.failed == 0


class UseCase(ABC):
    """Use case base class."""

    @abstractmethod
    def execute(self, request: UseCaseRequest) -> UseCaseResponse:
        ...
