"""
Output channels of a transform.
"""

from abc import ABC, abstractmethod

from date_transform.core.models import InvalidEntry, StructuredRecord


class Emitter(ABC):
    """
    Receives the results of transforming records.

    A record ends up on exactly one channel: ``emit`` for transformed records,
    ``emit_error`` for original records that could not be processed.
    """

    @abstractmethod
    def emit(self, record: StructuredRecord) -> None:
        ...

    @abstractmethod
    def emit_error(self, entry: InvalidEntry) -> None:
        ...


class ListEmitter(Emitter):
    """Emitter that keeps both channels in memory."""

    def __init__(self):
        self.emitted: list[StructuredRecord] = []
        self.errors: list[InvalidEntry] = []

    def emit(self, record: StructuredRecord) -> None:
        self.emitted.append(record)

    def emit_error(self, entry: InvalidEntry) -> None:
        self.errors.append(entry)

    def clear(self) -> None:
        self.emitted.clear()
        self.errors.clear()
