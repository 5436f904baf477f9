"""
Consumer protocol for decoded stream events.

The dispatch loop hands every decoded StreamEvent to exactly one consumer.
Anything with an ``on_event(event)`` method qualifies; plain callables are
adapted with CallbackConsumer.
"""

from typing import Callable, Protocol, Union, runtime_checkable

from fstream.models.event import StreamEvent


@runtime_checkable
class StreamConsumer(Protocol):
    """
    Receiver of decoded stream events.

    Called synchronously from the dispatch loop, once per decoded frame, in
    arrival order, never concurrently. An exception raised from on_event
    stops the loop and propagates to the caller of run().

    Example:
        >>> class PrintConsumer:
        ...     def on_event(self, event: StreamEvent) -> None:
        ...         print(event.kind, event.data)
    """

    def on_event(self, event: StreamEvent) -> None:
        ...


class CallbackConsumer:
    """Adapts a one-argument callable to StreamConsumer."""

    def __init__(self, callback: Callable[[StreamEvent], None]) -> None:
        self.callback = callback

    def on_event(self, event: StreamEvent) -> None:
        self.callback(event)


ConsumerLike = Union[StreamConsumer, Callable[[StreamEvent], None]]


def as_consumer(consumer: ConsumerLike) -> StreamConsumer:
    """Return ``consumer`` as a StreamConsumer, wrapping plain callables."""
    if isinstance(consumer, StreamConsumer):
        return consumer
    if callable(consumer):
        return CallbackConsumer(consumer)
    raise TypeError(
        f"Consumer must define on_event(event) or be callable, got {type(consumer).__name__}"
    )
