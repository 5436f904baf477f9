"""
Event classification for combined-stream frames.

The stream carries no reliable type tag in every message shape, so the kind
of a frame is inferred from three signals, checked in a fixed order:

1. the ``stream`` name of a ``{"stream": ..., "data": ...}`` envelope,
2. the presence of the six best bid/offer keys in the payload object,
3. marker substrings in the raw frame text.

The order lives in ``CLASSIFICATION_RULES`` and the first matching rule
wins. Frames that match no rule are dropped, as are array payloads for
kinds that decode from a single object (only the 24hr ticker batch is a
sequence). Frames that match a rule but fail to decode into that rule's
record raise ``DecodeError``.

Example:
    >>> classifier = EventClassifier()
    >>> event = classifier.classify(
    ...     '{"stream":"btcusdt@aggTrade",'
    ...     '"data":{"e":"aggTrade","s":"BTCUSDT","p":"50000.00"}}'
    ... )
    >>> event.kind, event.data.symbol
    (<EventKind.TRADE: 'trade'>, 'BTCUSDT')
"""

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Pattern, Tuple

from pydantic import TypeAdapter, ValidationError

from fstream.core.exceptions import DecodeError
from fstream.models.event import EventKind, StreamEvent
from fstream.models.records import (
    AccountUpdateEvent,
    BookTickerEvent,
    DayTickerEvent,
    DepthOrderBookEvent,
    FuturesAccountUpdateEvent,
    FuturesFunding,
    KlineEvent,
    OrderBook,
    OrderTradeEvent,
    OrderTradeUpdateEvent,
    TradesEvent,
)

logger = logging.getLogger(__name__)

# (raw frame text, payload, stream hint) -> bool
RulePredicate = Callable[[str, Any, Optional[str]], bool]

BOOK_TICKER_KEYS = ("u", "s", "b", "B", "a", "A")

# Kinds whose record is a list; every other kind decodes from one object
SEQUENCE_KINDS = frozenset({EventKind.DAY_TICKER})


@dataclass(frozen=True)
class ClassificationRule:
    """One entry of the ordered rule table."""

    name: str
    kind: EventKind
    predicate: RulePredicate

    def matches(self, text: str, payload: Any, stream: Optional[str]) -> bool:
        return self.predicate(text, payload, stream)


def stream_contains(marker: str) -> RulePredicate:
    def predicate(text: str, payload: Any, stream: Optional[str]) -> bool:
        return stream is not None and marker in stream

    return predicate


def has_keys(*keys: str) -> RulePredicate:
    def predicate(text: str, payload: Any, stream: Optional[str]) -> bool:
        return isinstance(payload, dict) and all(
            payload.get(key) is not None for key in keys
        )

    return predicate


def text_contains(marker: str) -> RulePredicate:
    def predicate(text: str, payload: Any, stream: Optional[str]) -> bool:
        return marker in text

    return predicate


CLASSIFICATION_RULES: Tuple[ClassificationRule, ...] = (
    ClassificationRule("markPrice stream", EventKind.FUTURES_FUNDING, stream_contains("markPrice")),
    ClassificationRule("book ticker keys", EventKind.BOOK_TICKER, has_keys(*BOOK_TICKER_KEYS)),
    ClassificationRule("outboundAccountInfo", EventKind.ACCOUNT_UPDATE, text_contains("outboundAccountInfo")),
    ClassificationRule("executionReport", EventKind.ORDER_TRADE, text_contains("executionReport")),
    ClassificationRule("aggTrade", EventKind.TRADE, text_contains("aggTrade")),
    ClassificationRule("24hrTicker", EventKind.DAY_TICKER, text_contains("24hrTicker")),
    ClassificationRule("kline", EventKind.KLINE, text_contains("kline")),
    ClassificationRule("lastUpdateId", EventKind.ORDER_BOOK, text_contains("lastUpdateId")),
    ClassificationRule("depthUpdate", EventKind.DEPTH_ORDER_BOOK, text_contains("depthUpdate")),
    ClassificationRule("ACCOUNT_UPDATE", EventKind.FUTURES_ACCOUNT_UPDATE, text_contains("ACCOUNT_UPDATE")),
    ClassificationRule("ORDER_TRADE_UPDATE", EventKind.ORDER_TRADE_UPDATE, text_contains("ORDER_TRADE_UPDATE")),
)

# Stream names whose suffix alone identifies the payload shape.
# Depth streams are absent: "@depth<N>" carries either a snapshot or an
# update depending on the market, so those stay with the marker rules.
STREAM_NAME_KINDS: Tuple[Tuple[Pattern[str], EventKind], ...] = (
    (re.compile(r"@markPrice(@\d+s)?$"), EventKind.FUTURES_FUNDING),
    (re.compile(r"bookTicker$"), EventKind.BOOK_TICKER),
    (re.compile(r"@aggTrade$"), EventKind.TRADE),
    (re.compile(r"@kline_\w+$"), EventKind.KLINE),
    (re.compile(r"^!ticker@arr$"), EventKind.DAY_TICKER),
)

DECODERS: Dict[EventKind, TypeAdapter] = {
    EventKind.ACCOUNT_UPDATE: TypeAdapter(AccountUpdateEvent),
    EventKind.ORDER_TRADE: TypeAdapter(OrderTradeEvent),
    EventKind.TRADE: TypeAdapter(TradesEvent),
    EventKind.ORDER_BOOK: TypeAdapter(OrderBook),
    EventKind.DEPTH_ORDER_BOOK: TypeAdapter(DepthOrderBookEvent),
    EventKind.DAY_TICKER: TypeAdapter(List[DayTickerEvent]),
    EventKind.KLINE: TypeAdapter(KlineEvent),
    EventKind.BOOK_TICKER: TypeAdapter(BookTickerEvent),
    EventKind.FUTURES_ACCOUNT_UPDATE: TypeAdapter(FuturesAccountUpdateEvent),
    EventKind.ORDER_TRADE_UPDATE: TypeAdapter(OrderTradeUpdateEvent),
    EventKind.FUTURES_FUNDING: TypeAdapter(FuturesFunding),
}


def parse_frame(text: str) -> Any:
    """Parse frame text as JSON, raising DecodeError on failure."""
    try:
        return json.loads(text)
    except (json.JSONDecodeError, TypeError) as e:
        raise DecodeError(f"Invalid JSON in stream frame: {e}") from e


def select_payload(value: Any) -> Tuple[Any, Optional[str]]:
    """
    Unwrap the combined-stream envelope.

    Returns:
        (payload, stream hint). The hint is None for bare payloads.
    """
    if isinstance(value, dict) and isinstance(value.get("stream"), str) and "data" in value:
        return value["data"], value["stream"]
    return value, None


def is_structured(payload: Any) -> bool:
    return isinstance(payload, (dict, list))


def decode_payload(kind: EventKind, payload: Any) -> Any:
    """Decode a payload into the record type registered for ``kind``."""
    try:
        return DECODERS[kind].validate_python(payload)
    except ValidationError as e:
        raise DecodeError(
            f"Payload does not match {kind.value} schema: {e}", kind=kind.value
        ) from e


class EventClassifier:
    """
    Maps the text of one frame to a StreamEvent, or to None when the frame
    carries nothing we know how to decode.

    Holds no state between calls: classifying the same text twice yields
    equal results.

    Args:
        use_stream_suffix: Resolve the kind from the envelope's stream name
            (``STREAM_NAME_KINDS``) before falling back to the rule table.
            Off by default.
        rules: Ordered rule table (default: ``CLASSIFICATION_RULES``)
    """

    def __init__(
        self,
        use_stream_suffix: bool = False,
        rules: Tuple[ClassificationRule, ...] = CLASSIFICATION_RULES,
    ) -> None:
        self.use_stream_suffix = use_stream_suffix
        self.rules = rules

    def classify(self, text: str) -> Optional[StreamEvent]:
        """
        Classify and decode one text frame.

        Raises:
            DecodeError: Frame is not JSON, or its payload does not match the
                schema of the variant it was classified as
        """
        payload, stream = select_payload(parse_frame(text))

        if not is_structured(payload):
            logger.debug(f"Dropping frame with unstructured payload: {text[:200]}")
            return None

        kind = self.resolve_kind(text, payload, stream)
        if kind is None:
            logger.debug(f"Dropping unclassified frame: {text[:200]}")
            return None

        if isinstance(payload, list) and kind not in SEQUENCE_KINDS:
            logger.debug(f"Dropping sequence payload for {kind.value}: {text[:200]}")
            return None

        return StreamEvent(kind=kind, data=decode_payload(kind, payload), stream=stream)

    def resolve_kind(
        self, text: str, payload: Any, stream: Optional[str]
    ) -> Optional[EventKind]:
        if self.use_stream_suffix and stream is not None:
            for pattern, kind in STREAM_NAME_KINDS:
                if pattern.search(stream):
                    return kind

        rule = self.match_rule(text, payload, stream)
        return rule.kind if rule else None

    def match_rule(
        self, text: str, payload: Any, stream: Optional[str]
    ) -> Optional[ClassificationRule]:
        """Return the first rule matching the frame, or None."""
        for rule in self.rules:
            if rule.matches(text, payload, stream):
                return rule
        return None
