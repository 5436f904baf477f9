"""
Tests for EventClassifier.

EventClassifier handles:
- Combined-stream envelope unwrapping
- Ordered rule table (stream hint, book ticker keys, marker substrings)
- Decoding into typed records, DecodeError on schema mismatch
"""

import json

import pytest

from fstream.core.classifier import (
    CLASSIFICATION_RULES,
    EventClassifier,
    select_payload,
)
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


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def classifier():
    return EventClassifier()


# =============================================================================
# Rule table
# =============================================================================


class TestRuleTable:
    """The precedence order is data, so it can be checked directly."""

    def test_rule_order(self):
        assert [rule.kind for rule in CLASSIFICATION_RULES] == [
            EventKind.FUTURES_FUNDING,
            EventKind.BOOK_TICKER,
            EventKind.ACCOUNT_UPDATE,
            EventKind.ORDER_TRADE,
            EventKind.TRADE,
            EventKind.DAY_TICKER,
            EventKind.KLINE,
            EventKind.ORDER_BOOK,
            EventKind.DEPTH_ORDER_BOOK,
            EventKind.FUTURES_ACCOUNT_UPDATE,
            EventKind.ORDER_TRADE_UPDATE,
        ]

    def test_match_rule_returns_first_match(self, classifier):
        text = '{"e":"aggTrade","k":"kline"}'
        rule = classifier.match_rule(text, json.loads(text), None)
        assert rule.kind is EventKind.TRADE

    def test_match_rule_none_when_nothing_matches(self, classifier):
        text = '{"result":null,"id":1}'
        assert classifier.match_rule(text, json.loads(text), None) is None


# =============================================================================
# Envelope handling
# =============================================================================


class TestSelectPayload:
    def test_envelope_is_unwrapped(self):
        payload, stream = select_payload({"stream": "btcusdt@aggTrade", "data": {"e": "aggTrade"}})
        assert payload == {"e": "aggTrade"}
        assert stream == "btcusdt@aggTrade"

    def test_bare_object_has_no_stream_hint(self):
        payload, stream = select_payload({"e": "aggTrade", "s": "BTCUSDT"})
        assert payload == {"e": "aggTrade", "s": "BTCUSDT"}
        assert stream is None

    def test_non_string_stream_is_not_an_envelope(self):
        value = {"stream": 5, "data": {"e": "aggTrade"}}
        payload, stream = select_payload(value)
        assert payload is value
        assert stream is None

    def test_bare_array(self):
        payload, stream = select_payload([{"e": "24hrTicker"}])
        assert payload == [{"e": "24hrTicker"}]
        assert stream is None


# =============================================================================
# Classification per variant
# =============================================================================


class TestClassification:
    def test_agg_trade_envelope(self, classifier):
        """Concrete scenario from the protocol docs."""
        text = '{"stream":"btcusdt@aggTrade","data":{"e":"aggTrade","s":"BTCUSDT","p":"50000.00"}}'

        event = classifier.classify(text)

        assert event.kind is EventKind.TRADE
        assert isinstance(event.data, TradesEvent)
        assert event.data.symbol == "BTCUSDT"
        assert event.data.price == 50000.0
        assert event.stream == "btcusdt@aggTrade"

    def test_full_agg_trade(self, classifier, make_envelope, agg_trade_data):
        event = classifier.classify(make_envelope("btcusdt@aggTrade", agg_trade_data))

        assert event.data.aggregated_trade_id == 26129
        assert event.data.qty == 0.015
        assert event.data.is_buyer_maker is True

    def test_bare_day_ticker_array(self, classifier, day_ticker_data):
        event = classifier.classify(json.dumps(day_ticker_data))

        assert event.kind is EventKind.DAY_TICKER
        assert isinstance(event.data, list)
        assert len(event.data) == 2
        assert all(isinstance(t, DayTickerEvent) for t in event.data)
        assert [t.symbol for t in event.data] == ["BTCUSDT", "ETHUSDT"]
        assert event.stream is None

    def test_all_market_ticker_envelope(self, classifier, make_envelope, day_ticker_data):
        event = classifier.classify(make_envelope("!ticker@arr", day_ticker_data))

        assert event.kind is EventKind.DAY_TICKER
        assert event.data[0].current_close == 0.0025

    def test_mark_price(self, classifier, make_envelope, mark_price_data):
        event = classifier.classify(make_envelope("btcusdt@markPrice", mark_price_data))

        assert event.kind is EventKind.FUTURES_FUNDING
        assert isinstance(event.data, FuturesFunding)
        assert event.data.funding_rate == 0.00038167
        assert event.data.next_funding_time == 1562306400000

    def test_book_ticker(self, classifier, make_envelope, book_ticker_data):
        event = classifier.classify(make_envelope("bnbusdt@bookTicker", book_ticker_data))

        assert event.kind is EventKind.BOOK_TICKER
        assert isinstance(event.data, BookTickerEvent)
        assert event.data.update_id == 400900217
        assert event.data.best_bid == 25.3519
        assert event.data.best_ask_qty == 40.66

    def test_kline(self, classifier, make_envelope, kline_data):
        event = classifier.classify(make_envelope("btcusdt@kline_1m", kline_data))

        assert event.kind is EventKind.KLINE
        assert isinstance(event.data, KlineEvent)
        assert event.data.kline.interval == "1m"
        assert event.data.kline.close == 57050.0
        assert event.data.kline.is_final_bar is True

    def test_partial_book(self, classifier, make_envelope, partial_book_data):
        event = classifier.classify(make_envelope("btcusdt@depth5", partial_book_data))

        assert event.kind is EventKind.ORDER_BOOK
        assert isinstance(event.data, OrderBook)
        assert event.data.last_update_id == 160
        assert event.data.bids == [(0.0024, 10.0), (0.0023, 5.0)]

    def test_depth_update(self, classifier, make_envelope, depth_update_data):
        event = classifier.classify(make_envelope("btcusdt@depth", depth_update_data))

        assert event.kind is EventKind.DEPTH_ORDER_BOOK
        assert isinstance(event.data, DepthOrderBookEvent)
        assert event.data.first_update_id == 157
        assert event.data.final_update_id == 160
        assert event.data.asks == [(0.0026, 100.0)]

    def test_account_info(self, classifier, account_info_data):
        event = classifier.classify(json.dumps(account_info_data))

        assert event.kind is EventKind.ACCOUNT_UPDATE
        assert isinstance(event.data, AccountUpdateEvent)
        assert [b.asset for b in event.data.balances] == ["LTC", "BTC"]
        assert event.data.balances[1].locked == 2.19464093

    def test_execution_report(self, classifier, execution_report_data):
        event = classifier.classify(json.dumps(execution_report_data))

        assert event.kind is EventKind.ORDER_TRADE
        assert isinstance(event.data, OrderTradeEvent)
        assert event.data.order_id == 4293153
        assert event.data.side == "BUY"
        assert event.data.commission_asset is None

    def test_futures_account_update(self, classifier, make_envelope, futures_account_update_data):
        event = classifier.classify(make_envelope("listenKey123", futures_account_update_data))

        assert event.kind is EventKind.FUTURES_ACCOUNT_UPDATE
        assert isinstance(event.data, FuturesAccountUpdateEvent)
        assert event.data.data.reason == "ORDER"
        assert event.data.data.balances[0].wallet_balance == 122624.12345678
        assert event.data.data.positions[0].position_side == "BOTH"

    def test_order_trade_update(self, classifier, make_envelope, order_trade_update_data):
        event = classifier.classify(make_envelope("listenKey123", order_trade_update_data))

        assert event.kind is EventKind.ORDER_TRADE_UPDATE
        assert isinstance(event.data, OrderTradeUpdateEvent)
        assert event.data.order.order_id == 8886774
        assert event.data.order.stop_price == 7103.04


# =============================================================================
# Precedence between overlapping rules
# =============================================================================


class TestPrecedence:
    def test_mark_price_stream_wins_over_book_ticker_keys(self, classifier, make_envelope, book_ticker_data):
        event = classifier.classify(make_envelope("bnbusdt@markPrice", book_ticker_data))

        assert event.kind is EventKind.FUTURES_FUNDING
        assert event.data.symbol == "BNBUSDT"

    def test_mark_price_stream_wins_over_text_markers(self, classifier, make_envelope):
        data = {"e": "kline", "s": "BTCUSDT", "p": "1.5"}
        event = classifier.classify(make_envelope("btcusdt@markPrice@1s", data))

        assert event.kind is EventKind.FUTURES_FUNDING

    def test_book_ticker_keys_win_over_text_marker(self, classifier, book_ticker_data):
        book_ticker_data["note"] = "kline aggTrade depthUpdate"
        event = classifier.classify(json.dumps(book_ticker_data))

        assert event.kind is EventKind.BOOK_TICKER

    def test_book_ticker_keys_win_over_stream_name(self, classifier, make_envelope, book_ticker_data):
        event = classifier.classify(make_envelope("bnbusdt@kline_1m", book_ticker_data))

        assert event.kind is EventKind.BOOK_TICKER

    def test_null_book_ticker_key_does_not_match(self, classifier):
        data = {"e": "aggTrade", "u": 1, "s": "BTCUSDT", "b": "1", "B": "1", "a": None, "A": "1", "p": "25.0"}

        event = classifier.classify(json.dumps(data))

        assert event.kind is EventKind.TRADE
        assert event.data.price == 25.0

    def test_markers_scan_raw_text_including_stream_name(self, classifier, make_envelope):
        event = classifier.classify(make_envelope("btcusdt@aggTrade", {"s": "BTCUSDT", "p": "1", "e": "x"}))

        assert event.kind is EventKind.TRADE

    def test_last_update_id_before_depth_update(self, classifier, depth_update_data):
        depth_update_data["lastUpdateId"] = 1
        depth_update_data["bids"] = []
        depth_update_data["asks"] = []

        event = classifier.classify(json.dumps(depth_update_data))

        assert event.kind is EventKind.ORDER_BOOK

    def test_order_trade_update_is_not_shadowed_by_account_update(self, classifier, order_trade_update_data):
        """"ORDER_TRADE_UPDATE" does not contain "ACCOUNT_UPDATE"."""
        event = classifier.classify(json.dumps(order_trade_update_data))

        assert event.kind is EventKind.ORDER_TRADE_UPDATE


# =============================================================================
# Dropped frames
# =============================================================================


class TestDroppedFrames:
    @pytest.mark.parametrize("data", ["pong", 42, 1.5, True, None])
    def test_unstructured_data_is_dropped(self, classifier, make_envelope, data):
        assert classifier.classify(make_envelope("btcusdt@aggTrade", data)) is None

    def test_unstructured_data_on_mark_price_stream_is_dropped(self, classifier, make_envelope):
        assert classifier.classify(make_envelope("btcusdt@markPrice", "ping")) is None

    @pytest.mark.parametrize("text", ['"hello"', "17", "null"])
    def test_bare_scalar_is_dropped(self, classifier, text):
        assert classifier.classify(text) is None

    def test_subscription_response_is_dropped(self, classifier):
        assert classifier.classify('{"result":null,"id":1}') is None

    def test_all_mark_price_array_is_dropped(self, classifier, make_envelope, mark_price_data):
        assert classifier.classify(make_envelope("!markPrice@arr", [mark_price_data])) is None

    def test_array_for_single_record_kind_is_dropped(self, classifier, agg_trade_data):
        assert classifier.classify(json.dumps([agg_trade_data])) is None

    def test_array_dropped_with_stream_suffix_classification(self, make_envelope, mark_price_data):
        classifier = EventClassifier(use_stream_suffix=True)

        assert classifier.classify(make_envelope("btcusdt@markPrice", [mark_price_data])) is None

    def test_unknown_event_is_dropped(self, classifier, make_envelope):
        data = {"e": "forceOrder", "E": 1, "o": {"s": "BTCUSDT"}}
        assert classifier.classify(make_envelope("btcusdt@forceOrder", data)) is None


# =============================================================================
# Decode errors
# =============================================================================


class TestDecodeErrors:
    def test_invalid_json(self, classifier):
        with pytest.raises(DecodeError, match="Invalid JSON"):
            classifier.classify("{not json")

    def test_missing_required_field(self, classifier, make_envelope):
        with pytest.raises(DecodeError, match="trade schema") as exc_info:
            classifier.classify(make_envelope("btcusdt@aggTrade", {"e": "aggTrade", "p": "1"}))

        assert exc_info.value.kind == "trade"

    def test_wrong_type(self, classifier, make_envelope, kline_data):
        kline_data["k"]["o"] = "not-a-price"

        with pytest.raises(DecodeError) as exc_info:
            classifier.classify(make_envelope("btcusdt@kline_1m", kline_data))

        assert exc_info.value.kind == "kline"

    def test_day_ticker_object_instead_of_sequence(self, classifier, day_ticker_data):
        with pytest.raises(DecodeError) as exc_info:
            classifier.classify(json.dumps(day_ticker_data[0]))

        assert exc_info.value.kind == "day_ticker"

    def test_decode_error_chains_validation_error(self, classifier, make_envelope):
        with pytest.raises(DecodeError) as exc_info:
            classifier.classify(make_envelope("bnbusdt@bookTicker", {"u": 1, "s": "X", "b": "x", "B": 1, "a": 1, "A": 1}))

        assert exc_info.value.__cause__ is not None


# =============================================================================
# Purity
# =============================================================================


class TestIdempotence:
    def test_same_frame_same_result(self, classifier, make_envelope, kline_data):
        text = make_envelope("btcusdt@kline_1m", kline_data)

        first = classifier.classify(text)
        second = classifier.classify(text)

        assert isinstance(first, StreamEvent)
        assert first == second

    def test_separate_classifiers_agree(self, make_envelope, agg_trade_data):
        text = make_envelope("btcusdt@aggTrade", agg_trade_data)

        assert EventClassifier().classify(text) == EventClassifier().classify(text)


# =============================================================================
# Stream name discriminant (opt-in)
# =============================================================================


class TestStreamSuffixClassification:
    @pytest.fixture
    def suffix_classifier(self):
        return EventClassifier(use_stream_suffix=True)

    def test_stream_name_decides_before_text_markers(self, classifier, suffix_classifier, make_envelope, kline_data):
        kline_data["note"] = "aggTrade"
        text = make_envelope("btcusdt@kline_1m", kline_data)

        assert suffix_classifier.classify(text).kind is EventKind.KLINE
        # marker rules see "aggTrade" first and the kline payload fails the trade schema
        with pytest.raises(DecodeError):
            classifier.classify(text)

    def test_book_ticker_stream(self, suffix_classifier, make_envelope, book_ticker_data):
        event = suffix_classifier.classify(make_envelope("bnbusdt@bookTicker", book_ticker_data))

        assert event.kind is EventKind.BOOK_TICKER

    def test_kline_stream(self, suffix_classifier, make_envelope, kline_data):
        event = suffix_classifier.classify(make_envelope("btcusdt@kline_15m", kline_data))

        assert event.kind is EventKind.KLINE

    def test_unknown_stream_falls_back_to_rules(self, suffix_classifier, make_envelope, depth_update_data):
        event = suffix_classifier.classify(make_envelope("btcusdt@depth@100ms", depth_update_data))

        assert event.kind is EventKind.DEPTH_ORDER_BOOK

    def test_bare_payload_falls_back_to_rules(self, suffix_classifier, account_info_data):
        event = suffix_classifier.classify(json.dumps(account_info_data))

        assert event.kind is EventKind.ACCOUNT_UPDATE

    def test_default_classifier_ignores_stream_suffix(self, classifier, make_envelope, agg_trade_data):
        """Legacy rules: the agg trade payload has no markers besides aggTrade."""
        event = classifier.classify(make_envelope("btcusdt@kline_1m", agg_trade_data))

        assert event.kind is EventKind.TRADE
