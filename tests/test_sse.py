"""Tests for SSE wire formatting and parsing."""

import pytest

from parrot.realtime.events import SSEEvent
from parrot.realtime.sse import format_event
from parrot.templating.returns import Fragment
from parrot.testing.sse import parse_sse_frames


class TestSSEEvent:
    def test_data_only(self) -> None:
        assert SSEEvent(data="hello").encode() == "data: hello\n\n"

    def test_all_fields(self) -> None:
        encoded = SSEEvent(data="a\nb", event="cart", id="7", retry=3000).encode()
        assert encoded == "event: cart\nid: 7\nretry: 3000\ndata: a\ndata: b\n\n"


class TestFormatEvent:
    def test_str_uses_default_event(self) -> None:
        assert format_event("hi", default_event="tick") == "event: tick\ndata: hi\n\n"

    def test_dict_is_json(self) -> None:
        assert format_event({"n": 1}) == 'data: {"n": 1}\n\n'

    def test_event_passes_through(self) -> None:
        event = SSEEvent(data="x", event="custom")
        assert format_event(event, default_event="ignored") == event.encode()

    def test_fragment_uses_render(self) -> None:
        frag = Fragment("cart.html", "total", target="cart-total", total=3)
        text = format_event(frag, render=lambda f: f"<b>{f.context['total']}</b>")
        assert text == "event: cart-total\ndata: <b>3</b>\n\n"

    def test_fragment_default_event(self) -> None:
        text = format_event(Fragment("cart.html", "total"), render=lambda f: "x")
        assert text.startswith("event: fragment\n")

    def test_fragment_without_render(self) -> None:
        with pytest.raises(RuntimeError, match="template environment"):
            format_event(Fragment("cart.html", "total"))


class TestParseFrames:
    def test_events_and_heartbeats(self) -> None:
        raw = (
            "event: cart\nid: 1\ndata: one\n\n"
            ": heartbeat\n\n"
            "data: two\ndata: lines\n\n"
            "retry: nope\ndata: three\n\n"
        )
        events, heartbeats = parse_sse_frames(raw)
        assert heartbeats == 1
        assert events == [
            SSEEvent(data="one", event="cart", id="1"),
            SSEEvent(data="two\nlines"),
            SSEEvent(data="three"),
        ]
