"""Shared scope declarations for the test suite."""

from typing import Any

import pytest

from parrot.scopes.model import Nested


@pytest.fixture
def scope_mapping() -> dict[str, Any]:
    """Declaration in the mapping form: root, a nested region, and a sibling locale."""
    return {
        "/": {
            "assigns": {"locale": "en", "name": "English"},
            "scopes": {
                "/gb": {"assigns": {"name": "British"}},
                "/us": {"assigns": {"name": "American"}},
            },
        },
        "/nl": {"assigns": {"locale": "nl", "name": "Nederlands"}},
    }


@pytest.fixture
def scope_tree() -> Nested:
    """The same tree as ``scope_mapping``, declared with ``Nested``."""
    return Nested(
        assigns={"locale": "en", "name": "English"},
        children=(
            Nested("gb", {"name": "British"}),
            Nested("us", {"name": "American"}),
            Nested("nl", {"locale": "nl", "name": "Nederlands"}),
        ),
    )
