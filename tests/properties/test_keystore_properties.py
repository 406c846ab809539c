"""Property-based tests for the PEM codec and the key store invariants."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from hypothesis import given
from hypothesis import strategies as st

from keyledger.crypto import pem
from keyledger.store.models import KeyPair, KeyStore
from keyledger.store.manager import render_key_table

_LABEL_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZ"
_START = datetime(2024, 1, 1, tzinfo=timezone.utc)


def st_label() -> st.SearchStrategy[str]:
    """PEM labels: upper-case words joined by single spaces."""
    word = st.text(alphabet=_LABEL_ALPHABET, min_size=1, max_size=8)
    return st.lists(word, min_size=1, max_size=4).map(" ".join)


def _build_store(count: int) -> KeyStore:
    store = KeyStore.empty()
    for version in range(1, count + 1):
        store = store.append(
            KeyPair(
                private_key=f"private-{version}",
                public_key=f"public-{version}",
                created_at=_START + timedelta(days=version),
                version=version,
            )
        )
    return store


@given(data=st.binary(max_size=2048), label=st_label())
def test_pem_roundtrip(data: bytes, label: str) -> None:
    text = pem.encode(data, label)

    assert text.startswith(f"-----BEGIN {label}-----\n")
    assert text.endswith(f"-----END {label}-----\n")
    assert pem.decode(text, label) == data


@given(data=st.binary(max_size=2048))
def test_pem_body_lines_at_most_64(data: bytes) -> None:
    body = pem.encode(data, "X").splitlines()[1:-1]

    assert all(0 < len(line) <= 64 for line in body)
    assert all(len(line) == 64 for line in body[:-1])


@given(count=st.integers(min_value=0, max_value=25))
def test_current_version_is_max_version(count: int) -> None:
    store = _build_store(count)

    assert store.current_version == max((k.version for k in store.keys), default=0)
    assert [k.version for k in store.keys] == list(range(1, count + 1))


@given(count=st.integers(min_value=0, max_value=25))
def test_append_preserves_prefix(count: int) -> None:
    store = _build_store(count)
    new = store.append(
        KeyPair(
            private_key="private-new",
            public_key="public-new",
            created_at=_START,
            version=store.next_version,
        )
    )

    assert new.current_version == store.current_version + 1
    assert new.keys[:-1] == store.keys


@given(count=st.integers(min_value=0, max_value=25))
def test_store_json_roundtrip(count: int) -> None:
    store = _build_store(count)

    assert KeyStore.model_validate_json(store.model_dump_json(by_alias=True), strict=True) == store


@given(count=st.integers(min_value=1, max_value=25))
def test_listing_marks_exactly_one_current(count: int) -> None:
    table = render_key_table(_build_store(count))

    assert table.count("  Current  │") == 1
    assert table.count("  Archived │") == count - 1
    assert f"Version {count} │" in table.split("  Current  │")[1]
