import pytest

from gemini_proxy.credentials import CredentialStore
from gemini_proxy.utils import mask_secret


def test_empty_pool_yields_none():
    assert CredentialStore().next_api_key() is None


@pytest.mark.parametrize("size", [1, 2, 5])
@pytest.mark.parametrize("extra", [0, 1, 7])
def test_round_robin_cycles_every_n_calls(size, extra):
    keys = [f"key-{i}" for i in range(size)]
    store = CredentialStore(keys)
    drawn = [store.next_api_key() for _ in range(size + extra)]
    assert drawn == [keys[i % size] for i in range(size + extra)]


def test_duplicates_are_ignored():
    store = CredentialStore(["a", "b"])
    store.add_api_key("a")
    store.add_api_key("")
    assert store.list_api_keys() == ["a", "b"]


def test_removing_key_past_cursor_wraps_to_start():
    store = CredentialStore(["a", "b", "c"])
    assert store.next_api_key() == "a"
    assert store.next_api_key() == "b"
    store.remove_api_key("c")
    assert store.next_api_key() == "a"


def test_removing_key_before_cursor_stays_in_range():
    store = CredentialStore(["a", "b", "c"])
    store.next_api_key()
    store.next_api_key()
    store.remove_api_key("a")
    for _ in range(5):
        assert store.next_api_key() in {"b", "c"}


def test_removing_last_key_empties_pool():
    store = CredentialStore(["a"])
    store.next_api_key()
    store.remove_api_key("a")
    store.remove_api_key("missing")
    assert store.next_api_key() is None


def test_listing_returns_a_copy():
    store = CredentialStore(["a"])
    store.list_api_keys().append("b")
    assert store.list_api_keys() == ["a"]


def test_auth_tokens_are_independent_of_keys():
    store = CredentialStore(["shared"], ["tok"])
    assert store.is_valid_auth_token("tok")
    assert not store.is_valid_auth_token("shared")
    store.add_auth_token("tok")
    store.remove_auth_token("tok")
    assert not store.is_valid_auth_token("tok")
    assert store.list_api_keys() == ["shared"]


@pytest.mark.parametrize(
    "value, expected",
    [
        ("", ""),
        ("short", "shor..."),
        ("AIzaSyAAAAAAAAAAAAAAAAAAAAAAAAAAAAA1", "AIzaSyAA...AAA1"),
    ],
)
def test_mask_secret(value, expected):
    assert mask_secret(value) == expected
