import pytest

from refactor_prompt.cache import ResponseCache, fingerprint


class _Clock:
    def __init__(self) -> None:
        self.now = 100.0

    def __call__(self) -> float:
        return self.now


def test_cch_001_entries_expire_after_ttl() -> None:
    clock = _Clock()
    cache = ResponseCache(ttl_seconds=10, clock=clock)
    cache.set("key", "value")

    clock.now = 109.9
    assert cache.get("key") == "value"

    clock.now = 110.0
    assert cache.get("key") is None
    assert len(cache) == 0


def test_cch_002_fingerprint_is_deterministic_and_part_sensitive() -> None:
    assert fingerprint("system", "user") == fingerprint("system", "user")
    assert fingerprint("ab", "c") != fingerprint("a", "bc")


def test_cch_003_negative_ttl_is_rejected() -> None:
    with pytest.raises(ValueError):
        ResponseCache(ttl_seconds=-1)
