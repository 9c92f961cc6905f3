from datetime import timedelta

import pytest

from conftest import T0
from vanishchat.core.message_logic import expires_at, is_expired, lifetime, remaining_seconds


def test_lifetime_reference_values():
    assert lifetime(0) == 600
    assert lifetime(10) == 300
    assert lifetime(90) == 60
    # floor(600 / 1.1) == 545
    assert lifetime(1) == 545


def test_lifetime_is_non_increasing_and_never_below_one_second():
    previous = lifetime(0)
    for n in range(1, 20000, 7):
        current = lifetime(n)
        assert 1 <= current <= previous
        previous = current
    assert lifetime(10_000_000) == 1


def test_lifetime_rejects_negative_counts():
    with pytest.raises(ValueError):
        lifetime(-1)


def test_lifetime_custom_base():
    assert lifetime(0, base=60) == 60
    assert lifetime(10, base=60) == 30


def test_remaining_is_zero_at_and_after_expiry():
    ttl = 30
    assert expires_at(T0, ttl) == T0 + timedelta(seconds=30)
    assert remaining_seconds(T0, ttl, T0 + timedelta(seconds=30)) == 0
    assert remaining_seconds(T0, ttl, T0 + timedelta(seconds=45)) == 0
    assert is_expired(T0, ttl, T0 + timedelta(seconds=30))


def test_remaining_is_positive_strictly_before_expiry():
    ttl = 30
    assert remaining_seconds(T0, ttl, T0) == 30
    assert remaining_seconds(T0, ttl, T0 + timedelta(seconds=29)) == 1
    assert remaining_seconds(T0, ttl, T0 + timedelta(seconds=29, milliseconds=900)) == 1
    assert not is_expired(T0, ttl, T0 + timedelta(seconds=29, milliseconds=999))
