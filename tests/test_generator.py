"""Tests for OtpGenerator — code shape and best-effort uniqueness."""

import random

import pytest

from otp_mailer.otp.generator import CODE_MAX, CODE_MIN, OtpGenerator


class ScriptedRandom(random.Random):
    """Returns queued values from ``randint`` in order."""

    def __init__(self, values):
        super().__init__()
        self._values = list(values)
        self.calls = 0

    def randint(self, a, b):
        self.calls += 1
        return self._values.pop(0)


def test_codes_are_six_digit_numeric():
    gen = OtpGenerator(rng=random.Random(1234))
    for _ in range(500):
        code = gen.generate()
        assert len(code) == 6
        assert code.isdigit()
        assert CODE_MIN <= int(code) <= CODE_MAX


def test_default_rng_is_system_random():
    code = OtpGenerator().generate_unique()
    assert CODE_MIN <= int(code) <= CODE_MAX


def test_no_active_codes_returns_first_draw():
    rng = ScriptedRandom([111111, 222222])
    assert OtpGenerator(rng=rng).generate_unique(set()) == "111111"
    assert rng.calls == 1


def test_skips_active_codes():
    rng = ScriptedRandom([111111, 222222, 333333])
    active = {"111111", "222222"}

    code = OtpGenerator(max_attempts=5, rng=rng).generate_unique(active)

    assert code == "333333"
    assert rng.calls == 3


def test_never_returns_one_of_many_active_codes():
    rng = random.Random(99)
    active = {str(rng.randint(CODE_MIN, CODE_MAX)) for _ in range(1_000)}
    gen = OtpGenerator(rng=random.Random(7))

    for _ in range(200):
        assert gen.generate_unique(active) not in active


def test_exhausted_retries_fall_back_to_last_draw():
    rng = ScriptedRandom([111111, 222222, 333333])
    active = {"111111", "222222", "333333"}

    code = OtpGenerator(max_attempts=3, rng=rng).generate_unique(active)

    # Every draw collided; the last one is used instead of failing
    assert code == "333333"
    assert rng.calls == 3


def test_rejects_non_positive_attempts():
    with pytest.raises(ValueError):
        OtpGenerator(max_attempts=0)
