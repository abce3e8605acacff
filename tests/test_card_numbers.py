"""
Unit tests for membership card number candidates.
"""
import pytest

from app.services.card_numbers import CardNumberGenerator


def test_candidate_format():
    """Candidates are 12 digits starting with the default prefix 45."""
    generator = CardNumberGenerator()
    for _ in range(50):
        card = generator.candidate()
        assert len(card) == 12
        assert card.isdigit()
        assert card.startswith("45")


def test_candidate_uses_injected_digits():
    generator = CardNumberGenerator(random_digits=lambda: "0123456789")
    assert generator.candidate() == "450123456789"


def test_prefix_rotates_every_ten_collisions():
    generator = CardNumberGenerator(random_digits=lambda: "0000000000")
    for _ in range(9):
        generator.record_collision()
    assert generator.prefix == 45

    generator.record_collision()
    assert generator.prefix == 46
    assert generator.candidate().startswith("46")

    for _ in range(10):
        generator.record_collision()
    assert generator.prefix == 47


def test_prefix_wraps_from_99_to_10():
    generator = CardNumberGenerator(prefix=99, rotate_every=1)
    generator.record_collision()
    assert generator.prefix == 10
    generator.record_collision()
    assert generator.prefix == 11


def test_invalid_prefix_rejected():
    with pytest.raises(ValueError):
        CardNumberGenerator(prefix=7)
    with pytest.raises(ValueError):
        CardNumberGenerator(prefix=100)


def test_malformed_random_digits_rejected():
    generator = CardNumberGenerator(random_digits=lambda: "12345")
    with pytest.raises(ValueError):
        generator.candidate()
