"""
Tests for guess matching.
"""

import pytest

from airpictionary.matcher import first_match, matches, normalize


def test_normalize():
    assert normalize("  car ") == "CAR"


@pytest.mark.parametrize("guess", ["CAR", "car", "  Car  "])
def test_exact_match_ignores_case_and_whitespace(guess):
    assert matches(guess, "CAR")


def test_plural_either_direction():
    assert matches("cars", "CAR")
    assert matches("CAR", "CARS")


@pytest.mark.parametrize("target,guess", [
    ("CAR", "vehicle"),
    ("CAR", "Automobile"),
    ("HOUSE", "home"),
    ("SMILE", "smiley"),
    ("PHONE", "smartphone"),
])
def test_synonyms(target, guess):
    assert matches(guess, target)


def test_synonyms_are_keyed_by_target_only():
    assert not matches("CAR", "VEHICLE")


@pytest.mark.parametrize("guess", ["bike", "ca", "carss", "vehicles", ""])
def test_non_matches(guess):
    assert not matches(guess, "CAR")


def test_no_fuzzy_matching():
    assert not matches("HOUS", "HOUSE")
    assert not matches("BUTTERFLIES", "BUTTERFLY")


def test_first_match_returns_first_candidate():
    assert first_match(["BIKE", "VEHICLE", "CAR"], "car") == "VEHICLE"
    assert first_match(["BIKE", "TRAIN"], "car") is None
