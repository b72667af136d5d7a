"""Tests for the deterministic rules-based search parser."""

from __future__ import annotations

from datetime import date

import pytest

from src.intent.rules_parser import parse_intent


def test_three_capitalized_words_give_first_middle_last() -> None:
    intent = parse_intent("John Michael Smith")
    assert intent.first_name == "John"
    assert intent.middle_name == "Michael"
    assert intent.last_name == "Smith"


def test_several_middle_names_are_space_joined() -> None:
    intent = parse_intent("Jose Protasio Mercado Rizal")
    assert intent.first_name == "Jose"
    assert intent.middle_name == "Protasio Mercado"
    assert intent.last_name == "Rizal"


def test_two_capitalized_words_have_no_middle_name() -> None:
    intent = parse_intent("Maria Santos")
    assert intent.first_name == "Maria"
    assert intent.last_name == "Santos"
    assert intent.middle_name is None


def test_single_capitalized_word_is_a_surname() -> None:
    intent = parse_intent("Rizal")
    assert intent.last_name == "Rizal"
    assert intent.first_name is None
    assert intent.middle_name is None


def test_all_caps_and_punctuated_tokens_are_not_names() -> None:
    intent = parse_intent("SANTOS O'Neil maria Cruz,")
    assert intent.first_name is None
    assert intent.last_name is None


def test_born_assigns_year_of_birth() -> None:
    intent = parse_intent("born in 1950")
    assert intent.year_of_birth == 1950
    assert intent.year_of_death is None


def test_year_defaults_to_year_of_death() -> None:
    intent = parse_intent("died 1985")
    assert intent.year_of_death == 1985
    assert intent.year_of_birth is None


def test_born_detection_is_case_insensitive() -> None:
    assert parse_intent("BORN 2001").year_of_birth == 2001


def test_years_outside_1900s_and_2000s_are_ignored() -> None:
    intent = parse_intent("died 1885")
    assert intent.year_of_death is None
    assert intent.year_of_birth is None


def test_non_ascii_digits_are_not_years_or_dates() -> None:
    intent = parse_intent("died 19٥٠ on ١٩٨٥-03-02")
    assert intent.year_of_death is None
    assert intent.date_of_death is None


def test_full_date_goes_to_date_of_death_by_default() -> None:
    intent = parse_intent("passed away 1990-04-12")
    assert intent.date_of_death == date(1990, 4, 12)
    assert intent.date_of_birth is None
    # The year pattern matches the same token independently.
    assert intent.year_of_death == 1990


def test_full_date_with_born_goes_to_date_of_birth() -> None:
    intent = parse_intent("born 1931-02-05")
    assert intent.date_of_birth == date(1931, 2, 5)
    assert intent.year_of_birth == 1931
    assert intent.date_of_death is None


def test_invalid_calendar_date_is_ignored() -> None:
    intent = parse_intent("died 2020-13-45")
    assert intent.date_of_death is None
    assert intent.year_of_death == 2020


def test_relationship_and_gender_co_extraction() -> None:
    intent = parse_intent("my grandmother Maria who died in 1990")
    assert intent.relationship == "grandmother"
    assert intent.gender == "female"
    assert intent.year_of_death == 1990
    # A lone capitalized word is read as a surname.
    assert intent.last_name == "Maria"
    assert intent.first_name is None
    assert intent.confidence == pytest.approx(0.3)


def test_relationship_follows_vocabulary_order_not_input_order() -> None:
    intent = parse_intent("the uncle of my mother")
    assert intent.relationship == "mother"


def test_relationship_is_a_substring_match() -> None:
    assert parse_intent("my STEPFATHER").relationship == "father"


def test_explicit_gender_word_beats_relationship() -> None:
    intent = parse_intent("cousin, she was a nurse")
    assert intent.relationship == "cousin"
    assert intent.gender == "female"


def test_male_wins_when_both_genders_match() -> None:
    assert parse_intent("he and her").gender == "male"


def test_gender_needs_whole_words() -> None:
    intent = parse_intent("Thelma Sheridan")
    assert intent.gender is None


def test_neutral_relationship_implies_no_gender() -> None:
    assert parse_intent("cousin").gender is None


def test_confidence_is_fixed_even_when_nothing_matches() -> None:
    intent = parse_intent("where is the chapel")
    assert intent.confidence == pytest.approx(0.3)
    assert intent.populated_filters() == []
    assert intent.search_query == "where is the chapel"


def test_search_query_is_preserved_verbatim() -> None:
    raw = "  Juan dela Cruz, born 1950  "
    assert parse_intent(raw).search_query == raw


def test_empty_input_does_not_raise() -> None:
    intent = parse_intent("")
    assert intent.search_query == ""
    assert intent.populated_filters() == []
