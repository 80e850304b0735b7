"""Tests for filter resolution."""

import pytest

from conftest import AUTHORS, TEXTS
from turath_search.filters import authors_dying_in, observed_death_range, resolve_eligible_ids
from turath_search.models import DeathDateRange, FilterCriteria

FULL = DeathDateRange(min=465, max=630)


def resolve(**kwargs):
    return resolve_eligible_ids(FilterCriteria(**kwargs), TEXTS, AUTHORS)


def test_observed_range():
    assert observed_death_range(AUTHORS.values()) == FULL
    assert observed_death_range([]) is None


def test_default_criteria_return_every_text():
    assert resolve() == set(TEXTS)


def test_full_observed_range_is_no_op():
    assert resolve(death_date_range=FULL) == set(TEXTS)


def test_genres_intersect_tags():
    assert resolve(genres=frozenset({"تصوف"})) == {1, 2}
    assert resolve(genres=frozenset({"فقه", "تاريخ"})) == {1, 3}


def test_authors():
    assert resolve(author_ids=frozenset({11, 12})) == {2, 3}


def test_death_range_excludes_undated_authors():
    eligible = resolve(death_date_range=DeathDateRange(min=400, max=500))
    assert eligible == {2}
    assert 4 not in eligible  # author 13 has no death date
    assert 5 not in eligible  # author 99 is unknown


def test_death_range_inclusive():
    assert resolve(death_date_range=DeathDateRange(min=505, max=630)) == {1, 3}


def test_predicates_intersect():
    eligible = resolve(
        genres=frozenset({"تصوف"}),
        author_ids=frozenset({10, 12}),
        death_date_range=DeathDateRange(min=500, max=600),
    )
    assert eligible == {1}


def test_no_match_is_empty():
    assert resolve(genres=frozenset({"طب"})) == set()
    assert resolve(genres=frozenset({"تاريخ"}), author_ids=frozenset({10})) == set()


def test_explicit_observed_range():
    observed = DeathDateRange(min=400, max=500)
    criteria = FilterCriteria(death_date_range=observed)
    assert resolve_eligible_ids(criteria, TEXTS, AUTHORS, observed=observed) == set(TEXTS)


def test_authors_dying_in():
    assert authors_dying_in(AUTHORS.values(), DeathDateRange(min=0, max=2000)) == {10, 11, 12}


def test_criteria_is_default():
    assert FilterCriteria().is_default(FULL)
    assert FilterCriteria(death_date_range=FULL).is_default(FULL)
    assert not FilterCriteria(death_date_range=DeathDateRange(0, 2000)).is_default(FULL)
    assert not FilterCriteria(genres=frozenset({"تصوف"})).is_default(FULL)


def test_inverted_range_rejected():
    with pytest.raises(ValueError):
        DeathDateRange(min=600, max=500)
