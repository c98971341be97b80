import pandas as pd
import pytest

from bi_core.filters import FilterValue, Filters, to_filter_values
from bi_core.matchers import (
    KeywordMatcher,
    MatcherCache,
    RevenueMatcher,
    SearchMatcher,
    ValueMatcher,
    compile_filters,
    compile_keyword_matcher,
    compile_value_matcher,
)


def inc(*values):
    return to_filter_values(values, "include")


def exc(*values):
    return to_filter_values(values, "exclude")


def test_empty_filter_matches_everything():
    matcher = compile_value_matcher(())

    assert not matcher.is_active
    assert matcher("India")
    assert matcher(None)
    assert matcher.mask(pd.Series(["India", None, ""])).all()


def test_include_values_are_or_ed():
    matcher = compile_value_matcher(inc("India", "USA"))

    assert matcher("India")
    assert matcher("USA")
    assert not matcher("Germany")


def test_exclude_only_keeps_everything_else():
    matcher = compile_value_matcher(exc("USA"))

    assert not matcher("USA")
    assert matcher("India")


def test_exclude_wins_over_include():
    matcher = compile_value_matcher(inc("India") + exc("India"))

    assert not matcher("India")
    assert not matcher.mask(pd.Series(["India"])).iloc[0]


@pytest.mark.parametrize("blank", [None, float("nan"), "", "   ", pd.NA])
def test_blank_values_follow_include_set(blank):
    assert not compile_value_matcher(inc("India"))(blank)
    assert compile_value_matcher(exc("USA"))(blank)


def test_explicit_blank_flag_controls_blanks():
    with_blanks = compile_value_matcher(inc("India"), include_blanks=True)
    without_blanks = compile_value_matcher(exc("USA"), include_blanks=False)

    assert with_blanks(None)
    assert with_blanks("India")
    assert not with_blanks("USA")
    assert not without_blanks(None)
    assert without_blanks("India")


def test_blank_flag_alone_does_not_activate_field():
    matcher = compile_value_matcher((), include_blanks=False)

    assert not matcher.is_active
    assert matcher(None)


def test_mask_agrees_with_scalar_predicate():
    series = pd.Series(["India", "USA", None, "", "Germany"], dtype="string")
    for values, flag in [
        (inc("India"), None),
        (exc("USA"), None),
        (inc("India", "USA") + exc("USA"), None),
        (inc("Germany"), True),
        (exc("Germany"), False),
    ]:
        matcher = compile_value_matcher(values, flag)
        assert matcher.mask(series).tolist() == [matcher(v) for v in series.tolist()]


def test_keyword_include_and_exclude():
    matcher = compile_keyword_matcher(inc("Manager") + exc("Senior"))

    assert matcher("Manager")
    assert not matcher("Senior Manager")
    assert not matcher("Director")


def test_keyword_match_is_case_insensitive_substring():
    matcher = compile_keyword_matcher(inc("eng"))

    assert matcher("VP Engineering")
    assert not matcher(None)
    mask = matcher.mask(pd.Series(["VP ENGINEERING", "Sales", None]))
    assert mask.tolist() == [True, False, False]


def test_keyword_compile_drops_empty_and_duplicate_keywords():
    matcher = compile_keyword_matcher(inc("  ", "Manager", "manager"))

    assert matcher == KeywordMatcher(("manager",), ())


def test_revenue_matcher_range_and_null_policy():
    strict = RevenueMatcher((0, 20), include_null=False)
    lenient = RevenueMatcher((0, 20), include_null=True)

    assert strict(10)
    assert not strict(50)
    assert not strict(0)
    assert not strict(None)
    assert lenient(None)
    assert lenient(0)
    assert not lenient(50)
    assert strict.mask(pd.Series([10.0, 50.0, 0.0])).tolist() == [True, False, False]
    assert lenient.mask(pd.Series([10.0, 50.0, 0.0])).tolist() == [True, False, True]


def test_revenue_matcher_without_range_is_inactive():
    matcher = RevenueMatcher(None, include_null=False)

    assert not matcher.is_active
    assert matcher(None)


def test_search_matcher_looks_across_columns():
    frame = pd.DataFrame({
        "prospect_first_name": ["Asha", "Ben"],
        "prospect_title": ["Manager", "Director"],
        "prospect_email": ["asha@acme.com", None],
    })
    matcher = SearchMatcher("acme")

    assert matcher.mask(frame).tolist() == [True, False]
    assert matcher({"prospect_email": "asha@acme.com"})
    assert not matcher({"prospect_title": "Director"})


def test_cache_reuses_compiled_matchers():
    cache = MatcherCache()
    values = inc("India")

    first = cache.value_matcher(values)
    second = cache.value_matcher(inc("India"))

    assert first is second
    assert cache.stats() == {"size": 1, "hits": 1, "misses": 1}


def test_cache_key_includes_mode_and_blank_flag():
    cache = MatcherCache()

    a = cache.value_matcher(inc("India"))
    b = cache.value_matcher(exc("India"))
    c = cache.value_matcher(inc("India"), include_blanks=True)

    assert a != b
    assert a != c
    assert len(cache) == 3


def test_cache_evicts_least_recently_used():
    cache = MatcherCache(maxsize=2)
    cache.value_matcher(inc("a"))
    cache.value_matcher(inc("b"))
    cache.value_matcher(inc("a"))
    cache.value_matcher(inc("c"))

    assert len(cache) == 2
    cache.value_matcher(inc("a"))
    assert cache.hits == 2
    cache.clear()
    assert cache.stats() == {"size": 0, "hits": 0, "misses": 0}


def test_compile_filters_returns_active_fields_only():
    filters = Filters(
        account_countries=inc("India"),
        prospect_title_keywords=inc("manager"),
        account_revenue_range=(0, 100),
        search_term="  Acme ",
    )

    compiled = compile_filters(filters)

    assert set(compiled) == {"account_countries", "prospect_title_keywords", "account_revenue_range", "search_term"}
    assert isinstance(compiled["account_countries"], ValueMatcher)
    assert compiled["search_term"] == SearchMatcher("acme")


def test_filter_value_defaults_to_include():
    assert FilterValue("x").mode == "include"
