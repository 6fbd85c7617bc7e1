# Price-range parsing: leading figure, optional upper bound, and the zero fallback.
from app.pricing import parse_price_range


def test_parses_dollar_range_with_thousands_separators():
    assert parse_price_range("$300,000 - $400,000") == (300000.0, 400000.0)


def test_parses_plain_dash_range():
    assert parse_price_range("300000-450000") == (300000.0, 450000.0)


def test_single_figure_is_both_bounds():
    assert parse_price_range("$1,250,000") == (1250000.0, 1250000.0)


def test_decimals_are_kept():
    assert parse_price_range("USD 99999.50 to 120000") == (99999.5, 120000.0)


def test_unparsable_or_empty_is_zero():
    assert parse_price_range("Call for price") == (0.0, 0.0)
    assert parse_price_range("") == (0.0, 0.0)
    assert parse_price_range(None) == (0.0, 0.0)


def test_upper_bound_never_below_lower_bound():
    assert parse_price_range("500,000 - 400,000") == (500000.0, 500000.0)


def test_lower_bound_is_first_numeral_in_prose():
    assert parse_price_range("from $320,000 (negotiable, 2 units)")[0] == 320000.0
