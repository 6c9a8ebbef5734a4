import pytest
from pdv.adapters.parsers import parse_inteiro, parse_valor

@pytest.mark.parametrize(
    "txt,expected",
    [
        ("$ 5.000", 5000.0),
        ("3,50", 3.5),
        ("3.50", 3.5),
        ("1.234,56", 1234.56),
        ("1,234.56", 1234.56),
        ("1.000.000", 1000000.0),
        ("R$ 12", 12.0),
        (7, 7.0),
        ("", None),
        ("abc", None),
        (None, None),
    ],
)
def test_parse_valor(txt, expected):
    assert parse_valor(txt) == expected


@pytest.mark.parametrize(
    "txt,expected",
    [("10", 10), ("2,6", 3), ("1.000", 1000), ("", None)],
)
def test_parse_inteiro(txt, expected):
    assert parse_inteiro(txt) == expected
