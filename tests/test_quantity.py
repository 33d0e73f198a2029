import pytest

from mpigang.quantity import Quantity, QuantityFormat, parse_quantity


@pytest.mark.parametrize("text", ["1", "2Gi", "512Gi", "100", "40", "100000Gi"])
def test_round_trip(text):
    assert str(parse_quantity(text)) == text


def test_add_and_multiply_cpu():
    total = parse_quantity("1") + parse_quantity("10") * 2
    assert total == parse_quantity("21")
    assert str(total) == "21"


def test_add_and_multiply_memory():
    total = parse_quantity("2Gi") + parse_quantity("20Gi") * 2
    assert total == parse_quantity("42Gi")
    assert str(total) == "42Gi"


def test_mixed_memory_sum_keeps_binary_suffix():
    total = parse_quantity("1Gi") + parse_quantity("32Gi") * 2
    assert str(total) == "65Gi"


def test_addition_is_commutative():
    a = parse_quantity("10")
    b = parse_quantity("50")
    assert a + b == b + a


def test_multiply_by_zero():
    assert parse_quantity("16Gi") * 0 == parse_quantity("0")


def test_rmul_matches_mul():
    q = parse_quantity("5")
    assert 3 * q == q * 3


def test_format_is_preserved_by_arithmetic():
    q = parse_quantity("20Gi")
    assert (q * 3).format is QuantityFormat.BINARY_SI
    assert (q + parse_quantity("10")).format is QuantityFormat.BINARY_SI


def test_format_detection():
    assert parse_quantity("8").format is QuantityFormat.DECIMAL_SI
    assert parse_quantity("2Gi").format is QuantityFormat.BINARY_SI
    assert parse_quantity("1e3").format is QuantityFormat.DECIMAL_EXPONENT


def test_equal_values_in_different_formats():
    assert parse_quantity("1e3") == parse_quantity("1k")
    assert hash(parse_quantity("1e3")) == hash(parse_quantity("1k"))


def test_milli_fraction():
    assert str(parse_quantity("0.5")) == "500m"


def test_ordering():
    assert parse_quantity("1Gi") < parse_quantity("2Gi")
    assert parse_quantity("20") > parse_quantity("10")


@pytest.mark.parametrize("text", ["", "abc", "1Zi", "Gi", "1.2.3"])
def test_invalid_quantities(text):
    with pytest.raises(ValueError):
        parse_quantity(text)


def test_adding_non_quantity_fails():
    with pytest.raises(TypeError):
        parse_quantity("1") + 1


def test_default_quantity_is_zero():
    assert Quantity() == parse_quantity("0")