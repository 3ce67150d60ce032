# Copyright (c) Syntropy Systems
"""Tests for configuration keys."""

import pytest

from rankgrid.configuration import ConfigurationKey, classify_value, lisp_name
from rankgrid.ranges import ParameterRanges

JHPSTG = (
    "[jhpstg] GP[2] +PT -LEX CW[2] +AE NS[4] NT[type] -NB LM[0] FT[:::1] RS[] "
    "MM[tao_lmvm] MI[5000] RT[1.0e-8] AT[1.0e-20] VA[1.0e+0] PC[100]"
)

JHPSTG_PARAMETERS = {
    "grandparenting": 2,
    "use-preterminal-types-p": True,
    "lexicalization-p": False,
    "constituent-weight": 2,
    "active-edges-p": True,
    "ngram-size": 4,
    "ngram-tag": "type",
    "ngram-back-off-p": False,
    "lm-p": 0,
    "random-sample-size": "",
    "MM": "tao_lmvm",
    "MI": 5000,
    "relative-tolerance": 1.0e-8,
    "AT": 1.0e-20,
    "variance": 1.0,
    "PC": 100,
}


class TestParse:
    """Tests for ConfigurationKey.parse."""

    def test_parse(self) -> None:
        """Test reading a profile name."""
        key = ConfigurationKey.parse(JHPSTG)

        assert key.name == "jhpstg"
        assert key.parameters == JHPSTG_PARAMETERS

    def test_parse_value_types(self) -> None:
        """Test that values are classified."""
        key = ConfigurationKey.parse(JHPSTG)

        assert isinstance(key["grandparenting"], int)
        assert isinstance(key["relative-tolerance"], float)
        assert key["use-preterminal-types-p"] is True
        assert key["lexicalization-p"] is False

    def test_ft_is_ignored(self) -> None:
        """Test that FT tokens carry no parameter."""
        key = ConfigurationKey.parse("[x] FT[a:b:c:2] GP[1]")

        assert key.parameters == {"grandparenting": 1}

    def test_unknown_abbreviation(self) -> None:
        """Test that names outside the table are kept."""
        key = ConfigurationKey.parse("[x] XY[3] +ZZ")

        assert key.parameters == {"XY": 3, "ZZ": True}

    def test_invalid_prefix(self) -> None:
        """Test that the name must be in brackets."""
        with pytest.raises(ValueError, match="Invalid prefix field"):
            _ = ConfigurationKey.parse("jhpstg GP[2]")

    def test_invalid_field(self) -> None:
        """Test that every token must be a value or a flag."""
        with pytest.raises(ValueError, match="Invalid field GP2"):
            _ = ConfigurationKey.parse("[jhpstg] GP2")

    def test_empty(self) -> None:
        """Test that a name is required."""
        with pytest.raises(ValueError):
            _ = ConfigurationKey.parse("   ")


class TestToString:
    """Tests for writing profile names."""

    def test_round_trip(self) -> None:
        """Test that a parsed name is written back unchanged."""
        assert ConfigurationKey.parse(JHPSTG).to_string() == JHPSTG

    def test_from_parameters(self) -> None:
        """Test writing a key built from parameters."""
        key = ConfigurationKey("jhpstg", JHPSTG_PARAMETERS)

        assert str(key) == JHPSTG

    def test_missing_parameters(self) -> None:
        """Test that absent fields are empty and absent flags are off."""
        key = ConfigurationKey("x", {"grandparenting": 3, "unlisted": 1})

        assert key.to_string() == (
            "[x] GP[3] -PT -LEX CW[] -AE NS[] NT[] -NB LM[] FT[:::1] RS[] "
            "MM[] MI[] RT[] AT[] VA[] PC[]"
        )

    def test_float_fields(self) -> None:
        """Test Lisp scientific notation for float fields."""
        key = ConfigurationKey("x", {"relative-tolerance": 0.1, "variance": 1e-100})

        text = key.to_string()

        assert "RT[1.0e-1]" in text
        assert "VA[1.0e-100]" in text

    def test_parse_written_key(self) -> None:
        """Test reading back a key that has every field."""
        key = ConfigurationKey.parse(JHPSTG)

        assert ConfigurationKey.parse(str(key)) == key


class TestConfigurationKey:
    """Tests for the mapping and conversion methods."""

    def test_mapping(self) -> None:
        """Test mapping access to the parameters."""
        key = ConfigurationKey("x", {"grandparenting": 1, "ngram-size": 2})

        assert len(key) == 2
        assert list(key) == ["grandparenting", "ngram-size"]
        assert key["ngram-size"] == 2

    def test_equality_and_hash(self) -> None:
        """Test that keys with the same contents are interchangeable."""
        a = ConfigurationKey("x", {"grandparenting": 1, "ngram-size": 2})
        b = ConfigurationKey("x", {"ngram-size": 2, "grandparenting": 1})

        assert a == b
        assert hash(a) == hash(b)
        assert {a: "done"}[b] == "done"

    def test_inequality(self) -> None:
        """Test that names and value types matter."""
        a = ConfigurationKey("x", {"lm-p": 1})

        assert a != ConfigurationKey("y", {"lm-p": 1})
        assert a != ConfigurationKey("x", {"lm-p": True})

    def test_from_ranges(self) -> None:
        """Test building the key of a grid point."""
        ranges = ParameterRanges({"grandparenting": [2], "ngram-size": [4]})

        key = ConfigurationKey.from_ranges("x", ranges)

        assert key.parameters == {"grandparenting": 2, "ngram-size": 4}
        assert key.to_ranges().to_dict() == ranges.to_dict()

    def test_from_ranges_empty_values(self) -> None:
        """Test that every parameter needs a value."""
        with pytest.raises(ValueError):
            _ = ConfigurationKey.from_ranges("x", {"grandparenting": []})


class TestClassifyValue:
    """Tests for value classification."""

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("0", 0),
            ("5000", 5000),
            ("1.0e-8", 1.0e-8),
            ("1.0e+0", 1.0),
            ("type", "type"),
            ("", ""),
            ("1.5", "1.5"),
            ("-3", "-3"),
        ],
    )
    def test_classify(self, raw: str, expected: object) -> None:
        """Test integer, float and string values."""
        value = classify_value(raw)

        assert value == expected
        assert type(value) is type(expected)

    def test_lisp_name(self) -> None:
        """Test expanding abbreviations."""
        assert lisp_name("GP") == "grandparenting"
        assert lisp_name("VA") == "variance"
        assert lisp_name("MM") == "MM"
