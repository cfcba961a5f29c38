"""
Tests for release version ordering and the ``major.minor.patch`` text contract.
"""

import json

import pytest
from hypothesis import HealthCheck, given, settings, strategies as st
from pydantic import BaseModel, ValidationError

from perfrunner.exceptions import ParseError, PerfRunnerError
from perfrunner.version import VERSION_FORMAT_MESSAGE, Version, VersionField, compare

int32 = st.integers(min_value=-(2 ** 31), max_value=2 ** 31 - 1)


class _Holder(BaseModel):
    version: VersionField


class TestVersionText:

    def test_to_text_is_dotted_triple(self):
        assert Version(1, 2, 3).to_text() == "1.2.3"
        assert str(Version(10, 0, 7)) == "10.0.7"

    def test_from_text_parses_components(self):
        assert Version.from_text("1.2.3") == Version(1, 2, 3)

    def test_negative_components_round_trip(self):
        v = Version(-1, 0, -20)
        assert v.to_text() == "-1.0.-20"
        assert Version.from_text(v.to_text()) == v

    @settings(suppress_health_check=[HealthCheck.function_scoped_fixture])
    @given(int32, int32, int32)
    def test_round_trip_property(self, major, minor, patch):
        v = Version(major, minor, patch)
        assert Version.from_text(v.to_text()) == v

    @pytest.mark.parametrize("text", [
        "",
        "1",
        "1.2",
        "1.2.3.4",
        "1..3",
        "a.b.c",
        "1.2.x",
        "1.2.3-beta",
        " 1.2.3",
        "1.2.3 ",
        "1.2.3.",
        "1_0.2.3",
    ])
    def test_from_text_rejects_malformed(self, text):
        with pytest.raises(ParseError) as exc_info:
            Version.from_text(text)

        assert exc_info.value.message == VERSION_FORMAT_MESSAGE
        assert isinstance(exc_info.value, PerfRunnerError)
        assert isinstance(exc_info.value, ValueError)

    def test_component_count_and_integer_failures_have_distinct_codes(self):
        with pytest.raises(ParseError) as count_error:
            Version.from_text("1.2")
        with pytest.raises(ParseError) as int_error:
            Version.from_text("1.2.x")

        assert count_error.value.error_code == "PARSE_001"
        assert int_error.value.error_code == "PARSE_002"

    @pytest.mark.parametrize("text", [
        "2147483648.0.0",
        "0.-2147483649.0",
        "0.0.99999999999",
    ])
    def test_components_outside_32_bit_range_are_rejected(self, text):
        with pytest.raises(ParseError) as exc_info:
            Version.from_text(text)

        assert exc_info.value.error_code == "PARSE_002"

    def test_32_bit_bounds_are_accepted(self):
        assert Version.from_text("2147483647.-2147483648.0") == Version(2 ** 31 - 1, -(2 ** 31), 0)

    @pytest.mark.parametrize("text,expected", [
        ("+1.2.3", Version(1, 2, 3)),
        ("01.02.03", Version(1, 2, 3)),
    ])
    def test_sign_and_leading_zeros_normalise(self, text, expected):
        v = Version.from_text(text)

        assert v == expected
        assert v.to_text() == "1.2.3"

    def test_non_string_input_is_a_parse_error(self):
        with pytest.raises(ParseError):
            Version.from_text(123)


class TestVersionOrdering:

    def test_lexicographic_order(self):
        assert Version(1, 0, 0) < Version(1, 2, 0) < Version(2, 0, 0)
        assert Version(1, 9, 9) < Version(2, 0, 0)
        assert Version(1, 2, 10) > Version(1, 2, 9)

    def test_compare(self):
        assert compare(Version(1, 0, 0), Version(2, 0, 0)) == -1
        assert compare(Version(2, 0, 0), Version(1, 0, 0)) == 1
        assert compare(Version(1, 2, 3), Version(1, 2, 3)) == 0

    def test_max_picks_latest(self):
        versions = [Version(1, 0, 0), Version(2, 0, 0), Version(1, 9, 9)]
        assert max(versions) == Version(2, 0, 0)

    def test_hashable_and_immutable(self):
        v = Version(1, 2, 3)
        assert {v: "x"}[Version(1, 2, 3)] == "x"
        with pytest.raises(AttributeError):
            v.major = 5  # type: ignore[misc]


class TestVersionField:

    def test_decodes_text(self):
        assert _Holder.model_validate({"version": "9.9.9"}).version == Version(9, 9, 9)

    def test_accepts_version_instances(self):
        assert _Holder(version=Version(1, 2, 3)).version == Version(1, 2, 3)

    def test_serializes_as_text(self):
        holder = _Holder(version=Version(1, 2, 3))
        assert holder.model_dump(mode="json") == {"version": "1.2.3"}
        assert json.loads(holder.model_dump_json()) == {"version": "1.2.3"}

    def test_json_round_trip(self):
        holder = _Holder(version=Version(4, 5, 6))
        assert _Holder.model_validate_json(holder.model_dump_json()) == holder

    def test_malformed_text_is_a_validation_error(self):
        with pytest.raises(ValidationError) as exc_info:
            _Holder.model_validate({"version": "1.2"})

        assert "major.minor.patch" in str(exc_info.value)
