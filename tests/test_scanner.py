"""Tests for the raw-text duplicate key scanner.

The scanner must see repeats that ``json.loads()`` hides, compare keys after
escape decoding, keep scopes per object, and never raise on malformed input.
"""

import json
import textwrap

import pytest

import keyguard.scanner as scanner_mod
from keyguard.scanner import (
    DuplicateKey,
    decode_key,
    find_duplicate_key,
    has_duplicate_keys,
)
from keyguard.utils.safe_json import safe_json_loads


# =============================================================================
# NO DUPLICATES
# =============================================================================

class TestNoDuplicates:

    def test_empty_object(self):
        assert has_duplicate_keys("{}") is False

    def test_simple_object(self):
        assert has_duplicate_keys('{"a":1}') is False

    def test_nested_object(self):
        assert has_duplicate_keys('{"a":{"b":2}}') is False

    def test_multiple_keys(self):
        assert has_duplicate_keys('{"a":1,"b":2}') is False

    def test_empty_text(self):
        assert has_duplicate_keys("") is False

    def test_top_level_array_of_scalars(self):
        assert has_duplicate_keys('[1, "a", true, null]') is False

    def test_string_values_are_not_keys(self):
        """Repeated string values never count as keys."""
        assert has_duplicate_keys('{"a":"a","b":"a"}') is False

    def test_string_value_resembling_a_key(self):
        assert has_duplicate_keys('{"a":"b:c","d":1}') is False

    def test_keys_are_case_sensitive(self):
        assert has_duplicate_keys('{"A":1,"a":2}') is False

    def test_large_object_without_duplicates(self):
        """10,000 distinct keys scan clean."""
        text = json.dumps({f"key_{i}": i for i in range(10_000)})
        assert has_duplicate_keys(text) is False


# =============================================================================
# RAW DUPLICATES
# =============================================================================

class TestRawDuplicates:

    def test_top_level_duplicate(self):
        assert has_duplicate_keys('{"a":1,"a":2}') is True

    def test_nested_duplicate(self):
        assert has_duplicate_keys('{"a":1,"b":{"c":3,"c":4}}') is True

    def test_deeply_nested_duplicate(self):
        assert has_duplicate_keys('{"a":{"b":{"c":{"d":1,"d":2}}}}') is True

    def test_duplicate_after_nested_object_closes(self):
        """The outer scope survives a nested object opening and closing."""
        assert has_duplicate_keys('{"a":{"b":1},"a":2}') is True

    def test_empty_key_duplicate(self):
        assert has_duplicate_keys('{"":1,"":2}') is True

    def test_escaped_quote_inside_key(self):
        assert has_duplicate_keys(r'{"a\"b":1,"a\"b":2}') is True

    def test_object_inside_array(self):
        assert has_duplicate_keys('[{"a":1,"a":2}]') is True

    def test_pretty_printed_duplicate(self):
        """Indentation and newlines before the colon do not hide a repeat."""
        text = textwrap.dedent("""\
            {
              "name": "svc",
              "timeout"  :  10,
              "timeout"
                : 20
            }
        """)
        assert has_duplicate_keys(text) is True

    def test_tab_and_carriage_return_before_colon(self):
        assert has_duplicate_keys('{"a"\t:1,\r\n"a"\r:2}') is True


# =============================================================================
# ESCAPE-AWARE COMPARISON
# =============================================================================

class TestEscapeEquivalence:

    @pytest.mark.parametrize("text", [
        r'{"\u0061":1,"a":2}',
        r'{"a":1,"\u0061":2}',
        r'{"\u0061":1,"\u0061":2}',
        r'{"\u0061":1,"\u0062":2,"a":3}',
        r'{"\u0041":1,"A":2}',
        r'{"\u0031":1,"1":2}',
        r'{"\u4e2d":1,"中":2}',
        r'{"outer":{"\u0061":1,"a":2}}',
        r'{"a":{"b":{"\u0061":1,"a":2}}}',
        r'[{"\u0061":1,"a":2}]',
    ])
    def test_unicode_escape_duplicates(self, text):
        assert has_duplicate_keys(text) is True

    def test_different_escapes_are_distinct(self):
        assert has_duplicate_keys(r'{"\u0061":1,"\u0062":2}') is False

    def test_surrogate_pair_matches_literal_character(self):
        assert has_duplicate_keys(r'{"\ud83d\ude00":1,"😀":2}') is True

    def test_escaped_solidus_matches_plain_slash(self):
        assert has_duplicate_keys(r'{"a\/b":1,"a/b":2}') is True

    @pytest.mark.parametrize("text", [
        r'{"\n":1,"n":2}',
        r'{"\n":1,"a":2}',
        r'{"\"":1,"a":2}',
        r'{"\\":1,"a":2}',
        r'{"\\u0061":1,"a":2}',
    ])
    def test_other_escapes_are_not_folded(self, text):
        """Only what the escape represents is compared, not its letters."""
        assert has_duplicate_keys(text) is False


# =============================================================================
# SCOPE
# =============================================================================

class TestScope:

    def test_sibling_objects_with_same_keys(self):
        assert has_duplicate_keys('{"x":{"a":1},"y":{"a":1}}') is False

    def test_sibling_objects_with_equivalent_escaped_keys(self):
        assert has_duplicate_keys(r'{"x":{"\u0061":1},"y":{"a":1}}') is False

    def test_array_of_objects_sharing_keys(self):
        assert has_duplicate_keys('[{"id":1},{"id":2},{"id":3}]') is False

    def test_same_key_at_different_depths(self):
        assert has_duplicate_keys('{"a":{"a":{"a":1}}}') is False

    def test_sibling_reset_does_not_hide_later_duplicate(self):
        """A fresh sibling scope still catches its own repeats."""
        assert has_duplicate_keys('[{"a":1},{"b":1,"b":2}]') is True

    def test_bare_top_level_pairs_are_ignored(self):
        """Key/colon pairs outside any object are never registered."""
        assert has_duplicate_keys('"a":1,"a":2') is False

    def test_keys_after_extra_closing_brace_are_ignored(self):
        assert has_duplicate_keys('{"a":1}}"b":1,"b":2') is False


# =============================================================================
# MALFORMED INPUT
# =============================================================================

class TestMalformedInput:

    @pytest.mark.parametrize("text", [
        '{"a:1}',
        r'{"\u00":1}',
        '{"a',
        '{"a\\',
        '{"a":',
        '}}}}',
        '{{{{',
        '"',
        '{"a":1,"b":[1,2}',
    ])
    def test_malformed_json_is_clean(self, text):
        assert has_duplicate_keys(text) is False

    def test_malformed_escapes_compare_raw(self):
        """Undecodable keys fall back to their raw text."""
        assert has_duplicate_keys(r'{"\u00zz":1,"\u00zz":2}') is True
        assert has_duplicate_keys(r'{"\u00zz":1,"u00zz":2}') is False

    @pytest.mark.parametrize("value", [None, 42, b'{"a":1,"a":2}', ["{"]])
    def test_non_string_input(self, value):
        assert has_duplicate_keys(value) is False
        assert find_duplicate_key(value) is None

    def test_internal_failure_fails_open(self, monkeypatch):
        """Any exception inside the scan is reported as no duplicate."""
        def boom(raw_key):
            raise RuntimeError("decoder exploded")

        monkeypatch.setattr(scanner_mod, "decode_key", boom)
        assert has_duplicate_keys('{"a":1,"a":2}') is False
        assert find_duplicate_key('{"a":1,"a":2}') is None


# =============================================================================
# DIAGNOSTICS
# =============================================================================

class TestFindDuplicateKey:

    def test_reports_second_occurrence(self):
        dup = find_duplicate_key('{"a":1,"a":2}')
        assert dup == DuplicateKey(
            key="a", raw_key="a", offset=7, depth=1, line=1, column=8,
        )

    def test_reports_line_and_column(self):
        text = '{\n  "a": 1,\n  "a": 2\n}'
        dup = find_duplicate_key(text)
        assert dup is not None
        assert (dup.line, dup.column) == (3, 3)
        assert text[dup.offset] == '"'

    def test_reports_raw_and_decoded_key(self):
        dup = find_duplicate_key(r'{"a":1,"\u0061":2}')
        assert dup is not None
        assert dup.key == "a"
        assert dup.raw_key == r"\u0061"

    def test_reports_nested_depth(self):
        dup = find_duplicate_key('{"outer":{"inner":{"k":1,"k":2}}}')
        assert dup is not None
        assert dup.depth == 3

    def test_first_duplicate_wins(self):
        dup = find_duplicate_key('{"a":1,"a":2,"b":1,"b":2}')
        assert dup is not None
        assert dup.key == "a"

    def test_none_when_clean(self):
        assert find_duplicate_key('{"a":1}') is None

    def test_agrees_with_boolean_check(self):
        for text in ('{"a":1}', '{"a":1,"a":2}', '[{"x":{"y":1,"y":2}}]'):
            assert has_duplicate_keys(text) is (find_duplicate_key(text) is not None)

    def test_idempotent(self):
        text = r'{"x":{"\u0061":1,"a":2}}'
        results = {has_duplicate_keys(text) for _ in range(5)}
        assert results == {True}


# =============================================================================
# DECODER AGREEMENT
# =============================================================================

class TestDecoderAgreement:
    """On well-formed JSON the scanner agrees with the strict decoder."""

    @pytest.mark.parametrize("text", [
        '{"a":1,"b":{"a":2}}',
        '[{"id":1},{"id":2}]',
        '{"a":1,"a":2}',
        r'{"\u0061":1,"a":2}',
        '{"list":[{"k":1,"k":2}]}',
        '{"s":"{\\"a\\":1,\\"a\\":2}"}',
    ])
    def test_matches_safe_json_loads(self, text):
        try:
            safe_json_loads(text)
            decoder_found_duplicate = False
        except ValueError as e:
            assert "Duplicate JSON key" in str(e)
            decoder_found_duplicate = True
        assert has_duplicate_keys(text) is decoder_found_duplicate


class TestDecodeKey:

    def test_decodes_unicode_escape(self):
        assert decode_key(r"a\u0062c") == "abc"

    def test_decodes_standard_escapes(self):
        assert decode_key(r"tab\there") == "tab\there"

    def test_falls_back_to_raw_on_bad_escape(self):
        assert decode_key(r"\x41") == r"\x41"

    def test_falls_back_on_control_character(self):
        assert decode_key("line\nbreak") == "line\nbreak"
