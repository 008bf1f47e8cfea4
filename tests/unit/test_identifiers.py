"""
Unit tests for SQL identifier sanitization.
"""

import pytest

from sqlonjson.common.exceptions import IdentifierError
from sqlonjson.ingest.identifiers import sanitize_identifier


class TestSanitizeIdentifier:
    """Tests for sanitize_identifier."""

    def test_plain_names_are_lower_cased(self):
        assert sanitize_identifier("id") == "id"
        assert sanitize_identifier("user_id") == "user_id"
        assert sanitize_identifier("Name") == "name"
        assert sanitize_identifier("orderId") == "orderid"

    def test_symbols_removed_without_separator(self):
        assert sanitize_identifier("first-name") == "firstname"
        assert sanitize_identifier("a,b(c)d") == "abcd"
        assert sanitize_identifier("(a)") == "a"
        assert sanitize_identifier("price $") == "price"

    def test_leading_underscore_gets_prefix(self):
        assert sanitize_identifier("_AmO_(Nit)") == "iamo_nit"
        assert sanitize_identifier("_i-d,()rumbA") == "iidrumba"

    def test_leading_digits_get_prefix(self):
        assert sanitize_identifier("_12") == "i12"
        assert sanitize_identifier("42") == "i42"
        assert sanitize_identifier("1st") == "i1st"

    def test_inner_underscores_kept(self):
        assert sanitize_identifier("created__at") == "created__at"

    def test_non_ascii_letters_removed(self):
        assert sanitize_identifier("café") == "caf"

    def test_empty_name_rejected(self):
        with pytest.raises(IdentifierError):
            sanitize_identifier("")

    def test_symbol_only_name_rejected(self):
        with pytest.raises(IdentifierError) as exc_info:
            sanitize_identifier("-()")
        assert exc_info.value.raw_name == "-()"

    def test_underscore_only_name_rejected(self):
        with pytest.raises(IdentifierError):
            sanitize_identifier("__")

    def test_deterministic(self):
        assert sanitize_identifier("_AmO_(Nit)") == sanitize_identifier("_AmO_(Nit)")

    def test_no_process_wide_cache(self):
        # Per-conversion memoization lives in TableSchema
        assert not hasattr(sanitize_identifier, "cache_info")
