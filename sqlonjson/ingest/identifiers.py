"""
SQL identifier sanitization for JSON property names.
"""

import re

from sqlonjson.common.exceptions import IdentifierError

_DISALLOWED_CHARS = re.compile(r"[^A-Za-z0-9_]")

# Marks identifiers whose source name started with a digit or a symbol
NON_LETTER_PREFIX = "i"


def _is_letter(char: str) -> bool:
    return ("a" <= char <= "z") or ("A" <= char <= "Z")


def sanitize_identifier(raw_name: str) -> str:
    """
    Map a raw JSON property name onto a lower-case SQL identifier.

    Characters other than ASCII letters, digits and underscore are removed
    without a replacement, so adjacent letters merge. A name that does not
    start with a letter loses its leading underscores and gets the ``i``
    prefix instead.

    Examples:
        >>> sanitize_identifier("_AmO_(Nit)")
        'iamo_nit'
        >>> sanitize_identifier("_i-d,()rumbA")
        'iidrumba'
        >>> sanitize_identifier("_12")
        'i12'

    Args:
        raw_name: Property name as it appears in the JSON document

    Returns:
        Identifier safe to use unquoted in DDL and DML

    Raises:
        IdentifierError: If nothing usable remains after filtering
    """
    filtered = _DISALLOWED_CHARS.sub("", raw_name)
    if not filtered:
        raise IdentifierError(raw_name)

    if _is_letter(filtered[0]):
        return filtered.lower()

    remainder = filtered.lstrip("_")
    if not remainder:
        raise IdentifierError(raw_name, "only underscores remain")

    return f"{NON_LETTER_PREFIX}{remainder.lower()}"
