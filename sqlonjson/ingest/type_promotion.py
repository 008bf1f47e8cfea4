"""
Column type inference and promotion.

Column types form a small ranked lattice, BIGINT < DOUBLE < VARCHAR. A column
takes the highest rank observed across its values, so promotion is a
monotonic max that can be computed in a single pass over the rows.
"""

from enum import Enum
from typing import Iterable, Optional

from sqlonjson.ingest.json_tree import JsonKind, JsonNode

BIGINT_MIN = -(2 ** 63)
BIGINT_MAX = 2 ** 63 - 1


class ColumnType(str, Enum):
    """Backend column types, declared in promotion order."""
    BIGINT = "BIGINT"
    DOUBLE = "DOUBLE"
    VARCHAR = "VARCHAR"

    @property
    def rank(self) -> int:
        return _RANKS[self]


_RANKS = {
    ColumnType.BIGINT: 0,
    ColumnType.DOUBLE: 1,
    ColumnType.VARCHAR: 2,
}


def fits_bigint(value: int) -> bool:
    return BIGINT_MIN <= value <= BIGINT_MAX


def infer_type(node: JsonNode) -> Optional[ColumnType]:
    """
    Infer the candidate column type of a single value.

    Integral literals outside the signed 64-bit range are classified as
    VARCHAR, so their digits are stored exactly instead of overflowing.

    Args:
        node: JSON value stored under a column in one row

    Returns:
        Candidate type, or None for null (nulls never affect promotion)
    """
    if node.kind == JsonKind.NULL:
        return None
    if node.kind == JsonKind.NUMBER:
        if not node.is_integral:
            return ColumnType.DOUBLE
        # Integers beyond 64 bits are kept exactly, as text
        if fits_bigint(int(node.literal)):
            return ColumnType.BIGINT
        return ColumnType.VARCHAR
    return ColumnType.VARCHAR


def promote(
    current: Optional[ColumnType],
    observed: Optional[ColumnType]
) -> Optional[ColumnType]:
    """Return the wider of two candidate types; None is the identity."""
    if current is None:
        return observed
    if observed is None:
        return current
    return observed if observed.rank > current.rank else current


def promote_all(types: Iterable[Optional[ColumnType]]) -> Optional[ColumnType]:
    """Fold a sequence of candidate types into the single representable one."""
    result: Optional[ColumnType] = None
    for observed in types:
        result = promote(result, observed)
        if result == ColumnType.VARCHAR:
            break
    return result


class TypePromoter:
    """
    Single-pass accumulator of the promoted type for one column.

    Usage:
        promoter = TypePromoter()
        for value in column_values:
            promoter.observe_type(infer_type(value))
        promoter.result  # e.g. ColumnType.DOUBLE
    """

    def __init__(self):
        self.current: Optional[ColumnType] = None
        self.occurrences = 0

    def observe_type(self, observed: Optional[ColumnType]) -> None:
        if observed is None:
            return
        self.occurrences += 1
        self.current = promote(self.current, observed)

    def observe(self, node: JsonNode) -> None:
        self.observe_type(infer_type(node))

    @property
    def result(self) -> ColumnType:
        """Promoted type; columns that only ever held null become VARCHAR."""
        return self.current if self.current is not None else ColumnType.VARCHAR
