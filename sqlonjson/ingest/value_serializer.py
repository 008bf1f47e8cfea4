"""
Conversion of JSON values into database cell values.
"""

from typing import NamedTuple, Optional, Union

from sqlonjson.ingest.json_tree import JsonKind, JsonNode, to_compact_json
from sqlonjson.ingest.type_promotion import ColumnType, infer_type

CellValue = Union[int, float, str]


class SerializedValue(NamedTuple):
    """
    A cell value classified by its candidate type.

    ``text`` is what gets stored when the column is promoted to VARCHAR: the
    source literal for numbers, the string itself, or compact JSON for
    nested structures and booleans.
    """
    value: CellValue
    column_type: ColumnType
    text: str


def serialize_value(node: JsonNode) -> Optional[SerializedValue]:
    """
    Convert one JSON value into a cell value.

    Nested objects and arrays become their compact JSON text. Booleans become
    their JSON text as well. Null yields None, meaning the cell is absent.

    Args:
        node: Value stored under a property of a row object

    Returns:
        SerializedValue, or None for null
    """
    column_type = infer_type(node)
    if column_type is None:
        return None

    if node.kind == JsonKind.NUMBER:
        if column_type == ColumnType.BIGINT:
            return SerializedValue(int(node.literal), column_type, node.literal)
        if column_type == ColumnType.DOUBLE:
            return SerializedValue(float(node.literal), column_type, node.literal)
        return SerializedValue(node.literal, column_type, node.literal)

    if node.kind == JsonKind.STRING:
        return SerializedValue(node.value, column_type, node.value)

    text = to_compact_json(node)
    return SerializedValue(text, column_type, text)


def coerce_cell(
    cell: Optional[SerializedValue],
    column_type: ColumnType
) -> Optional[CellValue]:
    """
    Coerce a serialized cell to the final (promoted) type of its column.

    Args:
        cell: Output of serialize_value for this row, or None when absent
        column_type: Promoted type of the column

    Returns:
        Value suitable for binding against the column
    """
    if cell is None:
        return None
    if column_type == ColumnType.VARCHAR:
        return cell.text
    if column_type == ColumnType.DOUBLE:
        return float(cell.value)
    return cell.value
