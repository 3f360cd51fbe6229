"""
Serialization utilities for token amounts
u128 quantities travel as decimal strings; JSON numbers cannot hold them
"""
from typing import Annotated, Any, Iterable, List, Tuple

from pydantic import BeforeValidator, PlainSerializer

from config import MAX_TOKEN_AMOUNT


def parse_u128(value: Any) -> int:
    """
    Accept an int or a decimal string in the unsigned 128-bit range

    Raises:
        ValueError: On anything else
    """
    if isinstance(value, bool):
        raise ValueError("Expected an unsigned integer amount")
    if isinstance(value, str):
        if not (value.isascii() and value.isdigit()):
            raise ValueError("Expected a decimal string amount")
        value = int(value)
    if not isinstance(value, int):
        raise ValueError("Expected an unsigned integer amount")
    if not 0 <= value <= MAX_TOKEN_AMOUNT:
        raise ValueError("Amount does not fit in an unsigned 128-bit integer")
    return value


U128 = Annotated[int, BeforeValidator(parse_u128), PlainSerializer(str, return_type=str)]


def serialize_game_costs(costs: Iterable[Tuple[int, int]]) -> List[List[str]]:
    """Pricing table as [[bundle_size, price], ...] strings"""
    return [[str(bundle_size), str(price)] for bundle_size, price in costs]
