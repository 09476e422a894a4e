"""
Base62 Short Code Codec

Converts between the integer identifiers assigned by the store and the short
codes handed out to users.

Design Decisions:
- Alphabet is digits, then uppercase, then lowercase: "0-9A-Za-z"
- No padding: encode(62) is "10", encode(0) is "0"
- Decoding is strict by default; lenient decoding (unknown symbols count as
  zero) is kept for links issued by older deployments
"""

from shortener.core.exceptions import InvalidShortCodeError

BASE62_CHARS = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz"
BASE62_LENGTH = len(BASE62_CHARS)

_DIGIT_VALUES = {char: value for value, char in enumerate(BASE62_CHARS)}


def encode_base62(number: int) -> str:
    """
    Encode a non-negative integer as the shortest base62 string.

    Args:
        number: The identifier to convert

    Returns:
        Base62 encoded string, most significant symbol first

    Raises:
        ValueError: If number is negative

    Example:
        encode_base62(0) -> "0"
        encode_base62(61) -> "z"
        encode_base62(62) -> "10"
    """
    if number < 0:
        raise ValueError(f"Cannot encode negative number: {number}")

    if number == 0:
        return BASE62_CHARS[0]

    digits = []
    while number > 0:
        number, remainder = divmod(number, BASE62_LENGTH)
        digits.append(BASE62_CHARS[remainder])

    return ''.join(reversed(digits))


def decode_base62(encoded: str, strict: bool = True) -> int:
    """
    Decode a base62 string back to a number.

    Args:
        encoded: The base62 encoded string
        strict: Reject symbols outside the alphabet (default). When False,
            unknown symbols contribute a digit value of 0.

    Returns:
        The decoded number

    Raises:
        InvalidShortCodeError: In strict mode, if the code is empty or
            contains a symbol outside the alphabet
    """
    if strict and not encoded:
        raise InvalidShortCodeError(encoded)

    number = 0
    for char in encoded:
        value = _DIGIT_VALUES.get(char)
        if value is None:
            if strict:
                raise InvalidShortCodeError(encoded)
            value = 0
        number = number * BASE62_LENGTH + value
    return number
