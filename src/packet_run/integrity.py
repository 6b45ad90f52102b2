"""
integrity.py: Score-integrity token shared by the client and the leaderboard API.

The token is a deterrent against casual score editing, not a cryptographic
guarantee: the salt ships with the client, so anyone who reads it can
reproduce a valid token. The string format and the rolling hash are kept
byte-for-byte compatible with the browser client.
"""

from numbers import Real

from .constants import MAX_NAME_LENGTH, NAME_STRIP_CHARS, DEFAULT_SCORE_SALT

_INT32_MASK = 0xFFFFFFFF


class InvalidScoreError(ValueError):
    """The submitted score is not a non-negative whole number."""


class InvalidNameError(ValueError):
    """The display name is empty after sanitizing."""


def sanitize_name(name: str) -> str:
    """Trims, truncates to MAX_NAME_LENGTH and strips markup characters."""
    cleaned = name.strip()[:MAX_NAME_LENGTH]
    cleaned = "".join(ch for ch in cleaned if ch not in NAME_STRIP_CHARS)
    if not cleaned:
        raise InvalidNameError("Invalid name")
    return cleaned


def validate_score(score) -> int:
    """
    Returns the score as an int.
    Raises InvalidScoreError when the rounded value differs from the input
    (a sign of tampering) or when it is negative.
    """
    if isinstance(score, bool) or not isinstance(score, Real):
        raise InvalidScoreError(f"Invalid score format: {score!r}")
    integer_score = round(score)
    if integer_score != score or integer_score < 0:
        raise InvalidScoreError(f"Invalid score format: {score!r}")
    return int(integer_score)


def _to_int32(value: int) -> int:
    value &= _INT32_MASK
    return value - 0x100000000 if value & 0x80000000 else value


def string_hash(text: str) -> str:
    """
    31-multiplier rolling hash over UTF-16 code units, wrapped to a signed
    32-bit integer. Returns the absolute value as lowercase hex.
    """
    data = text.encode("utf-16-le")
    h = 0
    for i in range(0, len(data), 2):
        code_unit = data[i] | (data[i + 1] << 8)
        h = _to_int32((h << 5) - h + code_unit)
    return format(abs(h), "x")


def generate_hash(name: str, score: int, duration: int, salt: str = DEFAULT_SCORE_SALT) -> str:
    """Integrity token over name, score, duration and the shared salt (in that order)."""
    return string_hash(f"{name}-{score}-{duration}-{salt}")


def verify_hash(name: str, score: int, duration: int, token: str,
                salt: str = DEFAULT_SCORE_SALT) -> bool:
    return generate_hash(name, score, duration, salt) == token.lower()
