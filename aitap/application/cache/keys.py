"""Cache key derivation.

Keys have the form ``"{language}_{digits}"`` where ``digits`` is the base-36
rendering of a 32-bit rolling hash over the normalized message. The hash is
the same one the browser front-end uses, so snapshots written by either
side resolve to the same keys. Distinct messages can collide; a false hit
is accepted for conversational responses.
"""

_BASE36_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"
KEY_SEPARATOR = "_"


def _to_int32(value: int) -> int:
    """Fold an integer to a signed 32-bit value."""
    value &= 0xFFFFFFFF
    return value - 0x100000000 if value & 0x80000000 else value


def _to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(_BASE36_DIGITS[remainder])
    return "".join(reversed(digits))


def normalize_message(message: str) -> str:
    return message.lower().strip()


def hash_string(text: str) -> str:
    """Return the base-36 absolute value of the rolling hash of ``text``.

    Iterates UTF-16 code units so non-BMP characters hash as surrogate pairs
    and an unpaired surrogate hashes as its own code unit.
    """
    encoded = text.encode("utf-16-le", "surrogatepass")
    hash_value = 0
    for i in range(0, len(encoded), 2):
        code_unit = encoded[i] | (encoded[i + 1] << 8)
        hash_value = _to_int32((hash_value << 5) - hash_value + code_unit)
    return _to_base36(abs(hash_value))


def generate_cache_key(message: str, language: str) -> str:
    """Deterministic cache key for a ``(language, message)`` pair."""
    return f"{language}{KEY_SEPARATOR}{hash_string(normalize_message(message))}"


def popularity_key(message: str, language: str) -> str:
    """Popularity table key; lowercased but neither trimmed nor hashed."""
    return f"{language}{KEY_SEPARATOR}{message.lower()}"
