"""Deterministic cache-key derivation for operation requests."""

from __future__ import annotations

import json
from typing import Any, Mapping

_BASE36_ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyz"


def domain_fingerprint(operation_name: str, sub_operation: str, params: Mapping[str, Any]) -> str:
    """Return a compact fingerprint for an operation and its parameters.

    Keys are sorted at every nesting level before serialization, so two
    mappings that compare equal always produce the same fingerprint.

    Args:
        operation_name: Operation identifier, e.g. `strategy`.
        sub_operation: Sub-operation identifier, e.g. `generate`.
        params: JSON-serializable parameter bag.

    Returns:
        str: Base-36 token derived from a 32-bit string hash.

    Raises:
        TypeError: Raised when params contain values that are not JSON-serializable.
    """

    serialized_params = json.dumps(dict(params), sort_keys=True, separators=(",", ":"), ensure_ascii=False)
    return domain_string_hash_base36(f"{operation_name}:{sub_operation}:{serialized_params}")


def domain_string_hash_base36(value: str) -> str:
    """Reduce a string with the 31-multiplier 32-bit hash and render it in base 36.

    The hash walks UTF-16 code units and wraps to a signed 32-bit integer after
    every step; the absolute value is rendered. Lone surrogates contribute their
    own code unit.

    Args:
        value: Input string.

    Returns:
        str: Base-36 rendering of the absolute hash value.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    encoded = value.encode("utf-16-le", "surrogatepass")
    hash_value = 0
    for index in range(0, len(encoded), 2):
        code_unit = encoded[index] | (encoded[index + 1] << 8)
        hash_value = (hash_value * 31 + code_unit) & 0xFFFFFFFF
    if hash_value >= 0x80000000:
        hash_value -= 0x100000000
    return _domain_to_base36(abs(hash_value))


def _domain_to_base36(number: int) -> str:
    if number == 0:
        return "0"
    digits: list[str] = []
    while number:
        number, remainder = divmod(number, 36)
        digits.append(_BASE36_ALPHABET[remainder])
    return "".join(reversed(digits))
