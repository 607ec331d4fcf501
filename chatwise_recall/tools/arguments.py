"""
Coercion of loosely typed tool arguments.
"""

from typing import Any, List

from chatwise_recall.utils.errors import InvalidArgumentError


def get_bool(arguments: dict, key: str, default: bool) -> bool:
    """Read a boolean argument, accepting common string spellings."""
    value = arguments.get(key)
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ("true", "1", "yes"):
            return True
        if lowered in ("false", "0", "no"):
            return False
    if isinstance(value, int):
        return value != 0
    raise InvalidArgumentError(f"{key} must be a boolean, got {value!r}")


def get_clamped_int(
    arguments: dict, key: str, default: int, min_val: int, max_val: int
) -> int:
    """Read an integer argument and clamp it into [min_val, max_val]."""
    value = arguments.get(key)
    if value is None:
        return default
    if isinstance(value, bool):
        raise InvalidArgumentError(f"{key} must be an integer, got {value!r}")
    try:
        number = int(value)
    except (TypeError, ValueError) as e:
        raise InvalidArgumentError(f"{key} must be an integer, got {value!r}") from e
    return max(min_val, min(max_val, number))


def get_choice(arguments: dict, key: str, default: str, choices: tuple) -> str:
    """Read an enumerated string argument."""
    value = arguments.get(key)
    if value is None or value == "":
        return default
    if value not in choices:
        raise InvalidArgumentError(
            f"{key} must be one of {', '.join(choices)}, got {value!r}"
        )
    return value


def get_string_list(arguments: dict, key: str) -> List[str]:
    """Read a list of strings; a single string becomes a one-item list."""
    value: Any = arguments.get(key)
    if value is None:
        return []
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list):
        raise InvalidArgumentError(f"{key} must be a list of strings")
    return [str(item).strip() for item in value if item is not None and str(item).strip()]
