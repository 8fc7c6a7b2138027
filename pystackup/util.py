from typing import Optional, TypeVar

T = TypeVar('T')


def ensure(value: Optional[T], what: str = "value") -> T:
    """Return ``value``, raising RuntimeError naming ``what`` if it is None."""
    if value is None:
        raise RuntimeError(f"{what} is not set")
    return value


def parse_bool(value: Optional[str]) -> bool:
    """Interpret an environment-style toggle ("true", "1", "yes", "on")."""
    if value is None:
        return False
    return value.strip().lower() in ("1", "true", "yes", "on")
