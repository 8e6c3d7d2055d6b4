"""
hcloud_driver/models/validator.py

Validation helpers around pydantic's TypeAdapter. Every untyped payload that
enters the driver (API pages, host configuration records) passes through
one of these two functions.
"""

from typing import Any, Dict, List, Type, TypeVar
from pydantic import ValidationError, TypeAdapter

T = TypeVar("T")

_ADAPTERS: Dict[Any, TypeAdapter[Any]] = {}


def _adapter_for(expected_type: Any) -> TypeAdapter[Any]:
    adapter = _ADAPTERS.get(expected_type)
    if adapter is None:
        adapter = TypeAdapter(expected_type)
        _ADAPTERS[expected_type] = adapter
    return adapter


def validate_type(obj: Any, expected_type: Type[T]) -> T:
    """
    Validates that a given Python object conforms to the expected pydantic-based type.

    Args:
        obj (Any): The object to validate.
        expected_type (Type[T]): The type (pydantic or otherwise) to validate against.

    Returns:
        T: The validated object, cast to the expected type.

    Raises:
        ValueError: If validation fails.
    """
    try:
        return _adapter_for(expected_type).validate_python(obj)
    except ValidationError as e:
        raise ValueError(f"Validation failed for type {expected_type}: {e}") from e


def validation_messages(obj: Any, expected_type: Type[T]) -> List[str]:
    """
    Returns one "<location>: <message>" entry per validation problem, or an
    empty list when obj conforms to expected_type.
    """
    try:
        _adapter_for(expected_type).validate_python(obj)
    except ValidationError as e:
        return [
            f"{'.'.join(str(part) for part in err['loc']) or '<root>'}: {err['msg']}"
            for err in e.errors()
        ]
    return []
