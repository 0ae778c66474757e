"""
Base domain model with camelCase JSON compatibility.

Pipeline results are handed to callers that persist them or open pull
requests from them, so every model serializes to the camelCase shape those
consumers expect. Models inherit from BaseDomainModel and are declared as
(usually frozen) dataclasses.
"""

from __future__ import annotations

import dataclasses
from dataclasses import fields
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Type, TypeVar, get_type_hints

T = TypeVar("T", bound="BaseDomainModel")


def to_camel_case(snake_str: str) -> str:
    """
    Convert snake_case to camelCase.

    Examples:
        >>> to_camel_case("file_path")
        'filePath'
        >>> to_camel_case("start_line")
        'startLine'
    """
    components = snake_str.split("_")
    return components[0] + "".join(x.title() for x in components[1:])


def to_snake_case(camel_str: str) -> str:
    """
    Convert camelCase to snake_case.

    Examples:
        >>> to_snake_case("filePath")
        'file_path'
        >>> to_snake_case("startLine")
        'start_line'
    """
    result = [camel_str[0].lower()]
    for char in camel_str[1:]:
        if char.isupper():
            result.extend(["_", char.lower()])
        else:
            result.append(char)
    return "".join(result)


def _serialize(value: Any) -> Any:
    if isinstance(value, BaseDomainModel):
        return value.to_json()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, (list, tuple)):
        return [_serialize(item) for item in value]
    if isinstance(value, dict):
        return {k: _serialize(v) for k, v in value.items()}
    return value


class BaseDomainModel:
    """
    Mixin for dataclass domain models.

    Not a dataclass itself so that subclasses may be frozen.

    - to_json() serializes to camelCase, enums by value, dates as ISO 8601
    - from_json() reads camelCase keys back into a flat model
    """

    def to_json(self) -> Dict[str, Any]:
        """Serialize to camelCase JSON-compatible dictionary."""
        return {to_camel_case(f.name): _serialize(getattr(self, f.name)) for f in fields(self)}

    @classmethod
    def from_json(cls: Type[T], data: Dict[str, Any]) -> T:
        """
        Deserialize a flat model from camelCase JSON.

        Nested models are not rebuilt; override in subclasses that need it.

        Raises:
            ValueError: If a required field is missing
        """
        kwargs: Dict[str, Any] = {}
        hints = get_type_hints(cls)

        for field in fields(cls):
            json_key = to_camel_case(field.name)

            if json_key in data:
                value = data[json_key]
            elif field.name in data:
                value = data[field.name]
            elif field.default is not dataclasses.MISSING or field.default_factory is not dataclasses.MISSING:
                continue
            else:
                raise ValueError(f"Missing required field: {json_key}")

            field_type = hints.get(field.name)
            if isinstance(field_type, type) and issubclass(field_type, Enum) and value is not None:
                value = field_type(value)

            kwargs[field.name] = value

        return cls(**kwargs)
