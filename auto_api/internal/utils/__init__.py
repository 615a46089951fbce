"""Утилиты для генератора"""

from .naming import (
    convert_to_pascal,
    convert_to_snake,
    fallback_operation_name,
    to_identifier,
    to_type_name,
)
from .resource import read_resource

__all__ = [
    "convert_to_pascal",
    "convert_to_snake",
    "fallback_operation_name",
    "to_identifier",
    "to_type_name",
    "read_resource",
]
