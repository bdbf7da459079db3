"""Hierarchy view components."""

from .hierarchy_builder import (
    FLAT_GROUP_NAME,
    GENERAL_SUB_KEY,
    UNSPECIFIED_KEY,
    HierarchyBuilder,
    assign_paths,
    build_view,
    type_keys,
)

__all__ = [
    'FLAT_GROUP_NAME',
    'GENERAL_SUB_KEY',
    'UNSPECIFIED_KEY',
    'HierarchyBuilder',
    'assign_paths',
    'build_view',
    'type_keys',
]
