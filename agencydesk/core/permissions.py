"""
Permission matrix lookup and validation.

A matrix maps group name -> {action key -> bool}. Stored roles may also
carry flat top-level {action key -> bool} entries. A key is granted when
it is ``True`` under any group or at the top level; anything else,
including malformed entries, is not granted.
"""

from collections.abc import Iterable, Mapping
from typing import Any

from agencydesk.core.exceptions import ConfigurationError, ValidationException


def has_permission(matrix: Any, action_key: str) -> bool:
    """
    Check whether ``action_key`` is granted by ``matrix``.

    Only the literal boolean ``True`` grants; truthy strings or numbers do
    not. Never raises: a missing or non-mapping matrix grants nothing.
    """
    if not isinstance(matrix, Mapping):
        return False
    for group in matrix.values():
        if isinstance(group, Mapping) and group.get(action_key) is True:
            return True
    return matrix.get(action_key) is True


def has_any_permission(matrix: Any, action_keys: Iterable[str]) -> bool:
    """Check whether at least one of ``action_keys`` is granted"""
    return any(has_permission(matrix, key) for key in action_keys)


def granted_keys(matrix: Any) -> set[str]:
    """Collect every key granted by ``matrix`` (grouped and flat)"""
    if not isinstance(matrix, Mapping):
        return set()
    keys = set()
    for name, value in matrix.items():
        if isinstance(value, Mapping):
            keys.update(key for key, flag in value.items() if flag is True)
        elif value is True:
            keys.add(name)
    return keys


def validate_permission_matrix(matrix: Any) -> None:
    """
    Validate the shape of a matrix submitted through the API.

    Raises:
        ValidationException: If the matrix is not a mapping or any grant
            (grouped or flat) is not a boolean
    """
    if matrix is None:
        return
    if not isinstance(matrix, Mapping):
        raise ValidationException("Permission matrix must be an object")
    for name, value in matrix.items():
        if isinstance(value, Mapping):
            for key, flag in value.items():
                if not isinstance(flag, bool):
                    raise ValidationException(
                        f"Permission matrix values must be booleans ({name}.{key})"
                    )
        elif not isinstance(value, bool):
            raise ValidationException(f"Permission matrix values must be booleans ({name})")


def validate_against_catalog(matrix: Mapping[str, Any], catalog: Mapping[str, set[str]]) -> None:
    """
    Check that every group and grouped key in ``matrix`` exists in ``catalog``.

    Args:
        matrix: Permission matrix of a role being seeded
        catalog: Group name -> declared action keys

    Raises:
        ConfigurationError: On an unknown group or an undeclared key
    """
    for name, value in matrix.items():
        if not isinstance(value, Mapping):
            continue
        if name not in catalog:
            raise ConfigurationError(f"Unknown permission group '{name}'")
        unknown = set(value) - catalog[name]
        if unknown:
            raise ConfigurationError(
                f"Unknown permission keys in group '{name}': {', '.join(sorted(unknown))}"
            )


def full_access_matrix(catalog: Mapping[str, set[str]]) -> dict[str, dict[str, bool]]:
    """Build a matrix granting every key of every group in ``catalog``"""
    return {group: {key: True for key in sorted(keys)} for group, keys in catalog.items()}
