"""Helpers for reading component settings out of a configuration tree."""

import importlib
import types
from functools import reduce
from typing import Optional

from confbind.binding import DeferredParameter, ParameterBinder
from confbind.errors import ActivationError, ArgumentError
from confbind.members import MemberKind
from confbind.node import ConfigNode

__all__ = [
    "DEFAULT_MODULE_KEY",
    "default_module",
    "get_module",
    "get_type",
    "load_type",
    "get_parameters",
    "get_properties",
]

DEFAULT_MODULE_KEY = "defaultModule"


def default_module(config: ConfigNode) -> Optional[types.ModuleType]:
    """Import the module named under ``defaultModule``, or return None if none is configured."""
    return get_module(config, DEFAULT_MODULE_KEY)


def get_module(config: ConfigNode, key: str) -> Optional[types.ModuleType]:
    """Read a module name from configuration and import it.

    Args:
        config: The configuration to read from.
        key: The key the module name is configured under.

    Returns:
        The imported module, or None if the value is absent, empty or whitespace.

    Raises:
        ArgumentError: If ``config`` is None or ``key`` is empty.
        ModuleNotFoundError: If the named module cannot be imported.
    """
    _require(config, key)
    module_name = config.get(key)
    if module_name is None or not module_name.strip():
        return None
    return importlib.import_module(module_name.strip())


def get_type(
    config: ConfigNode, key: str, module: Optional[types.ModuleType] = None
) -> Optional[type]:
    """Read a type name from configuration and load the type.

    Returns:
        The loaded type, or None if the value is absent, empty or whitespace.

    Raises:
        ArgumentError: If ``config`` is None or ``key`` is empty.
        ActivationError: If the name cannot be resolved to a type.
    """
    _require(config, key)
    type_name = config.get(key)
    if type_name is None or not type_name.strip():
        return None
    return load_type(type_name.strip(), module)


def load_type(type_name: str, module: Optional[types.ModuleType] = None) -> type:
    """Resolve a type from its name.

    Accepts ``"package.module.Class"``, ``"package.module:Outer.Inner"``, or a
    bare ``"Class"`` looked up in ``module``. A dotted name whose leading part
    is not an importable module is looked up in ``module`` as a nested type.

    Raises:
        ActivationError: If the name is unqualified with no module to look in, or
            does not name a type.
        ModuleNotFoundError: If the named module cannot be imported.
    """
    if ":" in type_name:
        module_name, _, attribute_path = type_name.partition(":")
    else:
        module_name, _, attribute_path = type_name.rpartition(".")

    if module_name:
        try:
            module = importlib.import_module(module_name)
        except ModuleNotFoundError:
            # "Outer.Inner" may name a nested type of the default module.
            if module is None or ":" in type_name:
                raise
            attribute_path = type_name
    elif module is None:
        raise ActivationError(
            f"Type name {type_name!r} is not qualified and no default module is configured"
        )

    try:
        found = reduce(getattr, attribute_path.split("."), module)
    except AttributeError:
        raise ActivationError(
            f"Module {module.__name__!r} has no type {attribute_path!r}"
        ) from None

    if not isinstance(found, type):
        raise ActivationError(f"{type_name!r} does not name a type")
    return found


def get_parameters(
    config: ConfigNode, key: str, binder: Optional[ParameterBinder] = None
) -> list[DeferredParameter]:
    """Deferred constructor parameters for each child configured under ``key``.

    Raises:
        ArgumentError: If ``config`` is None or ``key`` is empty.
    """
    _require(config, key)
    binder = binder or ParameterBinder()
    return binder.bind(config.section(key), frozenset({MemberKind.PARAMETER}))


def get_properties(
    config: ConfigNode, key: str, binder: Optional[ParameterBinder] = None
) -> list[DeferredParameter]:
    """Deferred property values for each child configured under ``key``.

    Raises:
        ArgumentError: If ``config`` is None or ``key`` is empty.
    """
    _require(config, key)
    binder = binder or ParameterBinder()
    return binder.bind(config.section(key), frozenset({MemberKind.PROPERTY}))


def _require(config: Optional[ConfigNode], key: Optional[str]):
    if config is None:
        raise ArgumentError("A configuration is required")
    if key is None or not key.strip():
        raise ArgumentError("The configuration key may not be empty")
