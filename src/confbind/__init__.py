"""Configuration binding for dependency injection.

confbind supplies constructor arguments and property values to components
from a hierarchical, text-valued configuration tree. Configured values are
not converted when configuration is read. Instead each configured name becomes
a deferred parameter that the activating container probes against its
candidate members; the value is converted only once the receiving member, and
so its declared type, is known.

Key Features:
    - Conversion of configuration text to scalars, enums, sequences and mappings
    - Extensible converter registry and per-member converter overrides
    - Pure, repeatable matching and resolution, safe under speculative probing
    - Component registration straight from a ``components`` section

Basic Usage:
    >>> from confbind import ConfigNode, make_registry
    >>>
    >>> config = ConfigNode.from_mapping({
    ...     "components": [
    ...         {"type": "myapp.Counter", "parameters": {"count": 5}},
    ...     ],
    ... })
    >>> registry = make_registry(config)
    >>> registry[Counter].count
    5

The package consists of several modules:
    - node: the immutable configuration tree
    - coercion: conversion of nodes to destination types
    - shapes / lists: collection shape lookup and sequence materialisation
    - converters: the scalar converter registry
    - members / binding: candidate members and deferred parameters
    - activation / registrar: constructing and registering configured components
    - errors: framework-specific exceptions
"""

from confbind.activation import ReflectionActivator
from confbind.binding import DeferredParameter, ParameterBinder
from confbind.coercion import TypeCoercionEngine
from confbind.converters import Converter, ConverterRegistry, default_converters
from confbind.errors import (
    ActivationError,
    ArgumentError,
    CoercionError,
    ConfigurationError,
    MissingConverterError,
    UnsupportedCollectionShapeError,
)
from confbind.members import Member, MemberKind
from confbind.node import ConfigNode
from confbind.registrar import (
    ComponentRegistrar,
    ComponentRegistration,
    ComponentRegistry,
    make_registry,
)

__all__ = [
    "ActivationError",
    "ArgumentError",
    "CoercionError",
    "ComponentRegistrar",
    "ComponentRegistration",
    "ComponentRegistry",
    "ConfigNode",
    "ConfigurationError",
    "Converter",
    "ConverterRegistry",
    "DeferredParameter",
    "Member",
    "MemberKind",
    "MissingConverterError",
    "ParameterBinder",
    "ReflectionActivator",
    "TypeCoercionEngine",
    "UnsupportedCollectionShapeError",
    "default_converters",
    "make_registry",
]
