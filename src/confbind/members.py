"""Descriptions of the constructor parameters and properties a configured value may populate."""

import dataclasses
import enum
import inspect
from dataclasses import dataclass
from typing import (
    Annotated,
    Any,
    Callable,
    ClassVar,
    Optional,
    get_args,
    get_origin,
    get_type_hints,
)

from confbind.converters import ConvertFunc, Converter

__all__ = [
    "MemberKind",
    "Member",
    "parameters_of",
    "properties_of",
    "backing_property",
]


class MemberKind(enum.Enum):
    PARAMETER = "parameter"
    PROPERTY = "property"


@dataclass(frozen=True)
class Member:
    """A candidate member that a configured value may be supplied to.

    Attributes:
        name: The parameter or property name.
        kind: Whether this is a constructor parameter or a property.
        declared_type: The member's declared type hint, possibly ``Annotated``.
        declaring_type: The class that declares the member, if known.
        converter: A converter declared on the member, overriding the built-in rules.
        has_default: For parameters, whether the parameter may be left unsupplied.
    """

    name: str
    kind: MemberKind
    declared_type: Any = Any
    declaring_type: Optional[type] = None
    converter: Optional[ConvertFunc] = None
    has_default: bool = False


def parameters_of(func: Callable, declaring_type: Optional[type] = None) -> list[Member]:
    """Describe the parameters of a constructor or factory function.

    ``*args`` and ``**kwargs`` are not addressable by name and are skipped.

    Args:
        func: A class (its ``__init__`` is described) or a callable.
        declaring_type: The class the parameters belong to, used later to find
            backing properties. Defaults to ``func`` when it is a class.

    Example:
        >>> class Server:
        ...     def __init__(self, port: int, host: str = "localhost"): ...
        >>> [(m.name, m.declared_type, m.has_default) for m in parameters_of(Server)]
        [('port', <class 'int'>, False), ('host', <class 'str'>, True)]
    """
    if inspect.isclass(func):
        declaring_type = declaring_type or func
        hints = get_type_hints(func.__init__, include_extras=True)
    else:
        hints = get_type_hints(func, include_extras=True)

    members = []
    for name, param in inspect.signature(func).parameters.items():
        if param.kind in (param.POSITIONAL_ONLY, param.VAR_POSITIONAL, param.VAR_KEYWORD):
            continue
        hint = hints.get(name, Any)
        members.append(
            Member(
                name,
                MemberKind.PARAMETER,
                hint,
                declaring_type,
                _converter_from(hint),
                param.default is not param.empty,
            )
        )
    return members


def properties_of(cls: type, settable_only: bool = False) -> list[Member]:
    """Describe the properties of a class.

    Properties are public annotated attributes (including dataclass fields) and
    ``property`` descriptors. Converters may be attached with
    ``Annotated[T, Converter(fn)]`` or ``field(metadata={"converter": fn})``.

    Args:
        cls: The class to inspect.
        settable_only: Only include properties that can be assigned on an
            instance; excludes read-only descriptors and frozen dataclass fields.
    """
    hints = get_type_hints(cls, include_extras=True)
    fields = {f.name: f for f in dataclasses.fields(cls)} if dataclasses.is_dataclass(cls) else {}
    frozen = bool(fields) and cls.__dataclass_params__.frozen
    found: dict[str, Member] = {}

    for name, hint in hints.items():
        if name.startswith("_") or hint is ClassVar or get_origin(hint) is ClassVar:
            continue
        if settable_only and frozen and name in fields:
            continue
        converter = _converter_from(hint) or _field_converter(fields.get(name))
        found[name] = Member(name, MemberKind.PROPERTY, hint, cls, converter)

    for name in dir(cls):
        attr = inspect.getattr_static(cls, name, None)
        if not isinstance(attr, property) or name.startswith("_") or name in found:
            continue
        if settable_only and attr.fset is None:
            continue
        hint = _property_type(attr)
        found[name] = Member(name, MemberKind.PROPERTY, hint, cls, _converter_from(hint))

    return list(found.values())


def backing_property(parameter: Member) -> Optional[Member]:
    """Find the property conventionally backing a constructor parameter.

    An exact name match is preferred; otherwise names are compared
    case-insensitively, so a ``count`` parameter is backed by a ``Count``
    property.

    Returns:
        The backing property, or None if the parameter has no declaring type or
        no property of that name.
    """
    if parameter.declaring_type is None:
        return None

    candidates = properties_of(parameter.declaring_type)
    exact = next((p for p in candidates if p.name == parameter.name), None)
    if exact is not None:
        return exact

    folded = parameter.name.casefold()
    return next((p for p in candidates if p.name.casefold() == folded), None)


def _converter_from(hint: Any) -> Optional[ConvertFunc]:
    if get_origin(hint) is not Annotated:
        return None
    _, *metadata = get_args(hint)
    return next((m.func for m in metadata if isinstance(m, Converter)), None)


def _field_converter(field: Optional[dataclasses.Field]) -> Optional[ConvertFunc]:
    if field is None:
        return None
    converter = field.metadata.get("converter")
    if isinstance(converter, Converter):
        return converter.func
    return converter


def _property_type(prop: property) -> Any:
    if prop.fget is not None:
        hint = get_type_hints(prop.fget, include_extras=True).get("return")
        if hint is not None:
            return hint

    if prop.fset is not None:
        hints = get_type_hints(prop.fset, include_extras=True)
        names = list(inspect.signature(prop.fset).parameters)
        if len(names) == 2 and names[1] in hints:
            return hints[names[1]]

    return Any
