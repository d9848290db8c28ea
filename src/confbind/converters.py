"""Registry of scalar string converters, keyed by destination type."""

import datetime
import ipaddress
import pathlib
import uuid
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional

__all__ = ["ConvertFunc", "Converter", "ConverterRegistry", "default_converters"]

ConvertFunc = Callable[[str], Any]


@dataclass(frozen=True)
class Converter:
    """Marks a member as using a specific converter.

    Used as ``Annotated`` metadata on a property or field, the converter takes
    precedence over every built-in rule when a value for that member is coerced.

    Example:
        >>> class Endpoint:
        ...     port: Annotated[int, Converter(parse_port)]
    """

    func: ConvertFunc


class ConverterRegistry:
    """Mapping from destination type identity to a ``str -> T`` conversion function.

    Hosts extend coercion to their own types by registering a converter, either
    explicitly or with the :meth:`converts` decorator:

        >>> converters = ConverterRegistry()
        >>> @converters.converts(Money)
        ... def parse_money(raw: str) -> Money:
        ...     return Money.parse(raw)
    """

    def __init__(self, converters: Optional[Mapping[type, ConvertFunc]] = None):
        self._converters: dict[type, ConvertFunc] = dict(converters or {})

    def register(self, destination_type: type, func: ConvertFunc):
        """Register ``func`` as the converter for ``destination_type``, replacing any existing one."""
        self._converters[destination_type] = func

    def converts(self, destination_type: type) -> Callable:
        def decorator(func: ConvertFunc) -> ConvertFunc:
            self.register(destination_type, func)
            return func

        return decorator

    def converter_for(self, destination_type: Any) -> Optional[ConvertFunc]:
        return self._converters.get(destination_type)


def default_converters() -> ConverterRegistry:
    """Return a fresh registry holding converters for common standard library types."""
    return ConverterRegistry(
        {
            bytes: lambda raw: raw.encode("utf-8"),
            uuid.UUID: uuid.UUID,
            pathlib.Path: pathlib.Path,
            pathlib.PurePath: pathlib.PurePath,
            datetime.datetime: datetime.datetime.fromisoformat,
            datetime.date: datetime.date.fromisoformat,
            datetime.time: datetime.time.fromisoformat,
            ipaddress.IPv4Address: ipaddress.IPv4Address,
            ipaddress.IPv6Address: ipaddress.IPv6Address,
            ipaddress.IPv4Network: ipaddress.IPv4Network,
            ipaddress.IPv6Network: ipaddress.IPv6Network,
        }
    )
