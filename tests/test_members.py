from dataclasses import dataclass, field
from typing import Annotated, Any, ClassVar, Optional

from confbind.converters import Converter
from confbind.members import (
    Member,
    MemberKind,
    backing_property,
    parameters_of,
    properties_of,
)


def tenfold(raw: str) -> int:
    return int(raw) * 10


class Server:
    instances: ClassVar[int] = 0
    Port: Annotated[int, Converter(tenfold)]
    _secret: str

    def __init__(self, port: int, host: str = "localhost", *args, **kwargs):
        self.Port = port
        self.host = host

    @property
    def address(self) -> str:
        return f"{self.host}:{self.Port}"

    @property
    def timeout(self) -> float:
        return self._timeout

    @timeout.setter
    def timeout(self, value: float):
        self._timeout = value


@dataclass(frozen=True)
class Settings:
    name: str
    retries: int = field(default=3, metadata={"converter": Converter(tenfold)})


@dataclass
class MutableSettings:
    label: Optional[str] = None


def test_parameters_describe_constructor_signature():
    members = parameters_of(Server)

    assert [(m.name, m.declared_type, m.has_default) for m in members] == [
        ("port", int, False),
        ("host", str, True),
    ]
    assert all(m.kind is MemberKind.PARAMETER for m in members)
    assert all(m.declaring_type is Server for m in members)


def test_parameters_of_factory_functions_have_no_declaring_type_by_default():
    def make_server(port: int) -> Server:
        return Server(port)

    [member] = parameters_of(make_server)

    assert member.declaring_type is None
    assert member.declared_type is int


def test_positional_only_parameters_are_not_described():
    def scale(factor: float, /, offset: int = 0) -> float:
        return factor + offset

    assert [m.name for m in parameters_of(scale)] == ["offset"]


def test_unannotated_parameters_are_any():
    class Loose:
        def __init__(self, anything):
            pass

    assert parameters_of(Loose)[0].declared_type is Any


def test_properties_include_annotations_and_descriptors():
    names = {m.name for m in properties_of(Server)}

    assert names == {"Port", "address", "timeout"}


def test_settable_properties_exclude_read_only_members():
    assert {m.name for m in properties_of(Server, settable_only=True)} == {"Port", "timeout"}
    assert properties_of(Settings, settable_only=True) == []
    assert [m.name for m in properties_of(MutableSettings, settable_only=True)] == ["label"]


def test_property_types_come_from_getters_and_setters():
    by_name = {m.name: m for m in properties_of(Server)}

    assert by_name["address"].declared_type is str
    assert by_name["timeout"].declared_type is float


def test_converters_are_read_from_annotations_and_field_metadata():
    by_name = {m.name: m for m in properties_of(Server)}
    assert by_name["Port"].converter is tenfold

    settings = {m.name: m for m in properties_of(Settings)}
    assert settings["retries"].converter is tenfold
    assert settings["name"].converter is None


def test_backing_property_prefers_exact_then_case_insensitive_match():
    port = Member("port", MemberKind.PARAMETER, int, Server)
    name = Member("name", MemberKind.PARAMETER, str, Settings)

    assert backing_property(port).name == "Port"
    assert backing_property(name).name == "name"


def test_backing_property_requires_a_declaring_type():
    assert backing_property(Member("port", MemberKind.PARAMETER, int)) is None
    assert backing_property(Member("missing", MemberKind.PARAMETER, int, Server)) is None
