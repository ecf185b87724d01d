"""
Declarations and the symbol/type registry.

A `Registry` maps every bound name of one translation to its `Declaration`
and carries precomputed descriptions of the declared types (`TypeInfo`),
so the translator never needs to inspect live classes. A registry is
immutable once built and may be shared read-only between threads.
"""

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Optional, Union

from pymvel.utils.errors import RegistryError

_BIG_DECIMAL_NAMES = frozenset({"BigDecimal", "java.math.BigDecimal"})
_BIG_INTEGER_NAMES = frozenset({"BigInteger", "java.math.BigInteger"})
_STRING_NAMES = frozenset({"String", "java.lang.String", "CharSequence"})
_BOOLEAN_NAMES = frozenset({"boolean", "Boolean", "java.lang.Boolean"})
_MAP_NAMES = frozenset({"Map", "HashMap", "LinkedHashMap", "TreeMap", "SortedMap", "ConcurrentHashMap"})
_LIST_NAMES = frozenset(
    {"List", "ArrayList", "LinkedList", "Collection", "Set", "HashSet", "TreeSet", "Iterable"}
)


def _split_type_arguments(text: str) -> list[str]:
    """Split `String, Map<K, V>` at top-level commas."""
    parts: list[str] = []
    depth = 0
    current: list[str] = []
    for char in text:
        if char == "<":
            depth += 1
        elif char == ">":
            depth -= 1
        if char == "," and depth == 0:
            parts.append("".join(current).strip())
            current = []
        else:
            current.append(char)
    tail = "".join(current).strip()
    if tail:
        parts.append(tail)
    return parts


@dataclass(frozen=True, slots=True)
class TypeDescriptor:
    """
    A nominal type plus an optional generic-argument annotation.

    Attributes:
        name: Type name, possibly qualified, with any trailing `[]`
        generics: Generic arguments as written, without the angle brackets
            (e.g. "String, Integer")

    Examples:
        TypeDescriptor("java.util.List", "String")
        TypeDescriptor.parse("Map<String, BigDecimal>")
    """

    name: str
    generics: Optional[str] = None

    @classmethod
    def parse(cls, text: str) -> "TypeDescriptor":
        """Parse `Name<Args>[]` into a descriptor."""
        text = text.strip()
        open_index = text.find("<")
        if open_index == -1:
            return cls(text)
        close_index = text.rfind(">")
        if close_index < open_index:
            raise RegistryError(f"Malformed type '{text}'")
        name = text[:open_index].strip() + text[close_index + 1 :].strip()
        return cls(name, text[open_index + 1 : close_index].strip() or None)

    def __str__(self) -> str:
        if self.generics is None:
            return self.name
        base = self.name
        dims = ""
        while base.endswith("[]"):
            base = base[:-2]
            dims += "[]"
        return f"{base}<{self.generics}>{dims}"

    @property
    def base_name(self) -> str:
        """Name without array dimensions."""
        base = self.name
        while base.endswith("[]"):
            base = base[:-2]
        return base.strip()

    @property
    def simple_name(self) -> str:
        return self.base_name.rsplit(".", 1)[-1]

    @property
    def type_arguments(self) -> tuple["TypeDescriptor", ...]:
        if not self.generics:
            return ()
        return tuple(TypeDescriptor.parse(part) for part in _split_type_arguments(self.generics))

    @property
    def is_array(self) -> bool:
        return self.name.endswith("[]")

    @property
    def is_map(self) -> bool:
        return not self.is_array and self.simple_name in _MAP_NAMES

    @property
    def is_list(self) -> bool:
        return not self.is_array and self.simple_name in _LIST_NAMES

    @property
    def is_big_decimal(self) -> bool:
        return not self.is_array and self.base_name in _BIG_DECIMAL_NAMES

    @property
    def is_big_integer(self) -> bool:
        return not self.is_array and self.base_name in _BIG_INTEGER_NAMES

    @property
    def is_string(self) -> bool:
        return not self.is_array and self.base_name in _STRING_NAMES

    @property
    def is_boolean(self) -> bool:
        return not self.is_array and self.base_name in _BOOLEAN_NAMES

    @property
    def element_type(self) -> Optional["TypeDescriptor"]:
        """
        Type produced by indexing or iterating.

        X[] gives X, List<X> gives X, Map<K, V> gives V.
        """
        if self.is_array:
            return TypeDescriptor(self.name[:-2], self.generics)
        arguments = self.type_arguments
        if self.is_map and len(arguments) == 2:
            return arguments[1]
        if self.is_list and len(arguments) == 1:
            return arguments[0]
        return None


TypeLike = Union[TypeDescriptor, str]


def _as_descriptor(value: TypeLike) -> TypeDescriptor:
    if isinstance(value, TypeDescriptor):
        return value
    return TypeDescriptor.parse(value)


@dataclass(frozen=True, slots=True)
class Declaration:
    """A name bound to a type; equality is structural."""

    name: str
    type: TypeDescriptor

    @classmethod
    def of(cls, name: str, type_name: TypeLike, generics: Optional[str] = None) -> "Declaration":
        """
        Build a declaration.

        Example:
            Declaration.of("items", "java.util.List", "String")
        """
        if generics is not None:
            return cls(name, TypeDescriptor(str(type_name), generics))
        return cls(name, _as_descriptor(type_name))


@dataclass(frozen=True, slots=True)
class FieldInfo:
    """A property of a declared type."""

    name: str
    type: TypeDescriptor
    public: bool = False
    static: bool = False


@dataclass(frozen=True, slots=True)
class MethodInfo:
    """A zero-argument method of a declared type."""

    name: str
    return_type: Optional[TypeDescriptor] = None


@dataclass(frozen=True, slots=True)
class TypeInfo:
    """
    Precomputed description of a type: its properties and methods.

    Example:
        TypeInfo.of("Person", fields={"name": "String"}, public_fields={"nickName": "String"})
    """

    name: str
    fields: tuple[FieldInfo, ...] = ()
    methods: tuple[MethodInfo, ...] = ()

    @classmethod
    def of(
        cls,
        name: str,
        fields: Optional[Mapping[str, TypeLike]] = None,
        public_fields: Optional[Mapping[str, TypeLike]] = None,
        methods: Optional[Mapping[str, Optional[TypeLike]]] = None,
    ) -> "TypeInfo":
        field_infos = [
            FieldInfo(field_name, _as_descriptor(field_type))
            for field_name, field_type in (fields or {}).items()
        ]
        field_infos.extend(
            FieldInfo(field_name, _as_descriptor(field_type), public=True)
            for field_name, field_type in (public_fields or {}).items()
        )
        method_infos = [
            MethodInfo(method_name, None if return_type is None else _as_descriptor(return_type))
            for method_name, return_type in (methods or {}).items()
        ]
        return cls(name, tuple(field_infos), tuple(method_infos))

    @property
    def simple_name(self) -> str:
        return self.name.rsplit(".", 1)[-1]

    def field(self, name: str) -> Optional[FieldInfo]:
        return next((f for f in self.fields if f.name == name), None)

    def method(self, name: str) -> Optional[MethodInfo]:
        return next((m for m in self.methods if m.name == name), None)


Owner = Union[Declaration, TypeDescriptor]


class Registry:
    """
    The read-only set of declarations for one translation.

    Usage:
        registry = Registry.build(
            [Declaration.of("person", "Person")],
            types=[TypeInfo.of("Person", fields={"age": "int"})],
        )
        registry.field_type(registry.lookup("person"), "age")  # int
    """

    __slots__ = ("_declarations", "_types", "_type_names")

    def __init__(
        self,
        declarations: Mapping[str, Declaration],
        types: Mapping[str, TypeInfo],
        type_names: tuple[str, ...],
    ) -> None:
        self._declarations = MappingProxyType(dict(declarations))
        self._types = MappingProxyType(dict(types))
        self._type_names = type_names

    @classmethod
    def build(
        cls,
        declarations: Iterable[Declaration],
        types: Iterable[TypeInfo] = (),
        type_names: Iterable[str] = (),
    ) -> "Registry":
        """
        Build a registry.

        Args:
            declarations: Bound names and their types
            types: Descriptions of the declared types
            type_names: Names of types available for coercion and construction

        Raises:
            RegistryError: If one name is declared with two different types
        """
        by_name: dict[str, Declaration] = {}
        for declaration in declarations:
            existing = by_name.get(declaration.name)
            if existing is not None and existing != declaration:
                raise RegistryError(
                    f"Conflicting declarations for '{declaration.name}': "
                    f"{existing.type} and {declaration.type}"
                )
            by_name[declaration.name] = declaration

        by_type: dict[str, TypeInfo] = {}
        for info in types:
            existing_info = by_type.get(info.name)
            if existing_info is not None and existing_info != info:
                raise RegistryError(f"Conflicting descriptions for type '{info.name}'")
            by_type[info.name] = info

        names = list(dict.fromkeys(type_names))
        for info in by_type.values():
            if info.name not in names:
                names.append(info.name)
        return cls(by_name, by_type, tuple(names))

    @classmethod
    def from_mapping(
        cls,
        bindings: Mapping[str, TypeLike],
        types: Iterable[TypeInfo] = (),
        type_names: Iterable[str] = (),
    ) -> "Registry":
        """Shortcut: `Registry.from_mapping({"x": "int", "names": "List<String>"})`."""
        return cls.build(
            (Declaration.of(name, type_name) for name, type_name in bindings.items()),
            types,
            type_names,
        )

    @classmethod
    def empty(cls) -> "Registry":
        return cls({}, {}, ())

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.lookup(name) is not None

    def __len__(self) -> int:
        return len(self._declarations)

    def __iter__(self) -> Iterator[Declaration]:
        return iter(self._declarations.values())

    def __repr__(self) -> str:
        return f"Registry({', '.join(self._declarations)})"

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(self._declarations)

    @property
    def type_names(self) -> tuple[str, ...]:
        return self._type_names

    def lookup(self, name: str) -> Optional[Declaration]:
        """Find a declaration; `x` also finds a `$x` binding."""
        declaration = self._declarations.get(name)
        if declaration is None and not name.startswith("$"):
            declaration = self._declarations.get("$" + name)
        return declaration

    def type_info(self, type_ref: Union[TypeDescriptor, str]) -> Optional[TypeInfo]:
        """Description of a type, matched by full or simple name."""
        descriptor = _as_descriptor(type_ref)
        if descriptor.is_array:
            return None
        info = self._types.get(descriptor.base_name)
        if info is not None:
            return info
        simple = descriptor.simple_name
        matches = [t for t in self._types.values() if t.simple_name == simple]
        return matches[0] if len(matches) == 1 else None

    def _owner_info(self, owner: Owner) -> Optional[TypeInfo]:
        descriptor = owner.type if isinstance(owner, Declaration) else owner
        return self.type_info(descriptor)

    def field_type(self, owner: Owner, field_name: str) -> Optional[TypeDescriptor]:
        """
        Best-effort type of `owner.field_name`.

        A getter-style method (`getName()` / `isActive()`) also counts as
        the property. Returns None when unknown.
        """
        info = self._owner_info(owner)
        if info is None:
            return None
        field = info.field(field_name)
        if field is not None:
            return field.type
        capitalized = field_name[:1].upper() + field_name[1:]
        for accessor in ("get" + capitalized, "is" + capitalized):
            method = info.method(accessor)
            if method is not None:
                return method.return_type
        return None

    def method_return_type(self, owner: Owner, method_name: str) -> Optional[TypeDescriptor]:
        info = self._owner_info(owner)
        if info is None:
            return None
        method = info.method(method_name)
        return method.return_type if method is not None else None

    def has_method(self, owner: Owner, method_name: str) -> bool:
        info = self._owner_info(owner)
        return info is not None and info.method(method_name) is not None

    def is_public_field(self, owner: Owner, field_name: str) -> bool:
        info = self._owner_info(owner)
        if info is None:
            return False
        field = info.field(field_name)
        return field is not None and field.public

    def member_names(self, owner: Owner) -> list[str]:
        """All property and method names of the owner's type."""
        info = self._owner_info(owner)
        if info is None:
            return []
        return [f.name for f in info.fields] + [m.name for m in info.methods]

    def resolve_type_name(self, simple_name: str) -> Optional[str]:
        """
        Resolve a bare type name against the available type names.

        Returns the qualified name when exactly one available type has this
        simple name, otherwise None.
        """
        if simple_name in self._type_names:
            return simple_name
        matches = [
            name for name in self._type_names if name.rsplit(".", 1)[-1] == simple_name
        ]
        return matches[0] if len(matches) == 1 else None
