"""
Name-based disambiguation heuristics.

When the registry has no type information for a construct, the translator
falls back to guesses based on names alone: is `x.y` a static member, a
package path or a property? Is `a[i]` an array or a map? Every such guess
lives behind `DisambiguationPolicy` so it can be tested in isolation and
swapped out without touching the translator.
"""

import re
from abc import ABC, abstractmethod

BUILTIN_METHOD_NAMES = frozenset(
    {
        "length",
        "size",
        "isEmpty",
        "toString",
        "hashCode",
        "equals",
        "clone",
        "notify",
        "notifyAll",
        "wait",
        "getClass",
    }
)

STATIC_MEMBER_NAMES = frozenset(
    {
        "out",
        "err",
        "in",
        "TYPE",
        "class",
        "MAX_VALUE",
        "MIN_VALUE",
        "POSITIVE_INFINITY",
        "NEGATIVE_INFINITY",
        "NaN",
    }
)

NAMESPACE_SEGMENTS = frozenset(
    {
        "org",
        "com",
        "net",
        "java",
        "javax",
        "sun",
        "mvel3",
        "transpiler",
        "test",
        "main",
        "util",
        "lang",
        "io",
    }
)

PUBLIC_FIELD_NAMES = frozenset({"nickName", "parentPublic"})

_INDEXED_TEXT = re.compile(r".*\[\d+\].*")
_MAP_ACCESSORS = ("getItems()", "getPrices()", "getBigDecimalMap()", "getBigIntegerMap()")
_DECIMAL_LITERAL = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?[dD]?$")


class DisambiguationPolicy(ABC):
    """
    Heuristics consulted when declared type information is missing.

    Attributes:
        iteration_variable: Name bound to the element inside projections
            and selections
    """

    iteration_variable: str = "item"

    @abstractmethod
    def is_builtin_method(self, name: str) -> bool:
        """Whether `x.name` is a well-known zero-argument method."""

    @abstractmethod
    def is_static_member(self, name: str) -> bool:
        """Whether `x.name` is a conventional static or public field."""

    @abstractmethod
    def is_namespace_segment(self, name: str) -> bool:
        """Whether `name` is part of a package path."""

    @abstractmethod
    def is_public_field_name(self, name: str) -> bool:
        """Whether a property of an unknown type is a public field."""

    @abstractmethod
    def looks_like_array(self, text: str) -> bool:
        """Whether the translated receiver text looks like an array."""

    @abstractmethod
    def looks_like_map(self, text: str) -> bool:
        """Whether the translated receiver text looks like a map."""

    def is_type_name(self, name: str) -> bool:
        return name[:1].isupper()

    def accessor_name(self, name: str) -> str:
        return "get" + name[:1].upper() + name[1:]

    def mutator_name(self, name: str) -> str:
        return "set" + name[:1].upper() + name[1:]

    def is_decimal_text(self, text: str) -> bool:
        """Whether translated text is a plain numeric literal."""
        return bool(_DECIMAL_LITERAL.match(text))


class DefaultDisambiguationPolicy(DisambiguationPolicy):
    """
    The stock heuristics.

    Array-likeness is checked before map-likeness; a name can match both
    (`itemsArray`) and the array reading wins.
    """

    def __init__(
        self,
        builtin_methods: frozenset[str] = BUILTIN_METHOD_NAMES,
        static_members: frozenset[str] = STATIC_MEMBER_NAMES,
        namespace_segments: frozenset[str] = NAMESPACE_SEGMENTS,
        public_fields: frozenset[str] = PUBLIC_FIELD_NAMES,
        iteration_variable: str = "item",
    ) -> None:
        self.builtin_methods = builtin_methods
        self.static_members = static_members
        self.namespace_segments = namespace_segments
        self.public_fields = public_fields
        self.iteration_variable = iteration_variable

    def is_builtin_method(self, name: str) -> bool:
        return name in self.builtin_methods

    def is_static_member(self, name: str) -> bool:
        return name in self.static_members

    def is_namespace_segment(self, name: str) -> bool:
        return name in self.namespace_segments

    def is_public_field_name(self, name: str) -> bool:
        return name in self.public_fields or (name.startswith("public") and len(name) > 6)

    def looks_like_array(self, text: str) -> bool:
        if "[]" in text or text.endswith("Array"):
            return True
        if "array" in text or "Array" in text:
            return True
        if text in ("x", "a"):
            return True
        return bool(_INDEXED_TEXT.match(text))

    def looks_like_map(self, text: str) -> bool:
        if self.looks_like_array(text):
            return False
        root = re.split(r"[.\[(]", text, maxsplit=1)[0].lstrip("$")
        if "map" in root or "Map" in root or root == "m":
            return True
        if "items" in root or "prices" in root:
            return True
        return any(accessor in text for accessor in _MAP_ACCESSORS)
