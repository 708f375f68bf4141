"""
ptb.types.type_tag — parsed Move-style type tags.

Grammar (whitespace around separators is tolerated):

    tag    := primitive | "vector<" tag ">" | struct
    struct := address "::" ident "::" ident [ "<" tag ("," tag)* ">" ]

Primitives: bool, u8, u16, u32, u64, u128, u256, address, signer.

`str(tag)` renders canonically: struct addresses are full-width and type parameters are
joined with ", ". Parsing the rendering yields an equal tag.

Examples
--------
    >>> t = parse_type_tag("0x2::coin::Coin<0x2::sui::SUI>")
    >>> t.name, t.type_params[0].name
    ('Coin', 'SUI')
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Optional, Tuple, Union

from ..errors import InvalidIdentifier, TypeTagError
from .ids import ObjectId

PRIMITIVES = frozenset({"bool", "u8", "u16", "u32", "u64", "u128", "u256", "address", "signer"})

_IDENT_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")
_ADDR_RE = re.compile(r"0[xX][0-9a-fA-F]+")


@dataclass(frozen=True)
class PrimitiveTag:
    name: str

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class VectorTag:
    element: "TypeTag"

    def __str__(self) -> str:
        return f"vector<{self.element}>"


@dataclass(frozen=True)
class StructTag:
    address: ObjectId
    module: str
    name: str
    type_params: Tuple["TypeTag", ...] = ()

    def __str__(self) -> str:
        base = f"{self.address}::{self.module}::{self.name}"
        if self.type_params:
            return base + "<" + ", ".join(str(p) for p in self.type_params) + ">"
        return base

    def short(self) -> str:
        """Rendering with compact addresses, for logs and tables."""
        base = f"{self.address.short()}::{self.module}::{self.name}"
        if self.type_params:
            inner = ", ".join(p.short() if isinstance(p, StructTag) else str(p) for p in self.type_params)
            return f"{base}<{inner}>"
        return base


TypeTag = Union[PrimitiveTag, VectorTag, StructTag]


# --------------------------------- parser ------------------------------------


class _Parser:
    def __init__(self, text: str) -> None:
        self.text = text
        self.pos = 0

    def _skip_ws(self) -> None:
        while self.pos < len(self.text) and self.text[self.pos].isspace():
            self.pos += 1

    def _fail(self, what: str) -> TypeTagError:
        return TypeTagError(f"{what} at offset {self.pos}", tag=self.text)

    def _expect(self, lit: str) -> None:
        self._skip_ws()
        if not self.text.startswith(lit, self.pos):
            raise self._fail(f"expected {lit!r}")
        self.pos += len(lit)

    def _peek(self, lit: str) -> bool:
        self._skip_ws()
        return self.text.startswith(lit, self.pos)

    def _match(self, pattern: "re.Pattern[str]", what: str) -> str:
        self._skip_ws()
        m = pattern.match(self.text, self.pos)
        if not m:
            raise self._fail(f"expected {what}")
        self.pos = m.end()
        return m.group(0)

    def parse_tag(self) -> TypeTag:
        self._skip_ws()
        if _ADDR_RE.match(self.text, self.pos):
            return self.parse_struct()
        ident = self._match(_IDENT_RE, "type name")
        if ident == "vector":
            self._expect("<")
            inner = self.parse_tag()
            self._expect(">")
            return VectorTag(inner)
        if ident in PRIMITIVES:
            return PrimitiveTag(ident)
        raise TypeTagError(f"unknown type {ident!r}", tag=self.text)

    def parse_struct(self) -> StructTag:
        addr_lit = self._match(_ADDR_RE, "address")
        try:
            address = ObjectId(addr_lit)
        except InvalidIdentifier as e:
            raise TypeTagError(f"invalid address {addr_lit!r}", tag=self.text) from e
        self._expect("::")
        module = self._match(_IDENT_RE, "module name")
        self._expect("::")
        name = self._match(_IDENT_RE, "struct name")
        params: List[TypeTag] = []
        if self._peek("<"):
            self._expect("<")
            params.append(self.parse_tag())
            while self._peek(","):
                self._expect(",")
                params.append(self.parse_tag())
            self._expect(">")
        return StructTag(address, module, name, tuple(params))

    def finish(self) -> None:
        self._skip_ws()
        if self.pos != len(self.text):
            raise self._fail("trailing characters")


def parse_type_tag(text: str) -> TypeTag:
    """Parse a type tag string; raises TypeTagError on malformed input."""
    if not isinstance(text, str) or not text.strip():
        raise TypeTagError("empty type tag", tag=str(text))
    p = _Parser(text)
    tag = p.parse_tag()
    p.finish()
    return tag


def parse_struct_tag(text: str) -> StructTag:
    tag = parse_type_tag(text)
    if not isinstance(tag, StructTag):
        raise TypeTagError("expected a struct type", tag=text)
    return tag


def as_type_tag(value: Union[str, TypeTag, None]) -> Optional[TypeTag]:
    """Accept a tag, a tag string or None."""
    if value is None or isinstance(value, (PrimitiveTag, VectorTag, StructTag)):
        return value
    return parse_type_tag(value)


def struct_name(tag: Optional[TypeTag]) -> Optional[str]:
    """Bare struct name of a struct tag ('Coin' for 0x2::coin::Coin<…>), else None."""
    if isinstance(tag, StructTag):
        return tag.name
    return None


def coin_type(inner: Union[str, TypeTag]) -> StructTag:
    """`0x2::coin::Coin<inner>`."""
    inner_tag = as_type_tag(inner)
    if inner_tag is None:
        raise TypeError("coin_type needs an inner type")
    return StructTag(ObjectId("0x2"), "coin", "Coin", (inner_tag,))


SUI_TYPE = StructTag(ObjectId("0x2"), "sui", "SUI")
CLOCK_TYPE = StructTag(ObjectId("0x2"), "clock", "Clock")
UPGRADE_CAP_TYPE = StructTag(ObjectId("0x2"), "package", "UpgradeCap")
UPGRADE_TICKET_TYPE = StructTag(ObjectId("0x2"), "package", "UpgradeTicket")
UPGRADE_RECEIPT_TYPE = StructTag(ObjectId("0x2"), "package", "UpgradeReceipt")


__all__ = [
    "PRIMITIVES",
    "PrimitiveTag",
    "VectorTag",
    "StructTag",
    "TypeTag",
    "parse_type_tag",
    "parse_struct_tag",
    "as_type_tag",
    "struct_name",
    "coin_type",
    "SUI_TYPE",
    "CLOCK_TYPE",
    "UPGRADE_CAP_TYPE",
    "UPGRADE_TICKET_TYPE",
    "UPGRADE_RECEIPT_TYPE",
]
