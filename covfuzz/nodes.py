"""
Type nodes describing the shape and domains of one function parameter
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from numbers import Real
from typing import FrozenSet, Iterable, List, Optional, Tuple

from covfuzz.errors import ConfigValidationError


class NodeKind(str, Enum):
    """Tag of a TypeNode"""
    INT = "int"
    BOOL = "bool"
    FLOAT = "float"
    STR = "str"
    LIST = "list"
    SET = "set"
    TUPLE = "tuple"
    DICT = "dict"


SCALAR_KINDS = frozenset({NodeKind.INT, NodeKind.BOOL, NodeKind.FLOAT})
ITERABLE_KINDS = frozenset({NodeKind.LIST, NodeKind.SET, NodeKind.TUPLE})
SIZED_KINDS = ITERABLE_KINDS | {NodeKind.STR, NodeKind.DICT}


@dataclass(frozen=True)
class TypeNode:
    """One parameter type, possibly nested.

    For scalar kinds the domains hold the literal values to use. For STR and
    the container kinds they hold lengths/element counts.
    """
    kind: NodeKind
    exhaustive_domain: Tuple[Real, ...]
    random_domain: Tuple[Real, ...]
    charset: FrozenSet[str] = field(default_factory=frozenset)
    elem: Optional["TypeNode"] = None
    value: Optional["TypeNode"] = None

    def __post_init__(self):
        object.__setattr__(self, "kind", NodeKind(self.kind))
        object.__setattr__(self, "exhaustive_domain", tuple(self.exhaustive_domain))
        object.__setattr__(self, "random_domain", tuple(self.random_domain))
        object.__setattr__(self, "charset", frozenset(self.charset))

    # Constructors

    @classmethod
    def int_(cls, exhaustive: Iterable[Real], random: Iterable[Real]) -> "TypeNode":
        return cls(NodeKind.INT, tuple(exhaustive), tuple(random))

    @classmethod
    def bool_(cls, exhaustive: Iterable[Real], random: Iterable[Real]) -> "TypeNode":
        return cls(NodeKind.BOOL, tuple(exhaustive), tuple(random))

    @classmethod
    def float_(cls, exhaustive: Iterable[Real], random: Iterable[Real]) -> "TypeNode":
        return cls(NodeKind.FLOAT, tuple(exhaustive), tuple(random))

    @classmethod
    def str_(cls, charset: Iterable[str], exhaustive: Iterable[Real],
             random: Iterable[Real]) -> "TypeNode":
        return cls(NodeKind.STR, tuple(exhaustive), tuple(random), charset=frozenset(charset))

    @classmethod
    def list_(cls, elem: "TypeNode", exhaustive: Iterable[Real],
              random: Iterable[Real]) -> "TypeNode":
        return cls(NodeKind.LIST, tuple(exhaustive), tuple(random), elem=elem)

    @classmethod
    def set_(cls, elem: "TypeNode", exhaustive: Iterable[Real],
             random: Iterable[Real]) -> "TypeNode":
        return cls(NodeKind.SET, tuple(exhaustive), tuple(random), elem=elem)

    @classmethod
    def tuple_(cls, elem: "TypeNode", exhaustive: Iterable[Real],
               random: Iterable[Real]) -> "TypeNode":
        return cls(NodeKind.TUPLE, tuple(exhaustive), tuple(random), elem=elem)

    @classmethod
    def dict_(cls, key: "TypeNode", value: "TypeNode", exhaustive: Iterable[Real],
              random: Iterable[Real]) -> "TypeNode":
        return cls(NodeKind.DICT, tuple(exhaustive), tuple(random), elem=key, value=value)

    # Introspection

    @property
    def key(self) -> Optional["TypeNode"]:
        """Key child of a DICT node"""
        return self.elem if self.kind is NodeKind.DICT else None

    def children(self) -> List[Tuple[str, "TypeNode"]]:
        """Child nodes labelled by their role"""
        if self.kind is NodeKind.DICT:
            return [("key", self.elem), ("value", self.value)]
        if self.kind in ITERABLE_KINDS:
            return [("elem", self.elem)]
        return []

    def is_hashable_kind(self) -> bool:
        """Whether values generated from this node can live in a set or be dict keys"""
        if self.kind in SCALAR_KINDS or self.kind is NodeKind.STR:
            return True
        if self.kind is NodeKind.TUPLE:
            return self.elem is not None and self.elem.is_hashable_kind()
        return False

    def describe(self) -> str:
        """Readable type, e.g. list(dict(int:bool))"""
        if self.kind is NodeKind.STR:
            return f"str({''.join(sorted(self.charset))})"
        if self.kind is NodeKind.DICT:
            return f"dict({self.elem.describe()}:{self.value.describe()})"
        if self.kind in ITERABLE_KINDS:
            return f"{self.kind.value}({self.elem.describe()})"
        return self.kind.value

    # Validation

    def validate(self, path: str = "arg") -> None:
        """Check every invariant of this node and its children.

        Raises ConfigValidationError naming the offending node path.
        """
        for label, domain in (("exhaustive", self.exhaustive_domain),
                              ("random", self.random_domain)):
            domain_path = f"{path}.{label}_domain"
            if not domain:
                raise ConfigValidationError(domain_path, "domain must not be empty")
            for entry in domain:
                self._validate_entry(domain_path, entry)

        if self.kind is NodeKind.STR:
            if not self.charset:
                raise ConfigValidationError(path, "string charset must not be empty")
            if any(not isinstance(c, str) or len(c) != 1 for c in self.charset):
                raise ConfigValidationError(path, "charset entries must be single characters")

        if self.kind in ITERABLE_KINDS or self.kind is NodeKind.DICT:
            for label, child in self.children():
                if child is None:
                    raise ConfigValidationError(f"{path}.{label}", f"{self.kind.value} node needs a {label} type")
                child.validate(f"{path}.{label}")
        elif self.elem is not None or self.value is not None:
            raise ConfigValidationError(path, f"{self.kind.value} node cannot have children")

        if self.kind is NodeKind.SET and not self.elem.is_hashable_kind():
            raise ConfigValidationError(
                f"{path}.elem", f"set elements must be hashable, got {self.elem.describe()}"
            )
        if self.kind is NodeKind.DICT and not self.elem.is_hashable_kind():
            raise ConfigValidationError(
                f"{path}.key", f"dict keys must be hashable, got {self.elem.describe()}"
            )

    def _validate_entry(self, path: str, entry) -> None:
        if isinstance(entry, bool) and self.kind is not NodeKind.BOOL:
            raise ConfigValidationError(path, f"non-numeric domain entry {entry!r}")
        if not isinstance(entry, Real):
            raise ConfigValidationError(path, f"non-numeric domain entry {entry!r}")
        if not math.isfinite(entry):
            raise ConfigValidationError(path, f"domain entry {entry!r} is not finite")
        if self.kind is NodeKind.BOOL and entry not in (0, 1):
            raise ConfigValidationError(path, f"bool domain entries must be 0 or 1, got {entry!r}")
        if self.kind is NodeKind.INT and float(entry) != int(entry):
            raise ConfigValidationError(path, f"int domain entry {entry!r} is not integral")
        if self.kind in SIZED_KINDS:
            if entry < 0:
                raise ConfigValidationError(path, f"size domain entries must be >= 0, got {entry!r}")
            if float(entry) != int(entry):
                raise ConfigValidationError(path, f"size domain entry {entry!r} is not integral")


def validate_nodes(nodes: Iterable[TypeNode]) -> None:
    """Validate the top-level parameter nodes in schema order"""
    for index, node in enumerate(nodes):
        if not isinstance(node, TypeNode):
            raise ConfigValidationError(f"args[{index}]", f"expected a TypeNode, got {type(node).__name__}")
        node.validate(f"args[{index}]")
