"""
Data classes and type definitions for covfuzz differential testing
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple, Union


@dataclass(frozen=True)
class OpaqueValue:
    """Return value that could not be rebuilt as a Python literal; holds its repr"""
    text: str

    def __repr__(self) -> str:
        return self.text


def freeze(value: Any, normalize_float: Optional[Callable[[float], Any]] = None) -> Any:
    """Build a hashable structural key for a (possibly nested, unhashable) value.

    Container kinds and bools are tagged so that a list and a tuple holding the
    same items stay distinct, as do True and 1. ``normalize_float`` lets callers
    coarsen float members.
    """
    if value is None:
        return value
    if isinstance(value, bool):
        return ("bool", value)
    if isinstance(value, float):
        if value != value:
            return ("float", "nan")
        return normalize_float(value) if normalize_float else value
    if isinstance(value, list):
        return ("list", tuple(freeze(v, normalize_float) for v in value))
    if isinstance(value, tuple):
        return ("tuple", tuple(freeze(v, normalize_float) for v in value))
    if isinstance(value, (set, frozenset)):
        return ("set", frozenset(freeze(v, normalize_float) for v in value))
    if isinstance(value, dict):
        return ("dict", frozenset(
            (freeze(k, normalize_float), freeze(v, normalize_float)) for k, v in value.items()
        ))
    try:
        hash(value)
    except TypeError:
        return ("repr", type(value).__name__, repr(value))
    return value


class TestCase:
    """One ordered tuple of argument values for the function under test"""

    __test__ = False
    __slots__ = ("_args", "_key")

    def __init__(self, args):
        self._args = tuple(args)
        self._key = freeze(self._args)

    @property
    def args(self) -> Tuple[Any, ...]:
        return self._args

    def __len__(self) -> int:
        return len(self._args)

    def __iter__(self):
        return iter(self._args)

    def __eq__(self, other) -> bool:
        if not isinstance(other, TestCase):
            return NotImplemented
        return self._key == other._key

    def __hash__(self) -> int:
        return hash(self._key)

    def __repr__(self) -> str:
        return f"TestCase{self._args!r}"

    def __str__(self) -> str:
        return repr(self._args)


# Outcomes

@dataclass(frozen=True, eq=False)
class Returned:
    """The implementation returned a value"""
    value: Any

    def __eq__(self, other) -> bool:
        if not isinstance(other, Returned):
            return NotImplemented
        return freeze(self.value) == freeze(other.value)

    def __hash__(self) -> int:
        return hash(("returned", freeze(self.value)))


@dataclass(frozen=True)
class Raised:
    """The implementation raised an exception of ``error_kind``"""
    error_kind: str
    message: str = field(default="", compare=False)


@dataclass(frozen=True)
class TimedOut:
    """The implementation did not finish within the time budget"""
    timeout: float = field(default=0.0, compare=False)


@dataclass(frozen=True)
class InfraFailure:
    """The oracle could not run the implementation at all"""
    reason: str


Outcome = Union[Returned, Raised, TimedOut, InfraFailure]


def describe_outcome(outcome: Outcome) -> str:
    """Short human readable form of an outcome"""
    if isinstance(outcome, Returned):
        return f"returned {outcome.value!r}"
    if isinstance(outcome, Raised):
        return f"raised {outcome.error_kind}"
    if isinstance(outcome, TimedOut):
        return f"timed out after {outcome.timeout}s"
    return f"infra failure: {outcome.reason}"


@dataclass
class TestResults:
    """Reference and candidate outcomes for every distinct test case, in pool order"""
    __test__ = False

    cases: List[TestCase]
    expected: Dict[TestCase, Outcome]
    actual: Dict[TestCase, Outcome]
    agreement: Dict[TestCase, bool]

    def __len__(self) -> int:
        return len(self.cases)

    def __iter__(self) -> Iterator[TestCase]:
        return iter(self.cases)

    def pair(self, case: TestCase) -> Tuple[Outcome, Outcome]:
        return self.expected[case], self.actual[case]

    def agrees(self, case: TestCase) -> bool:
        return self.agreement[case]

    def divergent_cases(self) -> List[TestCase]:
        return [case for case in self.cases if not self.agreement[case]]
