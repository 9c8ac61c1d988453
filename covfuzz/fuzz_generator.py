"""
Value generation for covfuzz type nodes
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

import numpy as np

from covfuzz.errors import ConfigValidationError, GenerationRetryExhausted
from covfuzz.nodes import NodeKind, TypeNode

logger = logging.getLogger(__name__)

DEFAULT_MAX_RETRIES = 100

_SCALAR_CASTS: Dict[NodeKind, Callable[[Any], Any]] = {
    NodeKind.INT: int,
    NodeKind.BOOL: bool,
    NodeKind.FLOAT: float,
}


@dataclass
class FuzzConfig:
    """Generation configuration"""
    max_retries: int = DEFAULT_MAX_RETRIES
    seed: Optional[int] = None


class _Cursor:
    """Cycling position into a child's exhaustive value list"""

    def __init__(self, values: List[Any]):
        self.values = values
        self.position = 0

    def next(self) -> Any:
        value = self.values[self.position % len(self.values)]
        self.position += 1
        return value


class DomainGenerator:
    """Turns one TypeNode into concrete values.

    ``exhaustive_values()`` enumerates the exhaustive domain and is computed once.
    ``random_value()`` draws one value from the random domain per call; all
    generators of a tree share ``rng`` so a fixed seed repeats the stream.
    """

    def __init__(self, node: TypeNode, rng: Optional[np.random.Generator] = None,
                 config: Optional[FuzzConfig] = None, path: str = "arg"):
        self.node = node
        self.config = config or FuzzConfig()
        self.rng = rng if rng is not None else np.random.default_rng(self.config.seed)
        self.path = path
        self._check_domains()
        self.children: Dict[str, DomainGenerator] = {
            label: DomainGenerator(child, self.rng, self.config, f"{path}.{label}")
            for label, child in node.children()
        }
        self._charset = sorted(node.charset)
        self._exhaustive: Optional[List[Any]] = None

    def _check_domains(self):
        if self.node.kind is NodeKind.STR and not self.node.charset:
            raise ConfigValidationError(self.path, "string charset must not be empty")
        for label, domain in (("exhaustive", self.node.exhaustive_domain),
                              ("random", self.node.random_domain)):
            if not domain:
                raise ConfigValidationError(f"{self.path}.{label}_domain", "domain must not be empty")

    # Exhaustive generation

    def exhaustive_values(self) -> List[Any]:
        """All exhaustively generated values, one per exhaustive domain entry"""
        if self._exhaustive is None:
            self._exhaustive = self._generate_exhaustive()
        return self._exhaustive

    def _generate_exhaustive(self) -> List[Any]:
        kind = self.node.kind
        domain = self.node.exhaustive_domain

        if kind in _SCALAR_CASTS:
            cast = _SCALAR_CASTS[kind]
            return [cast(v) for v in domain]

        if kind is NodeKind.STR:
            return [self._cycled_string(int(n)) for n in domain]

        if kind is NodeKind.DICT:
            keys = _Cursor(self.children["key"].exhaustive_values())
            values = _Cursor(self.children["value"].exhaustive_values())
            return [self._build_dict(int(n), keys.next, values.next) for n in domain]

        elems = _Cursor(self.children["elem"].exhaustive_values())
        return [self._build_iterable(int(n), elems.next) for n in domain]

    def _cycled_string(self, length: int) -> str:
        chars = self._charset
        return "".join(chars[i % len(chars)] for i in range(length))

    # Random generation

    def random_value(self) -> Any:
        """One value drawn from the random domain"""
        kind = self.node.kind
        entry = self._pick(self.node.random_domain)

        if kind in _SCALAR_CASTS:
            return _SCALAR_CASTS[kind](entry)

        size = int(entry)
        if kind is NodeKind.STR:
            return "".join(self._pick(self._charset) for _ in range(size))

        if kind is NodeKind.DICT:
            return self._build_dict(size, self.children["key"].random_value,
                                    self.children["value"].random_value)

        return self._build_iterable(size, self.children["elem"].random_value)

    def _pick(self, options):
        return options[int(self.rng.integers(len(options)))]

    # Containers

    def _build_iterable(self, size: int, draw: Callable[[], Any]):
        kind = self.node.kind
        if kind is NodeKind.SET:
            result = set()
            self._fill(size, lambda: result.add(draw()), lambda: len(result))
            return result

        items = [draw() for _ in range(size)]
        if kind is NodeKind.TUPLE:
            return tuple(items)
        return items

    def _build_dict(self, size: int, draw_key: Callable[[], Any],
                    draw_value: Callable[[], Any]) -> Dict[Any, Any]:
        result = {}

        def add_pair():
            key = draw_key()
            result[key] = draw_value()

        self._fill(size, add_pair, lambda: len(result))
        return result

    def _fill(self, size: int, add: Callable[[], None], current: Callable[[], int]):
        """Add until ``size`` distinct entries exist or the retry bound is spent"""
        for _ in range(size):
            add()
        retries = 0
        while current() < size:
            if retries >= self.config.max_retries:
                raise GenerationRetryExhausted(self.path, size, current(), retries)
            add()
            retries += 1
        if retries:
            logger.debug(f"{self.path}: needed {retries} extra draws to reach {size} entries")


def build_generators(nodes: List[TypeNode], config: Optional[FuzzConfig] = None,
                     rng: Optional[np.random.Generator] = None) -> List[DomainGenerator]:
    """One generator per top-level node, sharing a single random stream"""
    config = config or FuzzConfig()
    rng = rng if rng is not None else np.random.default_rng(config.seed)
    return [DomainGenerator(node, rng, config, f"args[{i}]") for i, node in enumerate(nodes)]

