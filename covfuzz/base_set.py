"""
Candidate pool generation: exhaustive cartesian product plus random samples
"""

import itertools
import logging
from typing import List, Optional

import numpy as np

from covfuzz.errors import ConfigValidationError
from covfuzz.fuzz_generator import DEFAULT_MAX_RETRIES, FuzzConfig, build_generators
from covfuzz.models import TestCase
from covfuzz.nodes import TypeNode

logger = logging.getLogger(__name__)


class BaseSetGenerator:
    """Builds the full candidate pool of test cases for a list of parameter nodes"""

    def __init__(self, nodes: List[TypeNode], num_rand: int, seed: Optional[int] = None,
                 max_retries: int = DEFAULT_MAX_RETRIES):
        if num_rand < 0:
            raise ConfigValidationError("num_rand", f"must be >= 0, got {num_rand}")
        self.nodes = list(nodes)
        self.num_rand = num_rand
        self.config = FuzzConfig(max_retries=max_retries, seed=seed)
        self.rng = np.random.default_rng(seed)
        self.generators = build_generators(self.nodes, self.config, self.rng)

    def gen_exhaustive(self) -> List[TestCase]:
        """Cartesian product of every node's exhaustive values, in schema order"""
        value_lists = [gen.exhaustive_values() for gen in self.generators]
        return [TestCase(args) for args in itertools.product(*value_lists)]

    def gen_random(self) -> List[TestCase]:
        """Exactly ``num_rand`` independently sampled test cases"""
        return [
            TestCase(gen.random_value() for gen in self.generators)
            for _ in range(self.num_rand)
        ]

    def gen_base_set(self) -> List[TestCase]:
        """Exhaustive portion followed by the random portion, without deduplication"""
        exhaustive = self.gen_exhaustive()
        random_cases = self.gen_random()
        logger.info(
            f"Generated base set: {len(exhaustive)} exhaustive + {len(random_cases)} random "
            f"test cases for ({', '.join(node.describe() for node in self.nodes)})"
        )
        return exhaustive + random_cases
