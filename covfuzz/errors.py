"""
Exception taxonomy for the covfuzz test generation framework
"""

from typing import Any, Optional


class CovFuzzError(Exception):
    """Base class for all framework errors"""


class ConfigValidationError(CovFuzzError):
    """A schema node or runner setting violates a constraint"""

    def __init__(self, path: str, constraint: str):
        self.path = path
        self.constraint = constraint
        super().__init__(f"{path}: {constraint}")


class GenerationRetryExhausted(CovFuzzError):
    """Set/dict deduplication could not reach the target cardinality"""

    def __init__(self, path: str, target: int, reached: int, retries: int):
        self.path = path
        self.target = target
        self.reached = reached
        self.retries = retries
        super().__init__(
            f"{path}: could only build {reached} distinct entries out of {target} "
            f"after {retries} extra draws"
        )


class ExecutionInfraFailure(CovFuzzError):
    """The oracle itself could not run an implementation"""

    def __init__(self, implementation: str, path: str, test_case: Optional[Any], reason: str):
        self.implementation = implementation
        self.path = path
        self.test_case = test_case
        self.reason = reason
        super().__init__(
            f"{implementation} implementation ({path}) failed on {test_case}: {reason}"
        )
