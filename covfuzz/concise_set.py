"""
Greedy set cover over observed behavior signatures
"""

import logging
from typing import Any, Dict, Hashable, List, Set, Tuple

from covfuzz.models import Outcome, Raised, Returned, TestCase, TestResults, TimedOut, freeze

logger = logging.getLogger(__name__)

Signature = Tuple[Hashable, bool]


class ConciseSetGenerator:
    """Selects one representative test case per distinct behavior signature.

    A signature is ``(reference outcome class, agreement flag)``. Returned values
    are grouped by value with every float rounded to ``significant_digits``
    significant digits, so representation noise does not split a class; errors
    are grouped by exception type and all timeouts share one class.
    """

    def __init__(self, significant_digits: int = 9):
        self.significant_digits = significant_digits

    def _round_float(self, value: float) -> Any:
        if value in (float("inf"), float("-inf")):
            return value
        return float(f"{value:.{self.significant_digits}g}")

    def outcome_class(self, outcome: Outcome) -> Hashable:
        if isinstance(outcome, Returned):
            return ("returned", freeze(outcome.value, self._round_float))
        if isinstance(outcome, Raised):
            return ("raised", outcome.error_kind)
        if isinstance(outcome, TimedOut):
            return ("timeout",)
        return ("infra", outcome.reason)

    def signature(self, results: TestResults, case: TestCase) -> Signature:
        return self.outcome_class(results.expected[case]), results.agrees(case)

    def set_cover(self, results: TestResults) -> List[TestCase]:
        """Approximately minimal subset of the pool covering every observed signature.

        Each case covers exactly one signature, so the greedy "most new elements"
        choice reduces to taking the first case in pool order for each signature
        not yet covered. The result is in selection order.
        """
        signatures: Dict[TestCase, Signature] = {
            case: self.signature(results, case) for case in results.cases
        }
        universe: Set[Signature] = set(signatures.values())

        covered: Set[Signature] = set()
        cover: List[TestCase] = []
        for case in results.cases:
            if len(covered) == len(universe):
                break
            signature = signatures[case]
            if signature not in covered:
                covered.add(signature)
                cover.append(case)

        divergent = sum(1 for _, agrees in universe if not agrees)
        logger.info(
            f"Selected {len(cover)} of {len(results.cases)} test cases covering "
            f"{len(universe)} behavior signatures ({divergent} divergent)"
        )
        return cover
