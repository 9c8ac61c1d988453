"""
Differential testing core logic for covfuzz
"""

import ast
import asyncio
import json
import logging
import math
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

import numpy as np

from covfuzz.config import RunnerSettings
from covfuzz.errors import ExecutionInfraFailure
from covfuzz.models import (
    InfraFailure, OpaqueValue, Outcome, Raised, Returned, TestCase, TestResults, TimedOut,
    describe_outcome, freeze,
)

logger = logging.getLogger(__name__)

HARNESS_PATH = str(Path(__file__).with_name("harness.py"))

# Return values cross the process boundary as repr text; big ints must round-trip
if hasattr(sys, "set_int_max_str_digits"):
    sys.set_int_max_str_digits(0)


@dataclass(frozen=True)
class Implementation:
    """One side of the comparison"""
    label: str
    path: str


# Comparison

def values_close(a: Any, b: Any, rel_tol: float = 1e-9, abs_tol: float = 1e-12) -> bool:
    """Structural equality where floats compare within a tolerance band.

    Floats use numpy.isclose and two NaNs are equal. bool never equals int and a
    list never equals a tuple. Set members compare exactly.
    """
    if isinstance(a, bool) or isinstance(b, bool):
        return type(a) is type(b) and a == b
    if isinstance(a, float) or isinstance(b, float):
        if not (isinstance(a, (int, float)) and isinstance(b, (int, float))):
            return False
        if math.isnan(a) and math.isnan(b):
            return True
        return bool(np.isclose(a, b, rtol=rel_tol, atol=abs_tol))
    if isinstance(a, (list, tuple)):
        return (type(a) is type(b) and len(a) == len(b)
                and all(values_close(x, y, rel_tol, abs_tol) for x, y in zip(a, b)))
    if isinstance(a, dict):
        if not isinstance(b, dict) or len(a) != len(b):
            return False
        other = {freeze(k): v for k, v in b.items()}
        for key, value in a.items():
            frozen = freeze(key)
            if frozen not in other or not values_close(value, other[frozen], rel_tol, abs_tol):
                return False
        return True
    if isinstance(a, (set, frozenset)):
        return isinstance(b, (set, frozenset)) and freeze(a) == freeze(b)
    return type(a) is type(b) and a == b


def outcomes_agree(expected: Outcome, actual: Outcome, rel_tol: float = 1e-9,
                   abs_tol: float = 1e-12) -> bool:
    """Whether the candidate's outcome matches the reference's"""
    if isinstance(expected, Returned) and isinstance(actual, Returned):
        return values_close(expected.value, actual.value, rel_tol, abs_tol)
    if isinstance(expected, Raised) and isinstance(actual, Raised):
        return expected.error_kind == actual.error_kind
    if isinstance(expected, TimedOut) and isinstance(actual, TimedOut):
        return True
    return False


def decode_value(text: str, type_name: Optional[str] = None) -> Any:
    """Rebuild a returned value from its repr"""
    if type_name == "float":
        try:
            return float(text)
        except ValueError:
            return OpaqueValue(text)
    try:
        return ast.literal_eval(text)
    except (ValueError, SyntaxError, TypeError, MemoryError, RecursionError):
        return OpaqueValue(text)


class DifferentialTester:
    """Runs a reference and a candidate implementation on every test case"""

    def __init__(self, function_name: str, reference_path: str, candidate_path: str,
                 test_cases: Iterable[TestCase], settings: Optional[RunnerSettings] = None):
        self.function_name = function_name
        self.settings = settings or RunnerSettings()
        self.reference = Implementation("reference", os.path.abspath(reference_path))
        self.candidate = Implementation("candidate", os.path.abspath(candidate_path))
        self.test_cases: List[TestCase] = list(dict.fromkeys(test_cases))
        self.invocations = {"reference": 0, "candidate": 0}
        self._expected: Optional[Dict[TestCase, Outcome]] = None
        self._expected_lock = asyncio.Lock()
        self._semaphore = asyncio.Semaphore(self.settings.max_workers)

    async def compute_expected_results(self) -> Dict[TestCase, Outcome]:
        """Run the reference once per distinct test case and cache the outcomes"""
        async with self._expected_lock:
            if self._expected is None:
                logger.info(f"Computing expected results for {len(self.test_cases)} test cases...")
                self._expected = await self._run_all(self.reference, self.test_cases)
                logger.info(f"✓ {len(self._expected)} reference outcomes cached")
        return self._expected

    async def run_tests(self) -> TestResults:
        """Run the candidate and compare every outcome with the cached reference"""
        expected = await self.compute_expected_results()

        logger.info(f"Running candidate on {len(self.test_cases)} test cases...")
        actual = await self._run_all(self.candidate, self.test_cases)

        agreement = {}
        for case in self.test_cases:
            agreement[case] = outcomes_agree(
                expected[case], actual[case],
                self.settings.float_rel_tol, self.settings.float_abs_tol,
            )
            if not agreement[case]:
                logger.warning(
                    f"⚠️  {case} diverges: reference {describe_outcome(expected[case])}, "
                    f"candidate {describe_outcome(actual[case])}"
                )

        divergent = sum(1 for agrees in agreement.values() if not agrees)
        logger.info(f"Comparison done: {divergent}/{len(self.test_cases)} test cases diverge")

        return TestResults(
            cases=list(self.test_cases),
            expected=dict(expected),
            actual=actual,
            agreement=agreement,
        )

    async def _run_all(self, implementation: Implementation,
                       cases: List[TestCase]) -> Dict[TestCase, Outcome]:
        """Execute ``implementation`` on all cases through the bounded worker pool"""
        tasks = [asyncio.ensure_future(self._safe_execute(implementation, case)) for case in cases]
        try:
            outcomes = await asyncio.gather(*tasks)
        finally:
            # One failure (or an outside cancellation) stops everything still queued or running
            for task in tasks:
                if not task.done():
                    task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
        return dict(zip(cases, outcomes))

    async def _safe_execute(self, implementation: Implementation, case: TestCase) -> Outcome:
        """Run one invocation through the worker pool, escalating infra failures"""
        async with self._semaphore:
            outcome = await self._invoke(implementation, case)
            self.invocations[implementation.label] += 1

        if isinstance(outcome, InfraFailure):
            logger.error(f"Infra failure running {implementation.label} on {case}: {outcome.reason}")
            raise ExecutionInfraFailure(implementation.label, implementation.path, case, outcome.reason)
        if isinstance(outcome, TimedOut):
            logger.warning(f"⚠️  {implementation.label} timed out on {case}")
        return outcome

    async def _invoke(self, implementation: Implementation, case: TestCase) -> Outcome:
        payload = json.dumps({"args": repr(case.args)}).encode("utf-8")

        try:
            process = await asyncio.create_subprocess_exec(
                self.settings.python_executable, HARNESS_PATH,
                implementation.path, self.function_name,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            return InfraFailure(f"could not launch {self.settings.python_executable}: {e}")

        try:
            stdout, stderr = await asyncio.wait_for(
                process.communicate(payload), timeout=self.settings.timeout_seconds
            )
        except asyncio.TimeoutError:
            return TimedOut(self.settings.timeout_seconds)
        finally:
            await _terminate(process)

        return _parse_envelope(stdout, stderr, process.returncode)


async def _terminate(process: asyncio.subprocess.Process):
    """Kill the process if it is still running and reap it"""
    if process.returncode is None:
        try:
            process.kill()
        except ProcessLookupError:
            pass
    await process.wait()


def _parse_envelope(stdout: bytes, stderr: bytes, returncode: Optional[int]) -> Outcome:
    lines = stdout.decode("utf-8", errors="replace").strip().splitlines()
    if not lines:
        detail = stderr.decode("utf-8", errors="replace").strip()[-500:]
        return InfraFailure(f"no result envelope (exit code {returncode}): {detail}")

    try:
        envelope = json.loads(lines[-1])
    except json.JSONDecodeError:
        return InfraFailure(f"malformed result envelope: {lines[-1][:200]!r}")
    if not isinstance(envelope, dict):
        return InfraFailure(f"malformed result envelope: {lines[-1][:200]!r}")

    status = envelope.get("status")
    if status == "returned":
        return Returned(decode_value(envelope.get("value", ""), envelope.get("type")))
    if status == "raised":
        return Raised(envelope.get("error", "Exception"), envelope.get("message", ""))
    if status == "load_error":
        return InfraFailure(envelope.get("error", "implementation could not be loaded"))
    return InfraFailure(f"unknown envelope status {status!r}")
