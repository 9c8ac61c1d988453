"""
Utility functions for covfuzz
"""

import json
import os
from collections import Counter
from typing import Any, Dict, Iterable, List, Optional
from datetime import datetime
import logging

from covfuzz.models import (
    InfraFailure, OpaqueValue, Outcome, Raised, Returned, TestCase, TestResults, TimedOut,
)

logger = logging.getLogger(__name__)


class ResultAnalyzer:
    """Analyze and report differential test results"""

    def __init__(self, output_dir: str = "results"):
        self.output_dir = output_dir
        os.makedirs(output_dir, exist_ok=True)

    def save_results(self, results: TestResults, cover: List[TestCase], filename: str = None):
        """Save test results and the selected cover to a JSON file"""
        if filename is None:
            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            filename = f"covfuzz_results_{timestamp}.json"

        output_path = os.path.join(self.output_dir, filename)

        selected = set(cover)
        serializable_results = []
        for case in results.cases:
            expected, actual = results.pair(case)
            serializable_results.append({
                "args": self._make_serializable(case.args),
                "reference": self._outcome_to_dict(expected),
                "candidate": self._outcome_to_dict(actual),
                "agrees": results.agrees(case),
                "in_cover": case in selected,
            })

        data = {
            "cover": [str(case) for case in cover],
            "results": serializable_results,
        }

        with open(output_path, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=2, ensure_ascii=False)

        logger.info(f"Results saved to {output_path}")
        return output_path

    def _outcome_to_dict(self, outcome: Outcome) -> Dict[str, Any]:
        if isinstance(outcome, Returned):
            return {"status": "returned", "value": self._make_serializable(outcome.value)}
        if isinstance(outcome, Raised):
            return {"status": "raised", "error": outcome.error_kind, "message": outcome.message}
        if isinstance(outcome, TimedOut):
            return {"status": "timeout", "timeout": outcome.timeout}
        if isinstance(outcome, InfraFailure):
            return {"status": "infra_failure", "reason": outcome.reason}
        return {"status": "unknown", "value": str(outcome)}

    def _make_serializable(self, obj: Any) -> Any:
        """Convert object to JSON serializable format"""
        if isinstance(obj, (list, tuple)):
            return [self._make_serializable(item) for item in obj]
        elif isinstance(obj, (set, frozenset)):
            return sorted((self._make_serializable(item) for item in obj), key=repr)
        elif isinstance(obj, dict):
            # JSON object keys must be strings
            return {repr(key) if not isinstance(key, str) else key: self._make_serializable(value)
                    for key, value in obj.items()}
        elif isinstance(obj, OpaqueValue):
            return obj.text
        elif isinstance(obj, (int, float, str, bool, type(None))):
            return obj
        else:
            return str(obj)

    def generate_report(self, results: TestResults, cover: List[TestCase]) -> str:
        """Generate a text report of a differential run"""
        total_tests = len(results)
        divergences_found = len(results.divergent_cases())
        agreement_rate = (total_tests - divergences_found) / total_tests * 100 if total_tests > 0 else 0

        report = f"""
=== covfuzz Differential Test Report ===

Summary:
- Total Test Cases: {total_tests}
- Divergences Found: {divergences_found}
- Agreement Rate: {agreement_rate:.1f}%
- Concise Set Size: {len(cover)}

Outcome Statistics:
"""

        for label, outcomes in (("reference", results.expected.values()),
                                ("candidate", results.actual.values())):
            counts = self._count_outcome_kinds(outcomes)
            summary = ", ".join(f"{kind}: {count}" for kind, count in sorted(counts.items()))
            report += f"- {label}: {summary or 'no outcomes'}\n"

        divergent = results.divergent_cases()
        if divergent:
            report += "\nTop Divergences:\n"
            for i, case in enumerate(divergent[:10], 1):
                expected, actual = results.pair(case)
                report += f"{i}. {case}: reference {self._short(expected)}, candidate {self._short(actual)}\n"

        report += "\nConcise Set:\n"
        for case in cover:
            report += f"{case}\n"

        return report

    def _count_outcome_kinds(self, outcomes: Iterable[Outcome]) -> Counter:
        return Counter(self._outcome_to_dict(outcome)["status"] for outcome in outcomes)

    def _short(self, outcome: Outcome) -> str:
        data = self._outcome_to_dict(outcome)
        if data["status"] == "returned":
            return f"returned {data['value']!r}"
        if data["status"] == "raised":
            return f"raised {data['error']}"
        return data["status"]

    def save_report(self, report: str, filename: str = None):
        """Save report to file"""
        if filename is None:
            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            filename = f"covfuzz_report_{timestamp}.txt"

        output_path = os.path.join(self.output_dir, filename)

        with open(output_path, 'w', encoding='utf-8') as f:
            f.write(report)

        logger.info(f"Report saved to {output_path}")
        return output_path


class ConfigValidator:
    """Validate runner settings files"""

    @staticmethod
    def validate_config(config_data: Dict[str, Any], known_keys: Optional[Iterable[str]] = None) -> List[str]:
        """Validate configuration data and return list of issues"""
        issues = []

        runner = config_data.get('runner')
        if not isinstance(runner, dict):
            return ["Missing or invalid runner configuration"]

        if known_keys is not None:
            unknown = sorted(set(runner) - set(known_keys))
            if unknown:
                issues.append(f"Unknown runner settings: {unknown}")

        def is_number(value):
            return isinstance(value, (int, float)) and not isinstance(value, bool)

        def is_int(value):
            return isinstance(value, int) and not isinstance(value, bool)

        if 'timeout_seconds' in runner:
            if not is_number(runner['timeout_seconds']) or runner['timeout_seconds'] <= 0:
                issues.append("Invalid timeout_seconds in runner settings")

        if 'max_workers' in runner:
            if not is_int(runner['max_workers']) or runner['max_workers'] <= 0:
                issues.append("Invalid max_workers in runner settings")

        if 'max_generation_retries' in runner:
            if not is_int(runner['max_generation_retries']) or runner['max_generation_retries'] < 0:
                issues.append("Invalid max_generation_retries in runner settings")

        for key in ('float_rel_tol', 'float_abs_tol'):
            if key in runner and (not is_number(runner[key]) or runner[key] < 0):
                issues.append(f"Invalid {key} in runner settings")

        if 'significant_digits' in runner:
            digits = runner['significant_digits']
            if not is_int(digits) or not (1 <= digits <= 17):
                issues.append(f"Invalid significant_digits range: {digits}")

        if runner.get('seed') is not None and not is_int(runner['seed']):
            issues.append("Invalid seed in runner settings")

        for key in ('python_executable', 'output_dir'):
            if key in runner and (not isinstance(runner[key], str) or not runner[key]):
                issues.append(f"Missing or empty {key} in runner settings")

        return issues

    @staticmethod
    def fix_common_issues(config_data: Dict[str, Any], defaults: Dict[str, Any]) -> Dict[str, Any]:
        """Fill missing settings with defaults"""
        fixed_config = dict(config_data) if isinstance(config_data, dict) else {}

        if 'runner' not in fixed_config:
            fixed_config['runner'] = dict(defaults['runner'])
        elif isinstance(fixed_config['runner'], dict):
            fixed_config['runner'] = dict(fixed_config['runner'])
            for key, value in defaults['runner'].items():
                if key not in fixed_config['runner']:
                    fixed_config['runner'][key] = value

        return fixed_config
