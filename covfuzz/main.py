"""
covfuzz: concise differential test generation

Generates test inputs for a function from its parameter type nodes, runs a
reference and a candidate implementation on all of them, and keeps an
approximately minimal subset that still shows every observed behavior.
"""

import logging
from typing import List, Optional

from covfuzz.base_set import BaseSetGenerator
from covfuzz.concise_set import ConciseSetGenerator
from covfuzz.config import ConfigFile, RunnerSettings
from covfuzz.differential_tester import DifferentialTester
from covfuzz.models import TestCase, TestResults
from covfuzz.utils import ResultAnalyzer

logger = logging.getLogger(__name__)

COVER_BANNER = "Prints a set of test cases that is an approximately minimal set covering"


class ConciseFuzzer:
    """Main pipeline class"""

    def __init__(self, config_file: ConfigFile, reference_path: str, candidate_path: str,
                 settings: Optional[RunnerSettings] = None):
        self.config_file = config_file
        self.settings = settings or RunnerSettings()
        self.base_set_generator = BaseSetGenerator(
            config_file.nodes,
            config_file.num_rand,
            seed=self.settings.seed,
            max_retries=self.settings.max_generation_retries,
        )
        self.concise_set_generator = ConciseSetGenerator(self.settings.significant_digits)
        self.reference_path = reference_path
        self.candidate_path = candidate_path
        self.results: Optional[TestResults] = None
        self.cover: List[TestCase] = []

    async def run(self) -> List[TestCase]:
        """Generate, execute, compare and minimize"""
        logger.info(f"Generating test cases for {self.config_file.function_name}...")
        base_set = self.base_set_generator.gen_base_set()

        tester = DifferentialTester(
            self.config_file.function_name,
            self.reference_path,
            self.candidate_path,
            base_set,
            self.settings,
        )
        await tester.compute_expected_results()
        self.results = await tester.run_tests()

        self.cover = self.concise_set_generator.set_cover(self.results)
        logger.info(f"Run completed. Total test cases: {len(self.results)}")
        logger.info(f"Divergences found: {len(self.results.divergent_cases())}")
        return self.cover

    def format_cover(self) -> str:
        """Banner followed by one test case per line, in selection order"""
        return "\n".join([COVER_BANNER] + [str(case) for case in self.cover])

    def save_results(self) -> List[str]:
        """Write the JSON results and the text report to the output directory"""
        if self.results is None:
            raise RuntimeError("run() must complete before results can be saved")
        analyzer = ResultAnalyzer(self.settings.output_dir)
        results_path = analyzer.save_results(self.results, self.cover)
        report_path = analyzer.save_report(analyzer.generate_report(self.results, self.cover))
        return [results_path, report_path]


async def generate_tests(config_file: ConfigFile, reference_path: str, candidate_path: str,
                         settings: Optional[RunnerSettings] = None) -> List[TestCase]:
    """Run the whole pipeline and return the concise set"""
    fuzzer = ConciseFuzzer(config_file, reference_path, candidate_path, settings)
    return await fuzzer.run()
