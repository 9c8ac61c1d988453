import json
import os

from covfuzz.models import Raised, Returned, TestCase, TestResults
from covfuzz.utils import ResultAnalyzer


def sample_results():
    cases = [TestCase((1,)), TestCase((2,)), TestCase(({3},))]
    return TestResults(
        cases=cases,
        expected={cases[0]: Returned(2), cases[1]: Returned({1: [1.5]}), cases[2]: Raised("KeyError", "3")},
        actual={cases[0]: Returned(2), cases[1]: Returned({1: [2.5]}), cases[2]: Raised("KeyError", "3")},
        agreement={cases[0]: True, cases[1]: False, cases[2]: True},
    )


def test_save_results_writes_json(tmp_path):
    analyzer = ResultAnalyzer(str(tmp_path / "out"))
    results = sample_results()
    path = analyzer.save_results(results, [TestCase((1,)), TestCase((2,))], filename="run.json")

    assert os.path.basename(path) == "run.json"
    data = json.loads(open(path, encoding="utf-8").read())
    assert data["cover"] == ["(1,)", "(2,)"]
    assert data["results"][1]["reference"] == {"status": "returned", "value": {"1": [1.5]}}
    assert data["results"][1]["agrees"] is False
    assert data["results"][2]["args"] == [[3]]
    assert data["results"][2]["in_cover"] is False


def test_generate_report_summarizes_divergences(tmp_path):
    analyzer = ResultAnalyzer(str(tmp_path))
    report = analyzer.generate_report(sample_results(), [TestCase((1,))])

    assert "Total Test Cases: 3" in report
    assert "Divergences Found: 1" in report
    assert "Concise Set Size: 1" in report
    assert "- reference: raised: 1, returned: 2" in report
    assert "1. (2,): reference returned {'1': [1.5]}, candidate returned {'1': [2.5]}" in report


def test_save_report(tmp_path):
    analyzer = ResultAnalyzer(str(tmp_path))
    path = analyzer.save_report("hello", filename="report.txt")
    assert open(path, encoding="utf-8").read() == "hello"
