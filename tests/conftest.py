import textwrap

import pytest

from covfuzz.config import RunnerSettings


REFERENCE_SOURCE = """
def f(x):
    return x + 1
"""

BUGGY_SOURCE = """
def f(x):
    if x == 2:
        return x
    return x + 1
"""


@pytest.fixture
def write_impl(tmp_path):
    """Write an implementation file and return its path"""
    def _write(name, source):
        path = tmp_path / f"{name}.py"
        path.write_text(textwrap.dedent(source), encoding="utf-8")
        return str(path)
    return _write


@pytest.fixture
def settings(tmp_path):
    return RunnerSettings(timeout_seconds=10.0, max_workers=4, output_dir=str(tmp_path / "results"))


@pytest.fixture
def reference_impl(write_impl):
    return write_impl("reference", REFERENCE_SOURCE)


@pytest.fixture
def buggy_impl(write_impl):
    return write_impl("buggy", BUGGY_SOURCE)
