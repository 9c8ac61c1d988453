import pytest

from covfuzz.base_set import BaseSetGenerator
from covfuzz.errors import ConfigValidationError, GenerationRetryExhausted
from covfuzz.models import TestCase
from covfuzz.nodes import TypeNode


def test_exhaustive_portion_is_cartesian_product():
    nodes = [
        TypeNode.int_([1, 2, 3], [0]),
        TypeNode.bool_([0, 1], [0]),
        TypeNode.str_("ab", [0, 1], [0]),
    ]
    cases = BaseSetGenerator(nodes, num_rand=0).gen_exhaustive()
    assert len(cases) == 3 * 2 * 2
    assert len(set(cases)) == len(cases)
    assert cases[0] == TestCase((1, False, ""))
    assert cases[-1] == TestCase((3, True, "a"))


def test_random_portion_has_exactly_num_rand_cases():
    nodes = [
        TypeNode.list_(TypeNode.int_([1], range(0, 5)), [0], [0, 1, 2]),
        TypeNode.dict_(TypeNode.int_([1], range(0, 50)), TypeNode.float_([1], [0.5]), [0], [0, 2]),
    ]
    generator = BaseSetGenerator(nodes, num_rand=7, seed=11)
    cases = generator.gen_random()
    assert len(cases) == 7
    assert all(len(case) == 2 for case in cases)


def test_base_set_puts_exhaustive_first_and_keeps_duplicates():
    nodes = [TypeNode.int_([1], [1])]
    cases = BaseSetGenerator(nodes, num_rand=3, seed=0).gen_base_set()
    assert cases == [TestCase((1,))] * 4


def test_end_to_end_example_pool_size():
    nodes = [TypeNode.int_([1, 2, 3], range(0, 11))]
    cases = BaseSetGenerator(nodes, num_rand=2, seed=5).gen_base_set()
    assert len(cases) == 5
    assert cases[:3] == [TestCase((1,)), TestCase((2,)), TestCase((3,))]
    assert all(0 <= case.args[0] <= 10 for case in cases[3:])


def test_same_seed_gives_same_random_cases():
    nodes = [TypeNode.set_(TypeNode.str_("abc", [1], [1, 2]), [0], [1, 2])]
    first = BaseSetGenerator(nodes, num_rand=10, seed=123).gen_random()
    second = BaseSetGenerator(nodes, num_rand=10, seed=123).gen_random()
    assert first == second


def test_no_parameters_yields_single_empty_case():
    assert BaseSetGenerator([], num_rand=2).gen_base_set() == [TestCase(())] * 3


def test_negative_num_rand_rejected():
    with pytest.raises(ConfigValidationError):
        BaseSetGenerator([TypeNode.int_([1], [1])], num_rand=-1)


def test_generation_failure_propagates():
    nodes = [TypeNode.set_(TypeNode.int_([1], [1]), [2], [1])]
    with pytest.raises(GenerationRetryExhausted) as excinfo:
        BaseSetGenerator(nodes, num_rand=0, max_retries=2).gen_base_set()
    assert excinfo.value.path == "args[0]"
