from covfuzz.concise_set import ConciseSetGenerator
from covfuzz.models import Raised, Returned, TestCase, TestResults, TimedOut


def make_results(rows):
    """rows: (arg, reference outcome, candidate outcome, agrees)"""
    cases = [TestCase((arg,)) for arg, _, _, _ in rows]
    return TestResults(
        cases=cases,
        expected={case: row[1] for case, row in zip(cases, rows)},
        actual={case: row[2] for case, row in zip(cases, rows)},
        agreement={case: row[3] for case, row in zip(cases, rows)},
    )


def distinct_signatures(generator, results):
    return {generator.signature(results, case) for case in results.cases}


def test_one_representative_per_signature_in_pool_order():
    results = make_results([
        (1, Returned(2), Returned(2), True),
        (2, Returned(3), Returned(2), False),
        (3, Returned(4), Returned(4), True),
        (4, Returned(2), Returned(2), True),
        (5, Returned(3), Returned(2), False),
    ])
    generator = ConciseSetGenerator()
    cover = generator.set_cover(results)

    assert cover == [TestCase((1,)), TestCase((2,)), TestCase((3,))]
    assert len(cover) == len(distinct_signatures(generator, results))
    assert set(cover) <= set(results.cases)


def test_agreement_flag_splits_same_reference_value():
    results = make_results([
        (1, Returned(0), Returned(0), True),
        (2, Returned(0), Returned(1), False),
    ])
    assert ConciseSetGenerator().set_cover(results) == [TestCase((1,)), TestCase((2,))]


def test_full_agreement_still_covers_behavioral_diversity():
    results = make_results([
        (1, Returned("a"), Returned("a"), True),
        (2, Raised("ValueError", "x"), Raised("ValueError", "y"), True),
        (3, Raised("ValueError", "z"), Raised("ValueError", "z"), True),
        (4, TimedOut(1.0), TimedOut(1.0), True),
        (5, Returned("b"), Returned("b"), True),
        (6, Returned("a"), Returned("a"), True),
    ])
    cover = ConciseSetGenerator().set_cover(results)
    assert cover == [TestCase((1,)), TestCase((2,)), TestCase((4,)), TestCase((5,))]
    assert results.divergent_cases() == []


def test_float_noise_does_not_split_signatures():
    results = make_results([
        (1, Returned([0.1 + 0.2]), Returned([0.3]), True),
        (2, Returned([0.3]), Returned([0.3]), True),
        (3, Returned([0.31]), Returned([0.31]), True),
    ])
    generator = ConciseSetGenerator(significant_digits=9)
    assert generator.set_cover(results) == [TestCase((1,)), TestCase((3,))]


def test_unhashable_return_values_are_grouped():
    results = make_results([
        (1, Returned({"k": [1, 2]}), Returned({"k": [1, 2]}), True),
        (2, Returned({"k": [1, 2]}), Returned({"k": [1, 2]}), True),
        (3, Returned({"k": {1, 2}}), Returned({"k": {1, 2}}), True),
    ])
    assert ConciseSetGenerator().set_cover(results) == [TestCase((1,)), TestCase((3,))]


def test_empty_results_give_empty_cover():
    assert ConciseSetGenerator().set_cover(make_results([])) == []


def test_bool_and_int_returns_are_separate_behaviors():
    results = make_results([
        (0, Returned(True), Returned(True), True),
        (1, Returned(1), Returned(1), True),
        (2, Returned(1), Returned(1), True),
    ])
    assert ConciseSetGenerator().set_cover(results) == [TestCase((0,)), TestCase((1,))]
