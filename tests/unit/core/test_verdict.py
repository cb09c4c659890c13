import pytest

from resilience_orchestrator.verdict import Verdict, clamp_score, worst


def test_worst_of_empty_is_pass():
    assert worst([]) == Verdict.PASS


@pytest.mark.parametrize(
    "verdicts, expected",
    [
        ([Verdict.PASS, Verdict.PASS], Verdict.PASS),
        ([Verdict.PASS, Verdict.WARN], Verdict.WARN),
        ([Verdict.WARN, Verdict.FAIL, Verdict.PASS], Verdict.FAIL),
    ],
)
def test_worst(verdicts, expected):
    assert worst(verdicts) == expected


def test_verdict_values_serialize_as_strings():
    assert Verdict.WARN.value == "warn"
    assert Verdict("fail") is Verdict.FAIL


@pytest.mark.parametrize("value, expected", [(-3, 0.0), (42.5, 42.5), (130, 100.0)])
def test_clamp_score(value, expected):
    assert clamp_score(value) == expected
