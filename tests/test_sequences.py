import pytest

from errors import InvalidSweepParameter
from sequences import SweepMode, build, interleaved, linear, reverse, symmetric


@pytest.mark.parametrize("start,stop,steps", [(0, 10, 2), (0, -60, 61), (-1.5, 2.5, 7), (3, 3, 4)])
def test_linear_endpoints_and_spacing(start, stop, steps):
    values = linear(start, stop, steps)
    assert len(values) == steps
    assert values[0] == start
    assert values[-1] == stop
    diffs = [b - a for a, b in zip(values, values[1:])]
    assert diffs == pytest.approx([diffs[0]] * len(diffs))


def test_linear_single_step_is_start():
    assert linear(-5.0, -60.0, 1) == [-5.0]


@pytest.mark.parametrize("steps", [0, -3, 2.5])
def test_linear_rejects_bad_step_count(steps):
    with pytest.raises(InvalidSweepParameter):
        linear(0, 1, steps)


def test_linear_is_repeatable():
    assert linear(0, -10, 3) == linear(0, -10, 3) == [0.0, -5.0, -10.0]


def test_reverse():
    assert reverse([1.0, 2.0, 3.0]) == [3.0, 2.0, 1.0]


def test_symmetric_is_there_and_back():
    values = symmetric(linear(0, 10, 3))
    assert values == [0.0, 5.0, 10.0, 10.0, 5.0, 0.0]
    assert values == values[::-1]


def test_symmetric_shared_turning_point():
    assert symmetric([0.0, 5.0, 10.0], share_turning_point=True) == [0.0, 5.0, 10.0, 5.0, 0.0]


def test_interleaved_around_zero():
    assert interleaved([0.0, 1.0, 2.0]) == [0.0, 1.0, -1.0, 2.0, -2.0]


def test_build_modes():
    assert build(0, 2, 3, SweepMode.LINEAR) == [0.0, 1.0, 2.0]
    assert build(0, 2, 3, SweepMode.REVERSE) == [2.0, 1.0, 0.0]
    assert build(0, 2, 3, SweepMode.BIDIRECTIONAL) == [0.0, 1.0, 2.0, 2.0, 1.0, 0.0]
    assert build(0, 2, 3, SweepMode.INTERLEAVED) == [0.0, 1.0, -1.0, 2.0, -2.0]
