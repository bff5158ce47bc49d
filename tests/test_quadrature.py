"""Tests for the single-range rules and the remainder bound."""
import numpy as np
import pytest

from quadrature import (TRAPEZOID, MIDPOINT, integrand,
                        integrand_second_derivative, numeric_second_derivative,
                        calculate_accumulated_sum_on_range, get_remaining_term)


def one(x):
    return 1.0


def test_trapezoid_sum_of_identity():
    s = calculate_accumulated_sum_on_range(lambda x: x, 0., 1., 0.001)
    assert s == pytest.approx(500.)
    assert s * 0.001 == pytest.approx(0.5)


@pytest.mark.parametrize("rule", [TRAPEZOID, MIDPOINT])
def test_full_interval_counts_every_cell(rule):
    """With step = range/n exactly n cells are summed, the last one included."""
    for n in [1, 3, 10, 1000, 4097]:
        assert calculate_accumulated_sum_on_range(one, 0., 1., 1. / n, rule) == n
        assert calculate_accumulated_sum_on_range(one, -2.5, 7.1, 9.6 / n, rule) == n


def test_partial_last_cell_kept_when_midpoint_inside():
    # midpoints 0.15, 0.45, 0.75 lie inside [0, 1); 1.05 does not
    assert calculate_accumulated_sum_on_range(one, 0., 1., 0.3, MIDPOINT) == 3
    # midpoints 0.25, 0.75, 1.25: the third falls outside [0, 1.2)
    assert calculate_accumulated_sum_on_range(one, 0., 1.2, 0.5, MIDPOINT) == 2


@pytest.mark.parametrize("rule", [TRAPEZOID, MIDPOINT])
def test_adjacent_ranges_split_shared_grid(rule):
    step = 1. / 7001
    cuts = [0., 1. / 3, 0.5, 2. / 3, 1.]
    pieces = [calculate_accumulated_sum_on_range(one, a, b, step, rule, 0.)
              for a, b in zip(cuts[:-1], cuts[1:])]
    assert sum(pieces) == 7001
    whole = calculate_accumulated_sum_on_range(np.cos, 0., 1., step, rule)
    split = sum(calculate_accumulated_sum_on_range(np.cos, a, b, step, rule, 0.)
                for a, b in zip(cuts[:-1], cuts[1:]))
    assert split == pytest.approx(whole, rel=1e-12)


def test_midpoint_rule_evaluates_cell_centres():
    points = []
    def record(x):
        points.append(x)
        return 0.
    calculate_accumulated_sum_on_range(record, 0., 1., 0.25, MIDPOINT)
    assert points == pytest.approx([0.125, 0.375, 0.625, 0.875])


def test_empty_range_is_zero():
    assert calculate_accumulated_sum_on_range(one, 1., 1., 0.) == 0.
    assert calculate_accumulated_sum_on_range(one, 2., 1., 0.1) == 0.


def test_bad_arguments():
    with pytest.raises(ValueError):
        calculate_accumulated_sum_on_range(one, 0., 1., 0.1, "simpson")
    with pytest.raises(ValueError):
        calculate_accumulated_sum_on_range(one, 0., 1., 0.)
    with pytest.raises(ValueError):
        get_remaining_term(one, 0., 1., -0.1)


def test_remaining_term_constant_second_derivative():
    assert get_remaining_term(lambda x: 2., 0., 1., 0.1) == \
        pytest.approx(1. * 0.01 / 24 * 2.)
    assert get_remaining_term(lambda x: -2., 0., 3., 0.1) == \
        pytest.approx(3. * 0.01 / 24 * 2.)


def test_remaining_term_includes_upper_end_point():
    assert get_remaining_term(lambda x: x, 0., 1., 0.3) == \
        pytest.approx(1. * 0.09 / 24 * 1.)


def test_remaining_term_empty_interval():
    assert get_remaining_term(one, 1., 1., 0.) == 0.


def test_integrand_scalar_and_array():
    assert integrand(0.) == 0.
    assert integrand(1.) == pytest.approx(np.pi / 8)
    x = np.linspace(-3, 3, 7)
    assert np.allclose(integrand(x), [integrand(v) for v in x])


@pytest.mark.parametrize("x", [-2., -0.5, 0., 0.3, 1., 2.5])
def test_integrand_second_derivative_matches_finite_difference(x):
    numeric = numeric_second_derivative(integrand, eps=1e-4)
    assert integrand_second_derivative(x) == \
        pytest.approx(numeric(x), rel=1e-4, abs=1e-6)


def test_numeric_second_derivative_of_cubic():
    d2f = numeric_second_derivative(lambda x: x**3)
    assert d2f(2.) == pytest.approx(12., rel=1e-5)


def test_remaining_term_chunks_agree():
    whole = get_remaining_term(integrand_second_derivative, -3., 2., 0.001)
    for chunk_size in [1, 7, 1000, 4999]:
        assert get_remaining_term(integrand_second_derivative, -3., 2., 0.001,
                                  chunk_size=chunk_size) == whole


def test_remaining_term_samples_cell_midpoints():
    # the only non-zero value sits on the midpoint of the single cell
    def spike(x):
        return np.where(np.isclose(x, 0.5), 4., 0.)
    assert get_remaining_term(spike, 0., 1., 1.) == pytest.approx(1. / 24 * 4.)
