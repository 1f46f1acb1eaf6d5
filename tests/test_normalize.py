import numpy as np
import pytest

from dicom_heatmap.normalize import normalize


def test_minmax_spans_unit_range():
    grid = np.array([[2.0, 4.0], [6.0, 10.0]])
    out = normalize(grid, "minmax")
    assert out.dtype == np.float32
    np.testing.assert_allclose(out, [[0.0, 0.25], [0.5, 1.0]])


def test_constant_grid_maps_to_zeros():
    grid = np.full((3, 3), 7.5)
    for method in ("minmax", "zscore", "percentile"):
        out = normalize(grid, method)
        assert np.all(out == 0.0)
        assert not np.isnan(out).any()


def test_zscore_clips_to_unit_range():
    out = normalize(np.array([[1.0, 2.0, 3.0]]), "zscore")
    # mean 2, std ~0.816: z = [-1.22, 0, 1.22]
    np.testing.assert_allclose(out, [[0.0, 0.0, 1.0]], atol=1e-6)


def test_zscore_keeps_values_inside_one_std():
    grid = np.array([0.0, 0.0, 0.0, 0.0, 1.0, 2.0, 3.0, 4.0])
    out = normalize(grid, "zscore")
    z = (grid - grid.mean()) / grid.std()
    np.testing.assert_allclose(out, np.clip(z, 0, 1), rtol=1e-5, atol=1e-6)
    assert 0.0 < out[5] < 1.0


def test_percentile_clips_outliers():
    grid = np.arange(100, dtype=np.float32)
    grid[-1] = 1e6
    out = normalize(grid, "percentile")
    p5, p95 = np.percentile(grid, [5, 95])
    assert out.min() == 0.0
    assert out.max() == 1.0
    assert out[0] == 0.0
    assert out[-1] == 1.0
    assert out[50] == pytest.approx((50 - p5) / (p95 - p5), rel=1e-5)


def test_unknown_method_rejected():
    with pytest.raises(ValueError, match="Unknown normalization"):
        normalize(np.ones((2, 2)), "log")


def test_empty_grid_rejected():
    with pytest.raises(ValueError):
        normalize(np.zeros((0, 0)), "minmax")


@pytest.mark.parametrize("method", ["minmax", "zscore", "percentile"])
def test_values_near_float32_limit_stay_finite(method):
    grid = np.linspace(-3e38, 3e38, 100, dtype=np.float32).reshape(10, 10)
    out = normalize(grid, method)
    assert out.dtype == np.float32
    assert np.isfinite(out).all()
    assert out.min() >= 0.0 and out.max() <= 1.0
    assert out[0, 0] == 0.0
    assert out[-1, -1] == 1.0


def test_minmax_is_scale_invariant():
    grid = np.array([[1.0, 2.0], [3.0, 5.0]])
    np.testing.assert_allclose(normalize(grid * 1e30, "minmax"), normalize(grid, "minmax"), rtol=1e-6)


def test_non_finite_input_rejected():
    with pytest.raises(ValueError, match="NaN"):
        normalize(np.array([[1.0, np.nan]]), "minmax")
