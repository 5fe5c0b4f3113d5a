import numpy as np
import pytest

from lenetflow.core import ops
from lenetflow.core.errors import ShapeError
from lenetflow.core.kernels import EDGE_DETECT


def test_convolve_matches_hand_computed_values():
    matrix = [[1, 2, 3], [4, 5, 6], [7, 8, 9]]
    kernel = [[1, 0], [0, -1]]
    out = ops.convolve(matrix, kernel)
    np.testing.assert_allclose(out, np.full((2, 2), -4.0))


def test_convolve_with_stride_and_padding():
    out = ops.convolve(np.ones((5, 5)), np.ones((3, 3)), stride=2, padding=1)
    expected = np.array([[4.0, 6.0, 4.0], [6.0, 9.0, 6.0], [4.0, 6.0, 4.0]])
    np.testing.assert_allclose(out, expected)


@pytest.mark.parametrize("size", [3, 5, 8])
@pytest.mark.parametrize("kernel", [1, 2, 3])
@pytest.mark.parametrize("stride", [1, 2, 3])
@pytest.mark.parametrize("padding", [0, 1, 2])
def test_convolve_output_shape(size, kernel, stride, padding):
    out = ops.convolve(np.zeros((size, size)), np.ones((kernel, kernel)), stride, padding)
    expected = (size + 2 * padding - kernel) // stride + 1
    assert out.shape == (expected, expected)


def test_convolve_rejects_oversized_kernel():
    with pytest.raises(ShapeError):
        ops.convolve(np.zeros((2, 2)), np.ones((3, 3)))


def test_convolve_rejects_zero_stride():
    with pytest.raises(ValueError):
        ops.convolve(np.zeros((4, 4)), np.ones((3, 3)), stride=0)


def test_convolve_does_not_mutate_inputs():
    matrix = np.arange(16, dtype=float).reshape(4, 4)
    before = matrix.copy()
    ops.convolve(matrix, EDGE_DETECT, padding=1)
    np.testing.assert_array_equal(matrix, before)


def test_edge_detect_peaks_on_isolated_pixel():
    grid = np.zeros((5, 5))
    grid[2, 2] = 1.0
    out = ops.normalize(ops.convolve(grid, EDGE_DETECT))
    assert out.shape == (3, 3)
    assert out[1, 1] == 1.0
    assert np.count_nonzero(out) == 1


def test_edge_detect_on_plus_sign_peaks_at_centre():
    grid = np.zeros((5, 5))
    grid[2, :] = 1.0
    grid[:, 2] = 1.0
    out = ops.normalize(ops.convolve(grid, EDGE_DETECT, 1, 0))
    assert out.shape == (3, 3)
    assert out[1, 1] == out.max() == 1.0
    assert out[0, 0] == 0.0


def test_pad_surrounds_with_zeros():
    matrix = np.arange(1, 7, dtype=float).reshape(2, 3)
    padded = ops.pad(matrix, 2)
    assert padded.shape == (6, 7)
    np.testing.assert_array_equal(padded[2:-2, 2:-2], matrix)
    assert padded.sum() == matrix.sum()


def test_pad_zero_returns_copy():
    matrix = np.ones((2, 2))
    padded = ops.pad(matrix, 0)
    padded[0, 0] = 5.0
    assert matrix[0, 0] == 1.0


def test_pad_rejects_negative():
    with pytest.raises(ValueError):
        ops.pad(np.ones((2, 2)), -1)


def test_max_pool_takes_window_maximum():
    matrix = np.arange(16, dtype=float).reshape(4, 4)
    np.testing.assert_array_equal(ops.max_pool(matrix), [[5.0, 7.0], [13.0, 15.0]])


def test_max_pool_odd_input_drops_trailing_row():
    matrix = np.arange(25, dtype=float).reshape(5, 5)
    out = ops.max_pool(matrix, 2, 2)
    assert out.shape == (2, 2)
    assert out[1, 1] == 18.0


def test_normalize_maps_to_unit_interval():
    rng = np.random.default_rng(3)
    out = ops.normalize(rng.normal(size=(6, 6)) * 40)
    assert out.min() == 0.0
    assert out.max() == 1.0


def test_normalize_constant_matrix_is_zero():
    np.testing.assert_array_equal(ops.normalize(np.full((3, 3), 7.0)), np.zeros((3, 3)))


def test_activation_functions():
    matrix = np.array([[-1.0, 0.0], [0.5, 2.0]])
    np.testing.assert_array_equal(ops.activation(matrix, "relu"), [[0.0, 0.0], [0.5, 2.0]])
    np.testing.assert_allclose(ops.activation(matrix, "tanh"), np.tanh(matrix))
    with pytest.raises(ValueError, match="Available activations"):
        ops.activation(matrix, "sigmoid")


def test_flatten_orders_maps_then_rows():
    tensor = [[[1, 2], [3, 4]], [[5, 6], [7, 8]]]
    np.testing.assert_array_equal(ops.flatten(tensor), np.arange(1, 9, dtype=float))


def test_flatten_rejects_ragged_maps():
    with pytest.raises(ShapeError):
        ops.flatten([np.zeros((2, 2)), np.zeros((3, 3))])


def test_flatten_positions_are_row_major():
    positions = ops.flatten_positions(2, 3)
    assert positions[:4] == [(0, 0, 0), (1, 0, 1), (2, 0, 2), (3, 1, 0)]
    assert len(positions) == 6


def test_as_matrix_rejects_bad_input():
    with pytest.raises(ShapeError):
        ops.as_matrix([1.0, 2.0])
    with pytest.raises(ShapeError):
        ops.as_matrix(np.zeros((0, 3)))


def test_create_matrix_fills_value():
    np.testing.assert_array_equal(ops.create_matrix(2, 3, 1.5), np.full((2, 3), 1.5))
