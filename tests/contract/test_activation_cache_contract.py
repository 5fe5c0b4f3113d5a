import numpy as np
import pytest

from lenetflow.core.errors import ConfigurationError, InputError, LayerNotFound
from lenetflow.core.kernels import BANKS, KernelBankRegistry
from lenetflow.core.sources import RandomDenseGenerator, SequenceSource
from lenetflow.engine import ActivationCacheBuilder
from lenetflow.graph import ConvLayer, InputLayer, LayerGraph, lenet5
from lenetflow.inputs import cross


def _builder(input_size=28, values=(0.2, 0.4, 0.6)):
    dense = RandomDenseGenerator(SequenceSource(list(values)))
    return ActivationCacheBuilder(
        lenet5(input_size), BANKS.get("lenet"), dense, input_size=input_size
    )


def test_cache_has_every_layer_with_expected_shapes():
    cache = _builder().build(cross(28))
    assert list(cache) == list(lenet5().ids)
    assert cache["input"].shape == (1, 28, 28)
    assert cache["conv1"].shape == (6, 26, 26)
    assert cache["pool1"].shape == (6, 13, 13)
    assert cache["conv2"].shape == (16, 11, 11)
    assert cache["pool2"].shape == (16, 5, 5)
    assert cache["flatten"].length == 400
    assert cache["flatten"].tensor is None and cache["flatten"].vector is None
    assert cache["fc1"].shape == (120,)
    assert cache["fc2"].shape == (84,)
    assert cache.vector("output").sum() == pytest.approx(1.0)


def test_planned_shapes_match_built_cache():
    builder = _builder()
    cache = builder.build(cross(28))
    for layer_id, shape in builder.shapes.items():
        assert cache[layer_id].shape == shape


@pytest.mark.parametrize("size", [12, 20, 64])
def test_other_input_sizes(size):
    cache = _builder(size).build(cross(size))
    assert cache["output"].length == 10
    assert cache["flatten"].length == cache["pool2"].tensor.size


def test_convolution_maps_are_normalised():
    cache = _builder().build(cross(28))
    for layer_id in ("conv1", "conv2"):
        maps = cache.tensor(layer_id)
        assert maps.min() >= 0.0
        assert maps.max() <= 1.0


def test_conv1_uses_the_bank_kernels():
    from lenetflow.core.ops import convolve, normalize

    grid = cross(28)
    cache = _builder().build(grid)
    bank = BANKS.get("lenet")
    for k in range(6):
        expected = normalize(convolve(grid, bank.kernel_for(0, k)))
        np.testing.assert_allclose(cache.tensor("conv1")[k], expected)


def test_blank_input_gives_zero_feature_maps():
    cache = _builder().build(np.zeros((28, 28)))
    assert not cache.tensor("conv1").any()
    assert not cache.tensor("pool2").any()


def test_same_input_and_source_are_deterministic():
    a = _builder().build(cross(28))
    b = _builder().build(cross(28))
    for layer_id in a:
        left, right = a[layer_id], b[layer_id]
        if left.tensor is not None:
            np.testing.assert_array_equal(left.tensor, right.tensor)
        if left.vector is not None:
            np.testing.assert_array_equal(left.vector, right.vector)
    assert a.prediction() == b.prediction()


def test_cached_arrays_are_read_only():
    cache = _builder().build(cross(28))
    with pytest.raises(ValueError):
        cache.tensor("conv1")[0, 0, 0] = 2.0
    with pytest.raises(ValueError):
        cache.vector("fc1")[0] = 2.0


def test_input_is_copied():
    grid = cross(28)
    cache = _builder().build(grid)
    grid[0, 0] = 1.0
    assert cache.input[0, 0] == 0.0


def test_lookup_errors():
    cache = _builder().build(cross(28))
    with pytest.raises(LayerNotFound):
        cache["conv3"]
    with pytest.raises(TypeError):
        cache.vector("conv1")
    with pytest.raises(TypeError):
        cache.tensor("fc1")


@pytest.mark.parametrize(
    "grid",
    [
        np.zeros((28, 27)),
        np.zeros((20, 20)),
        np.full((28, 28), 1.5),
        np.full((28, 28), np.nan),
        np.zeros(28),
    ],
)
def test_malformed_input_rejected(grid):
    with pytest.raises(InputError):
        _builder().build(grid)


def test_kernel_size_mismatch_rejected():
    graph = LayerGraph([InputLayer("in", "In"), ConvLayer("c", "C", kernel_size=5)])
    with pytest.raises(ConfigurationError, match="kernel_size=5"):
        ActivationCacheBuilder(graph, BANKS.get("sobel"))


def test_graph_too_deep_for_input_rejected():
    with pytest.raises(ConfigurationError):
        ActivationCacheBuilder(lenet5(28), BANKS.get("lenet"), input_size=8)


def test_custom_bank_applies_to_second_stage():
    registry = KernelBankRegistry()
    bank = registry.register("flat", [("blur",), ("sobel_y",)])
    builder = ActivationCacheBuilder(lenet5(28), bank, input_size=28)
    cache = builder.build(cross(28))
    assert cache["conv2"].maps == 16
    np.testing.assert_allclose(cache.tensor("conv2")[0], cache.tensor("conv2")[1])


def test_conv2_reads_pooled_maps_round_robin():
    from lenetflow.core.ops import convolve, normalize

    grid = cross(28)
    cache = _builder().build(grid)
    bank = BANKS.get("lenet")
    pooled = cache.tensor("pool1")
    for k in range(16):
        expected = normalize(convolve(pooled[k % 6], bank.kernel_for(1, k)))
        np.testing.assert_allclose(cache.tensor("conv2")[k], expected)


def test_layer_without_predecessor_rejected():
    builder = _builder()
    with pytest.raises(ConfigurationError, match="no predecessor"):
        builder._compute(builder.graph.get("conv1"), cross(28), None)
