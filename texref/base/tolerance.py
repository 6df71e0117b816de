import dataclasses
import itertools
import typing

import numpy as np

from .evaluator import SampleBuiltin, SampleRequest, SampleResult, evaluate
from .formats import quantization_half_step
from .sampler import SamplerConfig
from .texture import Texture

@dataclasses.dataclass(frozen=True)
class ToleranceConfig:
    """
    The implementation-defined allowances of the tolerance model. The defaults
    are starting points meant to be tuned against observed hardware.

    Attributes:
        subtexel_precision_bits (`int`): Fractional bits of the filter weights.
        mipmap_precision_bits (`int`): Fractional bits of the weight between two mip levels.
        coordinate_epsilon (`float`): How far, in texels, a coordinate is nudged
            to find the texels an implementation may legitimately pick instead.
        lod_epsilon (`float`): How far a derivative based LOD is nudged.
        absolute_epsilon (`float`): Absolute allowance for floating point accumulation.
        relative_epsilon (`float`): Relative allowance for floating point accumulation.
    """
    subtexel_precision_bits: int = 8
    mipmap_precision_bits: int = 8
    coordinate_epsilon: float = 2 ** -10
    lod_epsilon: float = 2 ** -6
    absolute_epsilon: float = 2 ** -20
    relative_epsilon: float = 2 ** -16

@dataclasses.dataclass(frozen=True, eq=False)
class ExpectedRange:
    """
    The per-component interval a conforming result must fall in.

    Attributes:
        min (`np.ndarray`): The lowest acceptable RGBA value.
        max (`np.ndarray`): The highest acceptable RGBA value.
        expected (`np.ndarray`): The point expectation the range was built around.
    """
    min: np.ndarray
    max: np.ndarray
    expected: np.ndarray

    def contains(self, actual: typing.Sequence[float]) -> np.ndarray:
        actual = np.asarray(actual, dtype=np.float64)
        return (actual >= self.min) & (actual <= self.max)

    def __str__(self) -> str:
        return ", ".join(f"[{lo:.6g}, {hi:.6g}]" for lo, hi in zip(self.min, self.max))

def _level_values(result: SampleResult) -> typing.Dict[int, np.ndarray]:
    weights: typing.Dict[int, float] = {}
    sums: typing.Dict[int, np.ndarray] = {}

    for tap in result.taps:
        weights[tap.level] = weights.get(tap.level, 0.0) + tap.weight
        sums[tap.level] = sums.get(tap.level, 0.0) + tap.weight * tap.value

    return {level: sums[level] / weights[level] for level in sums if weights[level] > 0.0}

def _widening(result: SampleResult, texture: Texture, config: ToleranceConfig) -> np.ndarray:
    if texture.format.value.is_integer:
        return np.zeros(4)

    widen = config.absolute_epsilon + config.relative_epsilon * np.abs(result.value)

    contributing = [tap for tap in result.taps if tap.weight > 0.0]

    if len(contributing) <= 1:
        return widen

    widen = widen + quantization_half_step(texture.format, result.value)

    for level in sorted({tap.level for tap in contributing}):
        level_values = np.array([tap.value for tap in contributing if tap.level == level])

        if len(level_values) > 1:
            spread = level_values.max(axis=0) - level_values.min(axis=0)
            widen = widen + spread * texture.coordinate_count * 2.0 ** -config.subtexel_precision_bits

    if result.selection is not None and result.selection.blended:
        level_values = _level_values(result)

        if len(level_values) == 2:
            low, high = level_values.values()
            widen = widen + np.abs(low - high) * 2.0 ** -config.mipmap_precision_bits

    return widen

def _lod_offsets(request: SampleRequest, config: ToleranceConfig) -> typing.List[float]:
    if request.builtin.uses_derivatives:
        return [0.0, -config.lod_epsilon, config.lod_epsilon]

    if request.builtin == SampleBuiltin.TEXTURE_SAMPLE_LEVEL:
        # Integer levels select exactly one level.
        if float(request.mip_level).is_integer():
            return [0.0]

        step = 2.0 ** -config.mipmap_precision_bits
        return [0.0, -step, step]

    return [0.0]

def alternative_results(
    result: SampleResult,
    texture: Texture,
    sampler: SamplerConfig,
    request: SampleRequest,
    config: ToleranceConfig
) -> typing.List[SampleResult]:
    """
    Re-evaluate a request with its coordinates nudged by the coordinate epsilon
    along every axis and its LOD nudged by the LOD epsilon. The results are what
    a correct implementation could produce at a rounding boundary or address
    mode discontinuity, e.g. either of the two texels at a nearest filter tie.
    """

    if request.builtin == SampleBuiltin.TEXTURE_LOAD:
        return []

    level = result.selection.level_low if result.selection is not None else 0
    extents = texture.level_size(level)[:texture.coordinate_count]

    deltas = [(-config.coordinate_epsilon / extent, 0.0, config.coordinate_epsilon / extent) for extent in extents]

    alternatives = []

    for lod_offset in _lod_offsets(request, config):
        for delta in itertools.product(*deltas):
            if lod_offset == 0.0 and not any(delta):
                continue

            nudged = request.with_coords([coord + d for coord, d in zip(request.coords, delta)])
            alternatives.append(evaluate(texture, sampler, nudged, lod_offset=lod_offset))

    return alternatives

def tolerance_for(
    result: SampleResult,
    texture: Texture,
    sampler: SamplerConfig,
    request: SampleRequest,
    config: typing.Optional[ToleranceConfig] = None
) -> ExpectedRange:
    """
    Widen the point expectation of a request into the range of values a
    conforming implementation may return.

    The range is the union, over the expectation and every alternative from
    alternative_results(), of the value widened by the format's quantization,
    the filter and mip weight rounding and the floating point epsilons.

    Args:
        result (`SampleResult`): The point expectation returned by evaluate().
        texture (`Texture`): The sampled texture.
        sampler (`SamplerConfig`): The sampler of the call.
        request (`SampleRequest`): The evaluated call.
        config (`Optional[ToleranceConfig]`): The allowances, defaults to ToleranceConfig().

    Returns:
        `ExpectedRange`: A non-empty range that contains result.value.
    """

    if config is None:
        config = ToleranceConfig()

    candidates = [result] + alternative_results(result, texture, sampler, request, config)

    lower = np.array(result.value, dtype=np.float64)
    upper = np.array(result.value, dtype=np.float64)

    for candidate in candidates:
        widen = _widening(candidate, texture, config)

        lower = np.minimum(lower, candidate.value - widen)
        upper = np.maximum(upper, candidate.value + widen)

    return ExpectedRange(lower, upper, np.array(result.value, dtype=np.float64))
