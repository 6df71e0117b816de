import dataclasses
import math
import typing

from .errors import MalformedInput
from .sampler import FilterMode, SamplerConfig
from .texture import Texture, TextureDimension

BIAS_MIN = -16.0
BIAS_MAX = 15.99

@dataclasses.dataclass(frozen=True)
class MipSelection:
    """
    The mip level(s) a sample reads from.

    Attributes:
        level_low (`int`): The first (or only) level.
        level_high (`int`): The second level, equal to level_low when only one level is in play.
        blend (`float`): The weight of level_high, 0 when only one level is in play.
        lod (`float`): The LOD after bias and the sampler's LOD clamps, before
            being clamped to the texture's levels. Decides between the mag and min filter.
    """
    level_low: int
    level_high: int
    blend: float
    lod: float

    @property
    def magnified(self) -> bool:
        return self.lod <= 0.0

    @property
    def blended(self) -> bool:
        return self.level_low != self.level_high

    def filter_mode(self, sampler: SamplerConfig) -> FilterMode:
        return sampler.mag_filter if self.magnified else sampler.min_filter

def compute_lod(
    derivatives: typing.Tuple[typing.Sequence[float], typing.Sequence[float]],
    extents: typing.Sequence[int]
) -> float:
    """
    The LOD implied by the screen-space derivatives of a normalized coordinate:
    log2 of the longer of the two derivative vectors, measured in level 0 texels.
    Zero derivatives give -inf.
    """

    ddx, ddy = derivatives

    rho_x = math.sqrt(sum((d * extent) ** 2 for d, extent in zip(ddx, extents)))
    rho_y = math.sqrt(sum((d * extent) ** 2 for d, extent in zip(ddy, extents)))

    rho = max(rho_x, rho_y)

    if rho == 0.0:
        return -math.inf

    return math.log2(rho)

def select_level(
    texture: Texture,
    sampler: SamplerConfig,
    explicit_level: typing.Optional[float] = None,
    derivatives: typing.Optional[typing.Tuple[typing.Sequence[float], typing.Sequence[float]]] = None,
    bias: float = 0.0,
    lod_offset: float = 0.0
) -> MipSelection:
    """
    Choose the mip level(s) to sample and how to blend them.

    Exactly one of `explicit_level` and `derivatives` must be given. An integer
    explicit level never blends, even with a linear mipmap filter. A fractional
    explicit level blends the two adjacent levels when the mipmap filter is linear.

    Args:
        texture (`Texture`): The sampled texture.
        sampler (`SamplerConfig`): Supplies the mipmap filter and the LOD clamps.
        explicit_level (`Optional[float]`): The level requested by the builtin.
        derivatives (`Optional[Tuple]`): The (ddx, ddy) derivatives of the normalized coordinate.
        bias (`float`): Added to a derivative based LOD, clamped to [-16, 15.99].
        lod_offset (`float`): Added to the LOD before clamping. Used to try
            neighbouring LODs when computing tolerances. For an explicit level
            it only moves the selected levels, the mag/min filter choice stays
            with the unshifted level.

    Returns:
        `MipSelection`: The selected level(s).
    """

    if (explicit_level is None) == (derivatives is None):
        raise MalformedInput("Exactly one of an explicit level and derivatives is required to select a mip level!")

    if derivatives is not None:
        width, height, depth = texture.size
        extents = (width, height, depth) if texture.dimension == TextureDimension.D3 else (width, height)

        lod = compute_lod(derivatives, extents) + min(max(float(bias), BIAS_MIN), BIAS_MAX)
    else:
        lod = float(explicit_level)

    shifted_lod = min(max(lod + lod_offset, sampler.lod_min_clamp), sampler.lod_max_clamp)

    # An explicit level is exact, lod_offset must not move it across the mag/min boundary.
    if derivatives is None:
        lod = min(max(lod, sampler.lod_min_clamp), sampler.lod_max_clamp)
    else:
        lod = shifted_lod

    max_level = texture.mip_level_count - 1
    level_lod = min(max(shifted_lod, 0.0), float(max_level))

    if sampler.mipmap_filter == FilterMode.NEAREST:
        level = min(max(math.ceil(level_lod + 0.5) - 1, 0), max_level)
        return MipSelection(level, level, 0.0, lod)

    level_low = math.floor(level_lod)
    blend = level_lod - level_low

    if blend == 0.0:
        return MipSelection(level_low, level_low, 0.0, lod)

    return MipSelection(level_low, min(level_low + 1, max_level), blend, lod)
