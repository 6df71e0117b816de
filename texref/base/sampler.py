import dataclasses
import itertools
import math
import typing
from enum import Enum

import numpy as np

from .address import AddressMode, resolve_coords
from .errors import MalformedInput, check_in_range
from .texture import Texture, TextureDimension

class FilterMode(Enum):
    NEAREST = "nearest"
    LINEAR = "linear"

def _coerce_enum(enum_type: type, value: typing.Any, field_name: str) -> Enum:
    try:
        return enum_type(value)
    except ValueError:
        raise MalformedInput(f"Invalid {field_name} '{value}'! Must be one of {[member.value for member in enum_type]}")

@dataclasses.dataclass(frozen=True)
class SamplerConfig:
    """
    The immutable state of a sampler. Enum fields also accept their WebGPU names,
    so SamplerConfig(address_mode_u="repeat") works.

    Attributes:
        address_mode_u (`AddressMode`): Addressing along the width.
        address_mode_v (`AddressMode`): Addressing along the height.
        address_mode_w (`AddressMode`): Addressing along the depth of 3d textures.
        mag_filter (`FilterMode`): The filter used when the LOD is <= 0.
        min_filter (`FilterMode`): The filter used when the LOD is > 0.
        mipmap_filter (`FilterMode`): How mip levels are combined.
        lod_min_clamp (`float`): The lowest LOD the sampler will use.
        lod_max_clamp (`float`): The highest LOD the sampler will use.
    """
    address_mode_u: AddressMode = AddressMode.CLAMP_TO_EDGE
    address_mode_v: AddressMode = AddressMode.CLAMP_TO_EDGE
    address_mode_w: AddressMode = AddressMode.CLAMP_TO_EDGE
    mag_filter: FilterMode = FilterMode.NEAREST
    min_filter: FilterMode = FilterMode.NEAREST
    mipmap_filter: FilterMode = FilterMode.NEAREST
    lod_min_clamp: float = 0.0
    lod_max_clamp: float = 32.0

    def __post_init__(self) -> None:
        for field_name in ("address_mode_u", "address_mode_v", "address_mode_w"):
            object.__setattr__(self, field_name, _coerce_enum(AddressMode, getattr(self, field_name), field_name))

        for field_name in ("mag_filter", "min_filter", "mipmap_filter"):
            object.__setattr__(self, field_name, _coerce_enum(FilterMode, getattr(self, field_name), field_name))

        object.__setattr__(self, "lod_min_clamp", float(self.lod_min_clamp))
        object.__setattr__(self, "lod_max_clamp", float(self.lod_max_clamp))

        if not (0.0 <= self.lod_min_clamp <= self.lod_max_clamp):
            raise MalformedInput(
                f"Sampler LOD clamps must satisfy 0 <= lod_min_clamp <= lod_max_clamp, got [{self.lod_min_clamp}, {self.lod_max_clamp}]!"
            )

    @property
    def address_modes(self) -> typing.Tuple[AddressMode, AddressMode, AddressMode]:
        return (self.address_mode_u, self.address_mode_v, self.address_mode_w)

    def clamped_to_edge(self) -> "SamplerConfig":
        """A copy of this sampler with every address mode forced to clamp-to-edge."""

        return dataclasses.replace(
            self,
            address_mode_u=AddressMode.CLAMP_TO_EDGE,
            address_mode_v=AddressMode.CLAMP_TO_EDGE,
            address_mode_w=AddressMode.CLAMP_TO_EDGE
        )

@dataclasses.dataclass(frozen=True, eq=False)
class TexelTap:
    """
    One texel read while filtering.

    Attributes:
        level (`int`): The mip level the texel was read from.
        coords (`Tuple[int, int, int]`): The resolved x, y and depth/layer of the texel.
        weight (`float`): The weight of the texel in the final blend.
        value (`np.ndarray`): The RGBA value of the texel (linear space).
    """
    level: int
    coords: typing.Tuple[int, int, int]
    weight: float
    value: np.ndarray

    def scaled(self, factor: float) -> "TexelTap":
        return dataclasses.replace(self, weight=self.weight * factor)

    def __str__(self) -> str:
        return f"level {self.level} texel {self.coords} weight {self.weight:.6f} value {np.array2string(self.value, precision=6)}"

@dataclasses.dataclass(frozen=True, eq=False)
class FilterResult:
    value: np.ndarray
    taps: typing.Tuple[TexelTap, ...]

def texel_space(coord: float, extent: int) -> float:
    return coord * extent - 0.5

def round_half_away_from_zero(value: float) -> int:
    return int(math.copysign(math.floor(abs(value) + 0.5), value))

def linear_weights(fractions: typing.Sequence[float]) -> typing.List[typing.Tuple[typing.Tuple[int, ...], float]]:
    """
    The corners and weights of an n-linear blend.

    Args:
        fractions (`Sequence[float]`): The fractional texel position along every axis.

    Returns:
        `List[Tuple[Tuple[int, ...], float]]`: For each of the 2^n corners, the
            per-axis offset (0 or 1) from the base texel and its weight.
    """

    result = []

    for corner in itertools.product((0, 1), repeat=len(fractions)):
        weight = 1.0

        for offset, fraction in zip(corner, fractions):
            weight *= fraction if offset == 1 else 1.0 - fraction

        result.append((corner, weight))

    return result

def _filter_extents(texture: Texture, level: int) -> typing.Tuple[int, ...]:
    width, height, depth = texture.level_size(level)

    if texture.dimension == TextureDimension.D3:
        return (width, height, depth)

    return (width, height)

def sample_level(
    texture: Texture,
    level: int,
    coords: typing.Sequence[float],
    sampler: SamplerConfig,
    filter_mode: FilterMode,
    array_index: typing.Optional[int] = None,
    offset: typing.Optional[typing.Sequence[int]] = None
) -> FilterResult:
    """
    Filter a single mip level at a normalized coordinate.

    Args:
        texture (`Texture`): The sampled texture.
        level (`int`): The mip level to filter.
        coords (`Sequence[float]`): Normalized coordinates, 2 for 2d and 2d-array
            textures, 3 for 3d textures.
        sampler (`SamplerConfig`): Supplies the address modes.
        filter_mode (`FilterMode`): Nearest or linear filtering.
        array_index (`Optional[int]`): The layer of 2d-array textures, clamped to the layer count.
        offset (`Optional[Sequence[int]]`): An integer texel offset added before addressing.

    Returns:
        `FilterResult`: The blended RGBA value and the taps it was blended from.
    """

    check_in_range("Mip level", level, texture.mip_level_count)

    extents = _filter_extents(texture, level)

    assert len(coords) == len(extents), f"Expected {len(extents)} coordinates, got {len(coords)}!"

    if offset is None:
        offset = (0,) * len(extents)

    layer = 0

    if texture.dimension == TextureDimension.D2_ARRAY:
        layer = min(max(int(array_index or 0), 0), texture.array_layers - 1)

    positions = [texel_space(float(coord), extent) + off for coord, extent, off in zip(coords, extents, offset)]

    if filter_mode == FilterMode.NEAREST:
        texel = resolve_coords(sampler.address_modes, [round_half_away_from_zero(p) for p in positions], extents)
        texel_coords = _to_xyz(texel, layer)

        value = texture.read_rgba(level, *texel_coords).astype(np.float64)

        return FilterResult(value, (TexelTap(level, texel_coords, 1.0, value),))

    if not texture.format.value.filterable:
        raise MalformedInput(f"Format {texture.format} can not be filtered linearly!")

    bases = [math.floor(p) for p in positions]
    fractions = [p - base for p, base in zip(positions, bases)]

    value = np.zeros(4, dtype=np.float64)
    taps = []

    for corner, weight in linear_weights(fractions):
        texel = resolve_coords(sampler.address_modes, [base + off for base, off in zip(bases, corner)], extents)
        texel_coords = _to_xyz(texel, layer)

        texel_value = texture.read_rgba(level, *texel_coords).astype(np.float64)

        value += weight * texel_value
        taps.append(TexelTap(level, texel_coords, weight, texel_value))

    return FilterResult(value, tuple(taps))

def _to_xyz(texel: typing.Tuple[int, ...], layer: int) -> typing.Tuple[int, int, int]:
    if len(texel) == 3:
        return texel

    return (texel[0], texel[1], layer)
