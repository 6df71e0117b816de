import dataclasses
import math
import operator
import typing
from enum import Enum

import numpy as np

from .errors import MalformedInput
from .init import LogLevel, is_log_enabled, log_verbose
from .mip import MipSelection, select_level
from .sampler import FilterMode, FilterResult, SamplerConfig, TexelTap, sample_level
from .texture import Texture, TextureDimension

class SampleBuiltin(Enum):
    TEXTURE_SAMPLE = "textureSample"
    TEXTURE_SAMPLE_BIAS = "textureSampleBias"
    TEXTURE_SAMPLE_GRAD = "textureSampleGrad"
    TEXTURE_SAMPLE_LEVEL = "textureSampleLevel"
    TEXTURE_SAMPLE_BASE_CLAMP_TO_EDGE = "textureSampleBaseClampToEdge"
    TEXTURE_LOAD = "textureLoad"

    @property
    def uses_derivatives(self) -> bool:
        return self in _DERIVATIVE_BUILTINS

_DERIVATIVE_BUILTINS = {
    SampleBuiltin.TEXTURE_SAMPLE,
    SampleBuiltin.TEXTURE_SAMPLE_BIAS,
    SampleBuiltin.TEXTURE_SAMPLE_GRAD,
}

OFFSET_MIN = -8
OFFSET_MAX = 7

def _int_tuple(values: typing.Optional[typing.Sequence[int]], field_name: str) -> typing.Optional[typing.Tuple[int, ...]]:
    if values is None:
        return None

    try:
        return tuple(operator.index(value) for value in values)
    except TypeError:
        raise MalformedInput(f"{field_name} must be integers, got {tuple(values)}!")

def _float_tuple(values: typing.Optional[typing.Sequence[float]]) -> typing.Optional[typing.Tuple[float, ...]]:
    if values is None:
        return None

    return tuple(float(value) for value in values)

@dataclasses.dataclass(frozen=True)
class SampleRequest:
    """
    One call of a texture builtin.

    Normalized float coordinates (`coords`) and integer texel coordinates
    (`texel_coords`, textureLoad only) are separate fields and are never
    converted into each other.

    Attributes:
        builtin (`SampleBuiltin`): The called builtin.
        coords (`Optional[Tuple[float, ...]]`): Normalized coordinates (2 for 2d and 2d-array, 3 for 3d).
        texel_coords (`Optional[Tuple[int, ...]]`): Integer texel coordinates of textureLoad.
        array_index (`Optional[int]`): The layer of 2d-array textures.
        mip_level (`Optional[float]`): The explicit level of textureSampleLevel and textureLoad.
        derivatives (`Optional[Tuple]`): The (ddx, ddy) derivatives of the derivative based builtins.
        bias (`Optional[float]`): The LOD bias of textureSampleBias.
        offset (`Optional[Tuple[int, ...]]`): An integer texel offset, every component in [-8, 7].
    """
    builtin: SampleBuiltin = SampleBuiltin.TEXTURE_SAMPLE_LEVEL
    coords: typing.Optional[typing.Tuple[float, ...]] = None
    texel_coords: typing.Optional[typing.Tuple[int, ...]] = None
    array_index: typing.Optional[int] = None
    mip_level: typing.Optional[float] = None
    derivatives: typing.Optional[typing.Tuple[typing.Tuple[float, ...], typing.Tuple[float, ...]]] = None
    bias: typing.Optional[float] = None
    offset: typing.Optional[typing.Tuple[int, ...]] = None

    def __post_init__(self) -> None:
        try:
            object.__setattr__(self, "builtin", SampleBuiltin(self.builtin))
        except ValueError:
            raise MalformedInput(f"Unknown builtin '{self.builtin}'!")

        object.__setattr__(self, "coords", _float_tuple(self.coords))
        object.__setattr__(self, "texel_coords", _int_tuple(self.texel_coords, "Texel coordinates"))
        object.__setattr__(self, "offset", _int_tuple(self.offset, "Offsets"))

        if self.array_index is not None:
            object.__setattr__(self, "array_index", _int_tuple((self.array_index,), "Array index")[0])

        if self.derivatives is not None:
            if len(self.derivatives) != 2:
                raise MalformedInput("Derivatives must be a (ddx, ddy) pair!")

            object.__setattr__(self, "derivatives", tuple(_float_tuple(d) for d in self.derivatives))

    def with_coords(self, coords: typing.Sequence[float]) -> "SampleRequest":
        return dataclasses.replace(self, coords=tuple(coords))

    def describe(self) -> str:
        result = f"{self.builtin.value}("

        if self.coords is not None:
            result += "coords=(" + ", ".join(f"{c:.6g}" for c in self.coords) + ")"
        else:
            result += f"texel_coords={self.texel_coords}"

        for field_name in ("array_index", "mip_level", "derivatives", "bias", "offset"):
            value = getattr(self, field_name)

            if value is not None:
                result += f", {field_name}={value}"

        return result + ")"

@dataclasses.dataclass(frozen=True, eq=False)
class SampleResult:
    """
    The expected value of one request before any tolerance is applied.

    Attributes:
        value (`np.ndarray`): The expected RGBA value.
        taps (`Tuple[TexelTap, ...]`): Every texel that contributed, with its final weight.
        selection (`Optional[MipSelection]`): The selected levels, None for textureLoad.
    """
    value: np.ndarray
    taps: typing.Tuple[TexelTap, ...]
    selection: typing.Optional[MipSelection]

def _all_finite(values: typing.Iterable[float]) -> bool:
    return all(math.isfinite(value) for value in values)

def validate_request(texture: Texture, request: SampleRequest) -> None:
    """
    Check that a request is structurally valid for a texture.

    Raises:
        MalformedInput: If the request can not be evaluated against the texture.
    """

    builtin = request.builtin
    count = texture.coordinate_count
    is_array = texture.dimension == TextureDimension.D2_ARRAY

    if is_array and request.array_index is None:
        raise MalformedInput(f"{builtin.value} on a 2d-array texture requires an array index!")

    if not is_array and request.array_index is not None:
        raise MalformedInput(f"Array indices are only valid for 2d-array textures, the texture is {texture.dimension.value}!")

    if builtin == SampleBuiltin.TEXTURE_LOAD:
        if request.texel_coords is None or len(request.texel_coords) != count:
            raise MalformedInput(f"textureLoad requires {count} integer texel coordinates!")

        if request.coords is not None or request.derivatives is not None or request.offset is not None:
            raise MalformedInput("textureLoad only takes integer texel coordinates and a level!")

        level = 0 if request.mip_level is None else request.mip_level

        if not math.isfinite(level) or float(level) != int(level) or not (0 <= int(level) < texture.mip_level_count):
            raise MalformedInput(f"textureLoad level {level} is not a valid level of {texture}!")

        extents = texture.level_size(int(level))[:count]

        if any(not (0 <= c < e) for c, e in zip(request.texel_coords, extents)):
            raise MalformedInput(f"textureLoad coordinates {request.texel_coords} are outside of the level extents {extents}!")

        if is_array and not (0 <= request.array_index < texture.array_layers):
            raise MalformedInput(f"textureLoad array index {request.array_index} is outside of [0, {texture.array_layers})!")

        return

    if request.texel_coords is not None:
        raise MalformedInput(f"{builtin.value} takes normalized coordinates, not texel coordinates!")

    if request.coords is None or len(request.coords) != count:
        raise MalformedInput(f"{builtin.value} on a {texture.dimension.value} texture requires {count} coordinates!")

    if not _all_finite(request.coords):
        raise MalformedInput(f"Coordinates must be finite, got {request.coords}!")

    if request.offset is not None:
        if len(request.offset) != count:
            raise MalformedInput(f"Offsets must have {count} components, got {request.offset}!")

        if any(not (OFFSET_MIN <= off <= OFFSET_MAX) for off in request.offset):
            raise MalformedInput(f"Offset components must be in [{OFFSET_MIN}, {OFFSET_MAX}], got {request.offset}!")

    if request.bias is not None and builtin != SampleBuiltin.TEXTURE_SAMPLE_BIAS:
        raise MalformedInput(f"Only textureSampleBias takes a bias, got one for {builtin.value}!")

    if builtin.uses_derivatives:
        if request.derivatives is None or any(len(d) != count for d in request.derivatives):
            raise MalformedInput(f"{builtin.value} requires a (ddx, ddy) pair of {count} component derivatives!")

        if not _all_finite(request.derivatives[0] + request.derivatives[1]):
            raise MalformedInput(f"Derivatives must be finite, got {request.derivatives}!")

        if request.mip_level is not None:
            raise MalformedInput(f"{builtin.value} does not take an explicit level!")

        if builtin == SampleBuiltin.TEXTURE_SAMPLE_BIAS and (request.bias is None or not math.isfinite(request.bias)):
            raise MalformedInput("textureSampleBias requires a finite bias!")

    elif builtin == SampleBuiltin.TEXTURE_SAMPLE_LEVEL:
        if request.mip_level is None or not math.isfinite(request.mip_level):
            raise MalformedInput("textureSampleLevel requires a finite explicit level!")

        if request.derivatives is not None:
            raise MalformedInput("textureSampleLevel does not take derivatives!")

    elif builtin == SampleBuiltin.TEXTURE_SAMPLE_BASE_CLAMP_TO_EDGE:
        if texture.dimension != TextureDimension.D2:
            raise MalformedInput(f"textureSampleBaseClampToEdge only samples 2d textures, got {texture.dimension.value}!")

        if request.mip_level is not None or request.derivatives is not None or request.offset is not None:
            raise MalformedInput("textureSampleBaseClampToEdge only takes coordinates!")

def _blend_levels(low: FilterResult, high: FilterResult, blend: float) -> typing.Tuple[np.ndarray, typing.Tuple[TexelTap, ...]]:
    value = (1.0 - blend) * low.value + blend * high.value
    taps = tuple(tap.scaled(1.0 - blend) for tap in low.taps) + tuple(tap.scaled(blend) for tap in high.taps)

    return value, taps

def _evaluate_base_clamp_to_edge(texture: Texture, sampler: SamplerConfig, request: SampleRequest) -> SampleResult:
    width, height, _ = texture.level_size(0)

    # Keep the filter footprint inside the texture.
    coords = (
        min(max(request.coords[0], 0.5 / width), 1.0 - 0.5 / width),
        min(max(request.coords[1], 0.5 / height), 1.0 - 0.5 / height),
    )

    selection = MipSelection(0, 0, 0.0, 0.0)
    result = sample_level(texture, 0, coords, sampler.clamped_to_edge(), selection.filter_mode(sampler))

    return SampleResult(result.value, result.taps, selection)

def evaluate(
    texture: Texture,
    sampler: SamplerConfig,
    request: SampleRequest,
    lod_offset: float = 0.0
) -> SampleResult:
    """
    Compute the expected value of one builtin call.

    Args:
        texture (`Texture`): The sampled texture.
        sampler (`SamplerConfig`): The sampler of the call, ignored by textureLoad.
        request (`SampleRequest`): The call to evaluate.
        lod_offset (`float`): Added to the computed LOD. The tolerance model
            uses it to try neighbouring LODs, callers normally leave it at 0.

    Returns:
        `SampleResult`: The expected RGBA value, its texels and the selected levels.

    Raises:
        MalformedInput: If the request is invalid for the texture.
    """

    validate_request(texture, request)

    builtin = request.builtin

    if builtin == SampleBuiltin.TEXTURE_LOAD:
        level = 0 if request.mip_level is None else int(request.mip_level)
        texel = tuple(request.texel_coords)

        if len(texel) == 2:
            texel = (*texel, request.array_index or 0)

        value = texture.read_rgba(level, *texel).astype(np.float64)

        return SampleResult(value, (TexelTap(level, texel, 1.0, value),), None)

    if not texture.format.value.filterable and FilterMode.LINEAR in (sampler.mag_filter, sampler.min_filter, sampler.mipmap_filter):
        raise MalformedInput(f"Format {texture.format} can only be sampled with a non-filtering sampler!")

    if builtin == SampleBuiltin.TEXTURE_SAMPLE_BASE_CLAMP_TO_EDGE:
        return _evaluate_base_clamp_to_edge(texture, sampler, request)

    if builtin.uses_derivatives:
        selection = select_level(
            texture,
            sampler,
            derivatives=request.derivatives,
            bias=request.bias or 0.0,
            lod_offset=lod_offset
        )
    else:
        selection = select_level(texture, sampler, explicit_level=request.mip_level, lod_offset=lod_offset)

    filter_mode = selection.filter_mode(sampler)

    low = sample_level(
        texture,
        selection.level_low,
        request.coords,
        sampler,
        filter_mode,
        request.array_index,
        request.offset
    )

    if not selection.blended:
        value, taps = low.value, low.taps
    else:
        high = sample_level(
            texture,
            selection.level_high,
            request.coords,
            sampler,
            filter_mode,
            request.array_index,
            request.offset
        )

        value, taps = _blend_levels(low, high, selection.blend)

    if is_log_enabled(LogLevel.VERBOSE):
        log_verbose(f"{request.describe()} -> levels {selection.level_low}/{selection.level_high} blend {selection.blend:.4f}: {value}")

    return SampleResult(value, taps, selection)
