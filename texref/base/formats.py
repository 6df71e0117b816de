import dataclasses
import typing
from enum import Enum

import numpy as np

from .errors import MalformedInput

class NumericKind(Enum):
    UNORM = "unorm"
    SNORM = "snorm"
    FLOAT = "float"
    UINT = "uint"
    SINT = "sint"

@dataclasses.dataclass(frozen=True)
class FormatInfo:
    """
    Describes how one texel of a format is stored.

    Attributes:
        name (`str`): The WebGPU name of the format.
        components (`int`): The number of stored components.
        bits (`int`): The number of bits of every component.
        kind (`NumericKind`): The numeric representation of the components.
        srgb (`bool`): Whether the RGB components are sRGB encoded.
        bgra (`bool`): Whether red and blue are stored swapped.
    """
    name: str
    components: int
    bits: int
    kind: NumericKind
    srgb: bool = False
    bgra: bool = False

    @property
    def bytes_per_texel(self) -> int:
        return self.components * self.bits // 8

    @property
    def storage_dtype(self) -> np.dtype:
        if self.kind == NumericKind.FLOAT:
            return np.dtype(f"<f{self.bits // 8}")

        if self.kind in (NumericKind.UNORM, NumericKind.UINT):
            return np.dtype(f"<u{self.bits // 8}")

        return np.dtype(f"<i{self.bits // 8}")

    @property
    def is_integer(self) -> bool:
        return self.kind in (NumericKind.UINT, NumericKind.SINT)

    @property
    def filterable(self) -> bool:
        return not self.is_integer

    @property
    def normalized_max(self) -> int:
        if self.kind == NumericKind.UNORM:
            return 2 ** self.bits - 1

        if self.kind == NumericKind.SNORM:
            return 2 ** (self.bits - 1) - 1

        raise ValueError(f"Format {self.name} is not a normalized format!")

_UN = NumericKind.UNORM
_SN = NumericKind.SNORM
_FL = NumericKind.FLOAT
_UI = NumericKind.UINT
_SI = NumericKind.SINT

class TexelFormat(Enum):
    R8UNORM = FormatInfo("r8unorm", 1, 8, _UN)
    R8SNORM = FormatInfo("r8snorm", 1, 8, _SN)
    R8UINT = FormatInfo("r8uint", 1, 8, _UI)
    R8SINT = FormatInfo("r8sint", 1, 8, _SI)
    RG8UNORM = FormatInfo("rg8unorm", 2, 8, _UN)
    RG8SNORM = FormatInfo("rg8snorm", 2, 8, _SN)
    RG8UINT = FormatInfo("rg8uint", 2, 8, _UI)
    RG8SINT = FormatInfo("rg8sint", 2, 8, _SI)
    RGBA8UNORM = FormatInfo("rgba8unorm", 4, 8, _UN)
    RGBA8UNORM_SRGB = FormatInfo("rgba8unorm-srgb", 4, 8, _UN, srgb=True)
    RGBA8SNORM = FormatInfo("rgba8snorm", 4, 8, _SN)
    RGBA8UINT = FormatInfo("rgba8uint", 4, 8, _UI)
    RGBA8SINT = FormatInfo("rgba8sint", 4, 8, _SI)
    BGRA8UNORM = FormatInfo("bgra8unorm", 4, 8, _UN, bgra=True)
    BGRA8UNORM_SRGB = FormatInfo("bgra8unorm-srgb", 4, 8, _UN, srgb=True, bgra=True)
    R16UINT = FormatInfo("r16uint", 1, 16, _UI)
    R16SINT = FormatInfo("r16sint", 1, 16, _SI)
    R16FLOAT = FormatInfo("r16float", 1, 16, _FL)
    RG16UINT = FormatInfo("rg16uint", 2, 16, _UI)
    RG16SINT = FormatInfo("rg16sint", 2, 16, _SI)
    RG16FLOAT = FormatInfo("rg16float", 2, 16, _FL)
    RGBA16UINT = FormatInfo("rgba16uint", 4, 16, _UI)
    RGBA16SINT = FormatInfo("rgba16sint", 4, 16, _SI)
    RGBA16FLOAT = FormatInfo("rgba16float", 4, 16, _FL)
    R32UINT = FormatInfo("r32uint", 1, 32, _UI)
    R32SINT = FormatInfo("r32sint", 1, 32, _SI)
    R32FLOAT = FormatInfo("r32float", 1, 32, _FL)
    RG32UINT = FormatInfo("rg32uint", 2, 32, _UI)
    RG32SINT = FormatInfo("rg32sint", 2, 32, _SI)
    RG32FLOAT = FormatInfo("rg32float", 2, 32, _FL)
    RGBA32UINT = FormatInfo("rgba32uint", 4, 32, _UI)
    RGBA32SINT = FormatInfo("rgba32sint", 4, 32, _SI)
    RGBA32FLOAT = FormatInfo("rgba32float", 4, 32, _FL)

    @property
    def info(self) -> FormatInfo:
        return self.value

    @classmethod
    def from_name(cls, name: str) -> "TexelFormat":
        for member in cls:
            if member.value.name == name:
                return member

        raise MalformedInput(f"Unsupported texel format '{name}'!")

    def __str__(self) -> str:
        return self.value.name

def srgb_to_linear(values: np.ndarray) -> np.ndarray:
    values = np.asarray(values, dtype=np.float64)
    return np.where(
        values <= 0.04045,
        values / 12.92,
        np.power((np.maximum(values, 0.04045) + 0.055) / 1.055, 2.4)
    )

def linear_to_srgb(values: np.ndarray) -> np.ndarray:
    values = np.asarray(values, dtype=np.float64)
    return np.where(
        values <= 0.0031308,
        values * 12.92,
        1.055 * np.power(np.maximum(values, 0.0031308), 1.0 / 2.4) - 0.055
    )

def _swizzle(fmt: FormatInfo, values: np.ndarray) -> np.ndarray:
    # BGRA <-> RGBA is its own inverse
    if not fmt.bgra:
        return values

    return values[..., [2, 1, 0, 3]]

def _round_half_away(values: np.ndarray) -> np.ndarray:
    return np.sign(values) * np.floor(np.abs(values) + 0.5)

def decode_texels(texel_format: TexelFormat, data: typing.Union[bytes, bytearray, memoryview], count: int) -> np.ndarray:
    """
    Decode `count` packed texels into their stored numeric values.

    Normalized formats decode to float64 in [0, 1] (unorm) or [-1, 1] (snorm),
    float formats are reinterpreted bit for bit, integer formats decode to int64.
    sRGB decoding is *not* applied here, see linearize().

    Args:
        texel_format (`TexelFormat`): The format the bytes are stored in.
        data (`bytes`): The packed, little-endian texel bytes.
        count (`int`): The number of texels in `data`.

    Returns:
        `np.ndarray`: An array of shape (count, components) in RGBA component order.
    """

    fmt = texel_format.value
    expected_size = count * fmt.bytes_per_texel

    if len(data) != expected_size:
        raise MalformedInput(f"Texel data for {fmt.name} must be {expected_size} bytes, got {len(data)}!")

    raw = np.frombuffer(bytes(data), dtype=fmt.storage_dtype).reshape(count, fmt.components)

    if fmt.kind == NumericKind.UNORM:
        values = raw.astype(np.float64) / fmt.normalized_max
    elif fmt.kind == NumericKind.SNORM:
        values = np.maximum(raw.astype(np.float64) / fmt.normalized_max, -1.0)
    elif fmt.kind == NumericKind.FLOAT:
        values = raw.astype(np.float64)
    else:
        values = raw.astype(np.int64)

    return _swizzle(fmt, values)

def encode_texels(texel_format: TexelFormat, values: np.ndarray) -> bytes:
    """
    Encode stored numeric values (the inverse of decode_texels) into packed bytes.

    Normalized values are clamped to their representable range and rounded to
    the nearest grid point. Integer values are clamped to the storage type.

    Args:
        texel_format (`TexelFormat`): The format to encode to.
        values (`np.ndarray`): An array whose last axis has one entry per component.

    Returns:
        `bytes`: The packed, little-endian texel bytes.
    """

    fmt = texel_format.value
    values = np.asarray(values)

    if values.shape[-1] != fmt.components:
        raise MalformedInput(f"Format {fmt.name} has {fmt.components} components, got values of shape {values.shape}!")

    values = _swizzle(fmt, values.reshape(-1, fmt.components))

    if fmt.kind == NumericKind.UNORM:
        stored = _round_half_away(np.clip(values.astype(np.float64), 0.0, 1.0) * fmt.normalized_max)
    elif fmt.kind == NumericKind.SNORM:
        stored = _round_half_away(np.clip(values.astype(np.float64), -1.0, 1.0) * fmt.normalized_max)
    elif fmt.kind == NumericKind.FLOAT:
        stored = values.astype(np.float64)
    else:
        limits = np.iinfo(fmt.storage_dtype)
        stored = np.clip(values.astype(np.int64), limits.min, limits.max)

    return np.ascontiguousarray(stored.astype(fmt.storage_dtype)).tobytes()

def linearize(texel_format: TexelFormat, values: np.ndarray) -> np.ndarray:
    """
    Apply the sRGB-to-linear transfer curve to the RGB components of sRGB
    formats. Alpha and every other format pass through untouched.
    """

    if not texel_format.value.srgb:
        return values

    result = np.array(values, dtype=np.float64)
    result[..., :3] = srgb_to_linear(result[..., :3])
    return result

def expand_to_rgba(values: np.ndarray) -> np.ndarray:
    """
    Expand texel values to four components the way sampling builtins return
    them: missing green and blue read 0, missing alpha reads 1.
    """

    values = np.asarray(values)
    components = values.shape[-1]

    if components == 4:
        return values

    result = np.zeros((*values.shape[:-1], 4), dtype=values.dtype)
    result[..., :components] = values
    result[..., 3] = 1

    return result

def quantization_half_step(texel_format: TexelFormat, values: np.ndarray) -> np.ndarray:
    """
    Half of the distance between adjacent representable values of the format,
    evaluated at `values` (RGBA, linear space for sRGB formats).

    Args:
        texel_format (`TexelFormat`): The format of the texture the values came from.
        values (`np.ndarray`): Logical RGBA values.

    Returns:
        `np.ndarray`: The half step for every component of `values`.
    """

    fmt = texel_format.value
    values = np.asarray(values, dtype=np.float64)

    if fmt.is_integer:
        return np.zeros_like(values)

    if fmt.kind == NumericKind.FLOAT:
        float_type = np.float16 if fmt.bits == 16 else np.float32
        magnitude = np.minimum(np.abs(values), np.finfo(float_type).max).astype(float_type)

        with np.errstate(over="ignore", invalid="ignore"):
            up = np.nextafter(magnitude, float_type(np.inf)) - magnitude
            down = magnitude - np.nextafter(magnitude, float_type(0))

        # The largest finite value has no finite upper neighbour.
        gap = np.where(np.isfinite(up), np.maximum(up, down), down)

        return gap.astype(np.float64) / 2

    half_step = np.full_like(values, 0.5 / fmt.normalized_max)

    if fmt.srgb:
        encoded = linear_to_srgb(np.clip(values[..., :3], 0.0, 1.0))
        step = half_step[..., :3]

        upper = srgb_to_linear(np.minimum(encoded + step, 1.0)) - srgb_to_linear(encoded)
        lower = srgb_to_linear(encoded) - srgb_to_linear(np.maximum(encoded - step, 0.0))

        half_step[..., :3] = np.maximum(upper, lower)

    return half_step
