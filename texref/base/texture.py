import operator
import typing
from enum import Enum

import numpy as np

from .errors import MalformedInput, check_in_range
from .formats import TexelFormat, decode_texels, encode_texels, expand_to_rgba, linearize as linearize_values

class TextureDimension(Enum):
    D2 = "2d"
    D2_ARRAY = "2d-array"
    D3 = "3d"

def max_mip_level_count(size: typing.Tuple[int, int, int], dimension: TextureDimension = TextureDimension.D2) -> int:
    """
    The largest mip level count a texture of this size can have,
    floor(log2(max extent)) + 1. Array layers do not count.
    """

    largest = max(size[0], size[1])

    if dimension == TextureDimension.D3:
        largest = max(largest, size[2])

    return largest.bit_length()

def mip_level_size(size: typing.Tuple[int, int, int], level: int, dimension: TextureDimension = TextureDimension.D2) -> typing.Tuple[int, int, int]:
    """
    The (width, height, depthOrArrayLayers) of a mip level. Every extent is
    halved per level with a minimum of 1, except array layers which never shrink.
    """

    depth = size[2]

    if dimension == TextureDimension.D3:
        depth = max(1, depth >> level)

    return (max(1, size[0] >> level), max(1, size[1] >> level), depth)

def _normalize_size(size: typing.Sequence[int]) -> typing.Tuple[int, int, int]:
    if len(size) not in (2, 3):
        raise MalformedInput(f"Texture size must have 2 or 3 entries, got {tuple(size)}!")

    try:
        result = tuple(operator.index(extent) for extent in size)
    except TypeError:
        raise MalformedInput(f"Texture size must be integers, got {tuple(size)}!")

    if len(result) == 2:
        result = (*result, 1)

    if any(extent < 1 for extent in result):
        raise MalformedInput(f"Texture extents must be at least 1, got {result}!")

    return result

class Texture:
    """
    A read-only view over the texels of every mip level of a texture.

    Attributes:
        format (`TexelFormat`): The format the texels are stored in.
        dimension (`TextureDimension`): The dimension of the texture.
        size (`Tuple[int, int, int]`): Width, height and depth or array layer count of level 0.
        mip_level_count (`int`): The number of mip levels.
    """

    format: TexelFormat
    dimension: TextureDimension
    size: typing.Tuple[int, int, int]
    mip_level_count: int

    def __init__(
        self,
        texel_format: TexelFormat,
        size: typing.Sequence[int],
        levels: typing.Sequence[typing.Union[bytes, bytearray, memoryview]],
        dimension: TextureDimension = TextureDimension.D2
    ) -> None:
        if not isinstance(texel_format, TexelFormat):
            texel_format = TexelFormat.from_name(texel_format)

        self.format = texel_format
        self.dimension = TextureDimension(dimension)
        self.size = _normalize_size(size)
        self.mip_level_count = len(levels)

        if self.dimension == TextureDimension.D2 and self.size[2] != 1:
            raise MalformedInput(f"A 2d texture must have a depth of 1, got {self.size[2]}!")

        max_levels = max_mip_level_count(self.size, self.dimension)

        if self.mip_level_count < 1 or self.mip_level_count > max_levels:
            raise MalformedInput(
                f"A texture of size {self.size} must have between 1 and {max_levels} mip levels, got {self.mip_level_count}!"
            )

        components = self.format.value.components
        self._levels: typing.List[np.ndarray] = []

        for level, data in enumerate(levels):
            width, height, depth = self.level_size(level)

            values = decode_texels(self.format, data, width * height * depth).reshape(depth, height, width, components)

            if not self.format.value.is_integer and not np.isfinite(values).all():
                raise MalformedInput(f"Mip level {level} contains non-finite texels!")

            values.setflags(write=False)
            self._levels.append(values)

    @classmethod
    def from_texels(
        cls,
        texel_format: TexelFormat,
        levels: typing.Sequence[np.ndarray],
        dimension: TextureDimension = TextureDimension.D2
    ) -> "Texture":
        """
        Build a texture from per-level arrays of stored values (sRGB encoded for
        sRGB formats).

        Args:
            texel_format (`TexelFormat`): The format of the texture.
            levels (`Sequence[np.ndarray]`): One array per mip level, shaped
                (height, width, components) for 2d textures and
                (depthOrLayers, height, width, components) otherwise.
            dimension (`TextureDimension`): The dimension of the texture.

        Returns:
            `Texture`: The texture holding the encoded texels.
        """

        if not isinstance(texel_format, TexelFormat):
            texel_format = TexelFormat.from_name(texel_format)

        dimension = TextureDimension(dimension)

        if len(levels) == 0:
            raise MalformedInput("A texture needs at least one mip level!")

        base = np.asarray(levels[0])

        if dimension == TextureDimension.D2:
            if base.ndim != 3:
                raise MalformedInput(f"2d texel arrays must be shaped (height, width, components), got {base.shape}!")
            size = (base.shape[1], base.shape[0], 1)
        else:
            if base.ndim != 4:
                raise MalformedInput(f"{dimension.value} texel arrays must be shaped (depth, height, width, components), got {base.shape}!")
            size = (base.shape[2], base.shape[1], base.shape[0])

        return cls(texel_format, size, [encode_texels(texel_format, np.asarray(level)) for level in levels], dimension)

    @property
    def array_layers(self) -> int:
        return self.size[2] if self.dimension == TextureDimension.D2_ARRAY else 1

    @property
    def coordinate_count(self) -> int:
        return 3 if self.dimension == TextureDimension.D3 else 2

    def level_size(self, level: int) -> typing.Tuple[int, int, int]:
        return mip_level_size(self.size, level, self.dimension)

    def level_data(self, level: int) -> np.ndarray:
        """
        The decoded (not linearized) values of a mip level, shaped
        (depthOrLayers, height, width, components). The array is read-only.
        """

        check_in_range("Mip level", level, self.mip_level_count)
        return self._levels[level]

    def read_texel(self, level: int, x: int, y: int, z: int = 0, linearize: bool = True) -> np.ndarray:
        """
        Read one texel. The coordinates must already be resolved into the level.

        Args:
            level (`int`): The mip level.
            x (`int`): The resolved column.
            y (`int`): The resolved row.
            z (`int`): The resolved depth slice or array layer.
            linearize (`bool`): Whether to decode sRGB formats into linear space.

        Returns:
            `np.ndarray`: A writable copy of the logical components of the texel.

        Raises:
            OutOfRange: If the level or any coordinate is outside of the texture.
        """

        level, x, y, z = operator.index(level), operator.index(x), operator.index(y), operator.index(z)

        check_in_range("Mip level", level, self.mip_level_count)

        width, height, depth = self.level_size(level)

        check_in_range("Texel x coordinate", x, width)
        check_in_range("Texel y coordinate", y, height)
        check_in_range("Texel z coordinate", z, depth)

        values = self._levels[level][z, y, x].copy()

        if linearize:
            return linearize_values(self.format, values)

        return values

    def read_rgba(self, level: int, x: int, y: int, z: int = 0, linearize: bool = True) -> np.ndarray:
        return expand_to_rgba(self.read_texel(level, x, y, z, linearize))

    def __repr__(self) -> str:
        return f"Texture(format={self.format}, dimension={self.dimension.value}, size={self.size}, mip_level_count={self.mip_level_count})"
