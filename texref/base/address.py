import operator
import typing
from enum import Enum

class AddressMode(Enum):
    CLAMP_TO_EDGE = "clamp-to-edge"
    REPEAT = "repeat"
    MIRROR_REPEAT = "mirror-repeat"

def resolve(address_mode: AddressMode, coord: int, extent: int) -> int:
    """
    Map an integer texel coordinate, possibly outside of the texture, to a
    texel index in [0, extent).

    Args:
        address_mode (`AddressMode`): The addressing rule of the axis.
        coord (`int`): The unresolved integer texel coordinate.
        extent (`int`): The number of texels along the axis.

    Returns:
        `int`: The resolved texel index.
    """

    coord = operator.index(coord)
    extent = operator.index(extent)

    assert extent >= 1, f"Extent must be at least 1, got {extent}!"

    if address_mode == AddressMode.CLAMP_TO_EDGE:
        return min(max(coord, 0), extent - 1)

    if address_mode == AddressMode.REPEAT:
        return coord % extent

    if address_mode == AddressMode.MIRROR_REPEAT:
        period_index = coord % (2 * extent)

        if period_index < extent:
            return period_index

        return 2 * extent - 1 - period_index

    raise ValueError(f"Unknown address mode {address_mode}!")

def resolve_coords(
    address_modes: typing.Sequence[AddressMode],
    coords: typing.Sequence[int],
    extents: typing.Sequence[int]
) -> typing.Tuple[int, ...]:
    """Resolve every axis of a coordinate independently."""

    assert len(address_modes) >= len(coords) and len(extents) >= len(coords), "Every axis needs an address mode and an extent!"

    return tuple(resolve(mode, coord, extent) for mode, coord, extent in zip(address_modes, coords, extents))
