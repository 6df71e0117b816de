import dataclasses
import hashlib
import itertools
import math
import typing
from enum import Enum

import numpy as np

import texref as tr

class SamplePointMethod(Enum):
    TEXEL_CENTRE = "texel-centre"
    SPIRAL = "spiral"

TEXTURE_TYPES = ("texture_2d<f32>", "texture_external")

@dataclasses.dataclass(frozen=True, eq=False)
class SampleCase:
    """
    One enumerated test case: everything the reference model needs to verify a batch of calls.

    Attributes:
        texture (`tr.Texture`): The texture sampled by every call.
        sampler (`tr.SamplerConfig`): The sampler used by every call.
        requests (`Tuple[tr.SampleRequest, ...]`): The calls.
        params (`Dict[str, str]`): The enumerated parameters, for naming the case.
    """
    texture: tr.Texture
    sampler: tr.SamplerConfig
    requests: typing.Tuple[tr.SampleRequest, ...]
    params: typing.Dict[str, str]

    @property
    def name(self) -> str:
        return ";".join(f"{key}={value}" for key, value in self.params.items())

def hash_seed(*inputs: typing.Any) -> int:
    """A seed that only depends on the given inputs, so cases are reproducible."""

    digest = hashlib.sha256("|".join(str(value) for value in inputs).encode()).digest()
    return int.from_bytes(digest[:8], "little")

def generate_sample_points_2d(
    count: int,
    method: SamplePointMethod,
    size: typing.Sequence[int],
    hash_inputs: typing.Sequence[typing.Any] = (),
    seed: int = 0
) -> typing.List[typing.Tuple[float, float]]:
    """
    Generate normalized 2d sample points.

    texel-centre picks the centres of texels in [-1, 2) normalized space so every
    address mode is exercised. spiral walks outward from the centre of the
    texture, ending about one texture size outside of it.

    Args:
        count (`int`): The number of points.
        method (`SamplePointMethod`): How to place the points.
        size (`Sequence[int]`): The width and height of the sampled level.
        hash_inputs (`Sequence`): Values the points are seeded from.
        seed (`int`): An extra seed.

    Returns:
        `List[Tuple[float, float]]`: The normalized points.
    """

    method = SamplePointMethod(method)
    width, height = size[0], size[1]
    rng = np.random.default_rng(hash_seed(seed, method.value, *hash_inputs))

    if method == SamplePointMethod.TEXEL_CENTRE:
        xs = rng.integers(-width, 2 * width, count)
        ys = rng.integers(-height, 2 * height, count)

        return [((int(x) + 0.5) / width, (int(y) + 0.5) / height) for x, y in zip(xs, ys)]

    turns = 3.0 + rng.random()
    start_angle = rng.random() * 2 * math.pi

    points = []

    for ii in range(count):
        fraction = ii / max(count - 1, 1)
        angle = start_angle + fraction * turns * 2 * math.pi
        radius = 0.05 + fraction * 1.45

        points.append((0.5 + math.cos(angle) * radius, 0.5 + math.sin(angle) * radius))

    return points

def _random_level_values(rng: np.random.Generator, texel_format: tr.TexelFormat, shape: typing.Tuple[int, ...]) -> np.ndarray:
    fmt = texel_format.value

    if fmt.kind == tr.NumericKind.UNORM:
        return rng.integers(0, fmt.normalized_max + 1, shape) / fmt.normalized_max

    if fmt.kind == tr.NumericKind.SNORM:
        return rng.integers(-fmt.normalized_max, fmt.normalized_max + 1, shape) / fmt.normalized_max

    if fmt.kind == tr.NumericKind.FLOAT:
        return rng.uniform(-1.0, 1.0, shape)

    limits = np.iinfo(fmt.storage_dtype)

    return rng.integers(int(limits.min), int(limits.max), shape, endpoint=True, dtype=np.int64)

def make_random_texture(
    texel_format: tr.TexelFormat,
    size: typing.Sequence[int],
    mip_level_count: int = 1,
    seed: int = 0,
    dimension: tr.TextureDimension = tr.TextureDimension.D2
) -> tr.Texture:
    """
    Build a texture filled with reproducible random texels.

    Args:
        texel_format (`tr.TexelFormat`): The format of the texture.
        size (`Sequence[int]`): Width, height and optionally depth or layer count.
        mip_level_count (`int`): The number of mip levels to fill.
        seed (`int`): The seed of the texel values.
        dimension (`tr.TextureDimension`): The dimension of the texture.

    Returns:
        `tr.Texture`: The filled texture.
    """

    rng = np.random.default_rng(hash_seed(seed, texel_format, *size, mip_level_count))
    full_size = (*size, 1) if len(size) == 2 else tuple(size)
    components = texel_format.value.components

    levels = []

    for level in range(mip_level_count):
        width, height, depth = tr.mip_level_size(full_size, level, dimension)

        if dimension == tr.TextureDimension.D2:
            shape = (height, width, components)
        else:
            shape = (depth, height, width, components)

        levels.append(_random_level_values(rng, texel_format, shape))

    return tr.Texture.from_texels(texel_format, levels, dimension)

def _make_request(
    builtin: tr.SampleBuiltin,
    coords: typing.Tuple[float, float],
    rng: np.random.Generator,
    mip_level_count: int
) -> tr.SampleRequest:
    if builtin == tr.SampleBuiltin.TEXTURE_SAMPLE_LEVEL:
        return tr.SampleRequest(builtin, coords, mip_level=float(rng.uniform(0, mip_level_count - 1)))

    if builtin.uses_derivatives:
        scale = 2.0 ** rng.uniform(-6, 0)
        derivatives = ((scale, 0.0), (0.0, scale * rng.uniform(0.5, 1.0)))

        if builtin == tr.SampleBuiltin.TEXTURE_SAMPLE_BIAS:
            return tr.SampleRequest(builtin, coords, derivatives=derivatives, bias=float(rng.uniform(-2, 2)))

        return tr.SampleRequest(builtin, coords, derivatives=derivatives)

    return tr.SampleRequest(builtin, coords)

def enumerate_sample_cases(
    builtin: tr.SampleBuiltin,
    texel_format: tr.TexelFormat = tr.TexelFormat.RGBA8UNORM,
    size: typing.Tuple[int, int] = (8, 8),
    mip_level_count: int = 3,
    count: int = 50,
    seed: int = 0,
    methods: typing.Sequence[SamplePointMethod] = tuple(SamplePointMethod),
    address_modes: typing.Sequence[tr.AddressMode] = tuple(tr.AddressMode),
    filters: typing.Sequence[tr.FilterMode] = tuple(tr.FilterMode),
    extra_params: typing.Optional[typing.Dict[str, str]] = None
) -> typing.Iterator[SampleCase]:
    """
    Cross the sample point methods, U and V address modes and filter modes of a
    2d builtin into SampleCases. The filter mode is used for the mag, min and
    mipmap filters alike.
    """

    for method, mode_u, mode_v, filter_mode in itertools.product(methods, address_modes, address_modes, filters):
        params = dict(extra_params or {})
        params.update({
            "builtin": builtin.value,
            "format": str(texel_format),
            "samplePoints": method.value,
            "addressModeU": mode_u.value,
            "addressModeV": mode_v.value,
            "minFilter": filter_mode.value,
        })

        hash_inputs = list(params.values())

        texture = make_random_texture(texel_format, size, mip_level_count, hash_seed(seed, *hash_inputs))
        sampler = tr.SamplerConfig(
            address_mode_u=mode_u,
            address_mode_v=mode_v,
            mag_filter=filter_mode,
            min_filter=filter_mode,
            mipmap_filter=filter_mode
        )

        rng = np.random.default_rng(hash_seed(seed, "requests", *hash_inputs))
        points = generate_sample_points_2d(count, method, size, hash_inputs, seed)

        requests = tuple(_make_request(builtin, point, rng, mip_level_count) for point in points)

        yield SampleCase(texture, sampler, requests, params)

def enumerate_base_clamp_to_edge_cases(count: int = 50, seed: int = 0) -> typing.Iterator[SampleCase]:
    """
    The textureSampleBaseClampToEdge cases: an 8x8 rgba8unorm texture with 3 mip
    levels for texture_2d<f32>, and a single level for texture_external whose
    source has no mip chain.
    """

    for texture_type in TEXTURE_TYPES:
        yield from enumerate_sample_cases(
            tr.SampleBuiltin.TEXTURE_SAMPLE_BASE_CLAMP_TO_EDGE,
            tr.TexelFormat.RGBA8UNORM,
            (8, 8),
            1 if texture_type == "texture_external" else 3,
            count,
            seed,
            extra_params={"textureType": texture_type}
        )

def self_check(case: SampleCase, config: typing.Optional[tr.ToleranceConfig] = None) -> tr.BatchVerdict:
    """
    Verify the reference model against its own tolerance: every point
    expectation must fall inside its own expected range.
    """

    expected = np.array([tr.evaluate(case.texture, case.sampler, request).value for request in case.requests])

    return tr.verify_batch(case.texture, case.sampler, case.requests, expected, config)
