import texref as tr
from texref.cases import make_random_texture

import numpy as np

RED = [1.0, 0.0, 0.0, 1.0]
GREEN = [0.0, 1.0, 0.0, 1.0]
BLUE = [0.0, 0.0, 1.0, 1.0]
WHITE = [1.0, 1.0, 1.0, 1.0]

def make_quad_texture():
    return tr.Texture.from_texels(tr.TexelFormat.RGBA8UNORM, [np.array([[RED, GREEN], [BLUE, WHITE]])])

def expected_range(texture, sampler, request, config=None):
    result = tr.evaluate(texture, sampler, request)
    return result, tr.tolerance_for(result, texture, sampler, request, config)

def test_range_contains_point_expectation():
    formats = [
        tr.TexelFormat.RGBA8UNORM,
        tr.TexelFormat.RGBA8UNORM_SRGB,
        tr.TexelFormat.BGRA8UNORM,
        tr.TexelFormat.RG8SNORM,
        tr.TexelFormat.RGBA16FLOAT,
        tr.TexelFormat.R32FLOAT,
    ]

    rng = np.random.default_rng(4)

    for texel_format in formats:
        texture = make_random_texture(texel_format, (8, 4), mip_level_count=3, seed=1)

        for filter_mode in tr.FilterMode:
            for mode in tr.AddressMode:
                sampler = tr.SamplerConfig(
                    address_mode_u=mode,
                    address_mode_v=mode,
                    mag_filter=filter_mode,
                    min_filter=filter_mode,
                    mipmap_filter=filter_mode
                )

                for _ in range(10):
                    coords = tuple(rng.uniform(-1.5, 2.5, 2))
                    request = tr.SampleRequest(tr.SampleBuiltin.TEXTURE_SAMPLE_LEVEL, coords, mip_level=float(rng.uniform(0, 3)))

                    result, value_range = expected_range(texture, sampler, request)

                    assert value_range.contains(result.value).all(), f"{texel_format} {sampler} {request.describe()}"
                    assert np.all(value_range.min <= value_range.max)

def test_nearest_tie_accepts_both_texels():
    texture = make_quad_texture()
    sampler = tr.SamplerConfig()

    # u = 0.5 is exactly on the edge between the red and the green texel
    request = tr.SampleRequest(tr.SampleBuiltin.TEXTURE_SAMPLE_LEVEL, (0.5, 0.25), mip_level=0)
    result, value_range = expected_range(texture, sampler, request)

    assert np.array_equal(result.value, GREEN)
    assert value_range.contains(GREEN).all()
    assert value_range.contains(RED).all()
    assert not value_range.contains(BLUE).all()

def test_nearest_texel_centre_is_tight():
    texture = make_quad_texture()
    sampler = tr.SamplerConfig(address_mode_u="repeat", address_mode_v="mirror-repeat")

    request = tr.SampleRequest(tr.SampleBuiltin.TEXTURE_SAMPLE_LEVEL, (0.25, 0.75), mip_level=0)
    result, value_range = expected_range(texture, sampler, request)

    assert np.array_equal(result.value, BLUE)
    assert np.all(value_range.max - value_range.min < 1e-3)

def test_linear_centre_is_narrow():
    texture = make_quad_texture()
    sampler = tr.SamplerConfig(mag_filter="linear", min_filter="linear")

    request = tr.SampleRequest(tr.SampleBuiltin.TEXTURE_SAMPLE_LEVEL, (0.5, 0.5), mip_level=0)
    result, value_range = expected_range(texture, sampler, request)

    assert value_range.contains([0.5, 0.5, 0.5, 1.0]).all()
    assert np.all(value_range.max - value_range.min < 0.05)
    assert not value_range.contains([0.6, 0.5, 0.5, 1.0]).all()

def test_integer_formats_are_exact():
    texture = tr.Texture.from_texels(tr.TexelFormat.RGBA8UINT, [np.arange(16).reshape(2, 2, 4)])
    sampler = tr.SamplerConfig()

    request = tr.SampleRequest(tr.SampleBuiltin.TEXTURE_SAMPLE_LEVEL, (0.75, 0.25), mip_level=0)
    result, value_range = expected_range(texture, sampler, request)

    assert list(result.value) == [4, 5, 6, 7]
    assert np.array_equal(value_range.min, value_range.max)
    assert not value_range.contains([4, 5, 6, 8]).all()

    load = tr.SampleRequest(tr.SampleBuiltin.TEXTURE_LOAD, texel_coords=(1, 1))
    result, value_range = expected_range(texture, sampler, load)

    assert list(value_range.min) == [12, 13, 14, 15]
    assert list(value_range.max) == [12, 13, 14, 15]

def test_nearest_mip_tie_accepts_both_levels():
    texture = tr.Texture.from_texels(tr.TexelFormat.R8UNORM, [np.zeros((2, 2, 1)), np.ones((1, 1, 1))])
    sampler = tr.SamplerConfig()

    request = tr.SampleRequest(tr.SampleBuiltin.TEXTURE_SAMPLE_LEVEL, (0.5, 0.5), mip_level=0.5)
    result, value_range = expected_range(texture, sampler, request)

    assert result.value[0] == 0.0
    assert value_range.contains([0.0, 0.0, 0.0, 1.0]).all()
    assert value_range.contains([1.0, 0.0, 0.0, 1.0]).all()

def test_mip_blend_widening():
    texture = tr.Texture.from_texels(tr.TexelFormat.R8UNORM, [np.zeros((2, 2, 1)), np.ones((1, 1, 1))])
    sampler = tr.SamplerConfig(mipmap_filter="linear")

    request = tr.SampleRequest(tr.SampleBuiltin.TEXTURE_SAMPLE_LEVEL, (0.5, 0.5), mip_level=0.5)
    result, value_range = expected_range(texture, sampler, request)

    assert np.isclose(result.value[0], 0.5)
    assert value_range.min[0] < 0.5 - 2.0 ** -8
    assert value_range.max[0] > 0.5 + 2.0 ** -8
    assert not value_range.contains([0.6, 0.0, 0.0, 1.0]).all()

def test_config_controls_width():
    texture = make_quad_texture()
    sampler = tr.SamplerConfig(mag_filter="linear")
    request = tr.SampleRequest(tr.SampleBuiltin.TEXTURE_SAMPLE_LEVEL, (0.4, 0.6), mip_level=0)

    _, default_range = expected_range(texture, sampler, request)
    _, coarse_range = expected_range(texture, sampler, request, tr.ToleranceConfig(subtexel_precision_bits=4, coordinate_epsilon=2 ** -6))

    assert np.all(coarse_range.min <= default_range.min)
    assert np.all(coarse_range.max >= default_range.max)
    assert np.any(coarse_range.max - coarse_range.min > default_range.max - default_range.min)

def test_alternatives_for_texture_load_are_empty():
    texture = make_quad_texture()
    request = tr.SampleRequest(tr.SampleBuiltin.TEXTURE_LOAD, texel_coords=(0, 1))
    result = tr.evaluate(texture, tr.SamplerConfig(), request)

    assert tr.alternative_results(result, texture, tr.SamplerConfig(), request, tr.ToleranceConfig()) == []
    assert np.array_equal(result.value, BLUE)

def test_explicit_level_zero_keeps_the_mag_filter():
    texture = make_quad_texture()
    sampler = tr.SamplerConfig(mag_filter="linear", min_filter="nearest")

    request = tr.SampleRequest(tr.SampleBuiltin.TEXTURE_SAMPLE_LEVEL, (0.4, 0.4), mip_level=0)
    result, value_range = expected_range(texture, sampler, request)

    assert np.allclose(result.value, [0.58, 0.3, 0.3, 1.0])
    assert value_range.contains(result.value).all()
    assert not tr.verify(value_range, RED).passed

    for alternative in tr.alternative_results(result, texture, sampler, request, tr.ToleranceConfig()):
        assert alternative.selection.magnified
        assert len(alternative.taps) == 4

def test_integer_explicit_level_never_blends_in_alternatives():
    texture = tr.Texture.from_texels(tr.TexelFormat.R8UNORM, [np.zeros((2, 2, 1)), np.ones((1, 1, 1))])
    sampler = tr.SamplerConfig(mipmap_filter="linear")

    for level in (0, 1):
        request = tr.SampleRequest(tr.SampleBuiltin.TEXTURE_SAMPLE_LEVEL, (0.5, 0.5), mip_level=level)
        result, value_range = expected_range(texture, sampler, request)

        for alternative in tr.alternative_results(result, texture, sampler, request, tr.ToleranceConfig()):
            assert not alternative.selection.blended

        assert value_range.max[0] - value_range.min[0] < 1e-3

def test_derivative_builtins_reject_the_other_filter():
    texture = make_quad_texture()

    magnified = [
        tr.SampleRequest(tr.SampleBuiltin.TEXTURE_SAMPLE, (0.4, 0.4), derivatives=((0.25, 0.0), (0.0, 0.25))),
        tr.SampleRequest(tr.SampleBuiltin.TEXTURE_SAMPLE_GRAD, (0.4, 0.4), derivatives=((0.0, 0.25), (0.25, 0.0))),
        tr.SampleRequest(tr.SampleBuiltin.TEXTURE_SAMPLE_BIAS, (0.4, 0.4), derivatives=((0.5, 0.0), (0.0, 0.5)), bias=-1.0),
    ]
    minified = [
        tr.SampleRequest(tr.SampleBuiltin.TEXTURE_SAMPLE, (0.4, 0.4), derivatives=((1.0, 0.0), (0.0, 1.0))),
        tr.SampleRequest(tr.SampleBuiltin.TEXTURE_SAMPLE_BIAS, (0.4, 0.4), derivatives=((0.5, 0.0), (0.0, 0.5)), bias=1.0),
    ]

    cases = [
        (tr.SamplerConfig(mag_filter="linear", min_filter="nearest"), magnified),
        (tr.SamplerConfig(mag_filter="nearest", min_filter="linear"), minified),
    ]

    for sampler, requests in cases:
        for request in requests:
            result, value_range = expected_range(texture, sampler, request)

            assert np.allclose(result.value, [0.58, 0.3, 0.3, 1.0]), request.describe()
            assert value_range.contains(result.value).all()
            assert not tr.verify(value_range, RED).passed, request.describe()

def test_ranges_hold_across_builtins_and_samplers():
    formats = [
        tr.TexelFormat.RGBA8UNORM,
        tr.TexelFormat.RGBA8UNORM_SRGB,
        tr.TexelFormat.BGRA8UNORM_SRGB,
        tr.TexelFormat.RG8SNORM,
        tr.TexelFormat.RGBA16FLOAT,
        tr.TexelFormat.R32FLOAT,
    ]
    samplers = [
        tr.SamplerConfig(address_mode_u="repeat", mag_filter="linear", min_filter="nearest", mipmap_filter="linear"),
        tr.SamplerConfig(address_mode_v="mirror-repeat", mag_filter="nearest", min_filter="linear", mipmap_filter="nearest"),
        tr.SamplerConfig(address_mode_u="mirror-repeat", address_mode_v="repeat", mag_filter="linear", min_filter="linear", mipmap_filter="linear"),
    ]

    rng = np.random.default_rng(11)

    for texel_format in formats:
        texture = make_random_texture(texel_format, (8, 8), mip_level_count=4, seed=2)

        for sampler in samplers:
            all_linear = all(mode == tr.FilterMode.LINEAR for mode in (sampler.mag_filter, sampler.min_filter, sampler.mipmap_filter))

            for builtin in (tr.SampleBuiltin.TEXTURE_SAMPLE, tr.SampleBuiltin.TEXTURE_SAMPLE_BIAS, tr.SampleBuiltin.TEXTURE_SAMPLE_GRAD, tr.SampleBuiltin.TEXTURE_SAMPLE_LEVEL):
                for _ in range(4):
                    coords = tuple(rng.uniform(-1.5, 2.5, 2))

                    if builtin == tr.SampleBuiltin.TEXTURE_SAMPLE_LEVEL:
                        request = tr.SampleRequest(builtin, coords, mip_level=float(rng.uniform(0, 3)))
                    else:
                        scale = 2.0 ** rng.uniform(-5, 0)
                        derivatives = ((scale, 0.0), (0.0, scale * rng.uniform(0.5, 1.0)))
                        bias = float(rng.uniform(-1, 1)) if builtin == tr.SampleBuiltin.TEXTURE_SAMPLE_BIAS else None
                        request = tr.SampleRequest(builtin, coords, derivatives=derivatives, bias=bias)

                    result, value_range = expected_range(texture, sampler, request)
                    description = f"{texel_format} {sampler} {request.describe()}"

                    assert value_range.contains(result.value).all(), description
                    assert np.all(np.isfinite(value_range.min)) and np.all(np.isfinite(value_range.max)), description

                    wrong = np.array(result.value)
                    wrong[0] += 4.0
                    assert not tr.verify(value_range, wrong).passed, description

                    if all_linear:
                        assert np.all(value_range.max - value_range.min < 0.25), description

def test_integer_ranges_are_exact_for_every_builtin():
    for texel_format in (tr.TexelFormat.RGBA8UINT, tr.TexelFormat.RG32SINT):
        texture = make_random_texture(texel_format, (4, 4), seed=3)
        sampler = tr.SamplerConfig(address_mode_u="repeat", address_mode_v="mirror-repeat")

        for x, y in [(0, 0), (3, 1), (2, 3)]:
            coords = ((x + 0.5) / 4, (y + 0.5) / 4)

            requests = [
                tr.SampleRequest(tr.SampleBuiltin.TEXTURE_SAMPLE, coords, derivatives=((0.1, 0.0), (0.0, 0.1))),
                tr.SampleRequest(tr.SampleBuiltin.TEXTURE_SAMPLE_BIAS, coords, derivatives=((0.1, 0.0), (0.0, 0.1)), bias=2.0),
                tr.SampleRequest(tr.SampleBuiltin.TEXTURE_SAMPLE_GRAD, coords, derivatives=((1.0, 0.0), (0.0, 1.0))),
                tr.SampleRequest(tr.SampleBuiltin.TEXTURE_SAMPLE_LEVEL, coords, mip_level=0),
                tr.SampleRequest(tr.SampleBuiltin.TEXTURE_LOAD, texel_coords=(x, y)),
            ]

            for request in requests:
                result, value_range = expected_range(texture, sampler, request)

                assert np.array_equal(result.value, texture.read_rgba(0, x, y)), request.describe()
                assert np.array_equal(value_range.min, value_range.max), request.describe()

                wrong = np.array(result.value)
                wrong[1] += 1
                assert not tr.verify(value_range, wrong).passed

def test_float16_range_at_format_maximum():
    largest = float(np.finfo(np.float16).max)
    texture = tr.Texture.from_texels(tr.TexelFormat.R16FLOAT, [np.full((4, 4, 1), largest)])
    sampler = tr.SamplerConfig(mag_filter="linear", min_filter="linear")

    rng = np.random.default_rng(5)

    for _ in range(20):
        request = tr.SampleRequest(tr.SampleBuiltin.TEXTURE_SAMPLE_LEVEL, tuple(rng.uniform(0, 1, 2)), mip_level=0)
        result, value_range = expected_range(texture, sampler, request)

        assert np.all(np.isfinite(value_range.min)) and np.all(np.isfinite(value_range.max))
        assert value_range.contains(result.value).all()
        assert value_range.min[0] > largest - 64
        assert not tr.verify(value_range, [0.0, 0.0, 0.0, 1.0]).passed
        assert not tr.verify(value_range, [np.inf, 0.0, 0.0, 1.0]).passed
