import texref as tr

import math

import numpy as np
import pytest

def make_mip_texture():
    # 4x4, 2x2 and 1x1, every level a different constant
    return tr.Texture.from_texels(
        tr.TexelFormat.R8UNORM,
        [np.full((4, 4, 1), 0.0), np.full((2, 2, 1), 0.6), np.full((1, 1, 1), 1.0)]
    )

def test_explicit_level_nearest():
    texture = make_mip_texture()
    sampler = tr.SamplerConfig()

    for level, expected in [(0, 0), (0.5, 0), (0.51, 1), (1, 1), (1.5, 1), (1.6, 2), (2, 2), (5, 2)]:
        selection = tr.select_level(texture, sampler, explicit_level=level)

        assert (selection.level_low, selection.level_high, selection.blend) == (expected, expected, 0.0), f"level {level}"

def test_explicit_level_linear():
    texture = make_mip_texture()
    sampler = tr.SamplerConfig(mipmap_filter="linear")

    selection = tr.select_level(texture, sampler, explicit_level=1)
    assert (selection.level_low, selection.level_high, selection.blend) == (1, 1, 0.0)
    assert not selection.blended

    selection = tr.select_level(texture, sampler, explicit_level=1.25)
    assert (selection.level_low, selection.level_high, selection.blend) == (1, 2, 0.25)
    assert selection.blended

    selection = tr.select_level(texture, sampler, explicit_level=7.5)
    assert (selection.level_low, selection.level_high, selection.blend) == (2, 2, 0.0)
    assert selection.lod == 7.5

def test_sampler_lod_clamps():
    texture = make_mip_texture()

    selection = tr.select_level(texture, tr.SamplerConfig(lod_max_clamp=1.0), explicit_level=2)
    assert selection.level_low == 1
    assert selection.lod == 1.0

    selection = tr.select_level(texture, tr.SamplerConfig(lod_min_clamp=1.0), explicit_level=0)
    assert selection.level_low == 1

    selection = tr.select_level(texture, tr.SamplerConfig(lod_min_clamp=0.25, lod_max_clamp=0.25, mipmap_filter="linear"), explicit_level=2)
    assert (selection.level_low, selection.level_high, selection.blend) == (0, 1, 0.25)

def test_compute_lod():
    assert tr.compute_lod(((0.25, 0.0), (0.0, 0.25)), (4, 4)) == 0.0
    assert tr.compute_lod(((0.5, 0.0), (0.0, 0.25)), (4, 4)) == 1.0
    assert tr.compute_lod(((0.0, 0.25), (0.0, 0.0)), (4, 16)) == 2.0
    assert math.isclose(tr.compute_lod(((0.25, 0.25), (0.0, 0.0)), (4, 4)), 0.5)
    assert tr.compute_lod(((0.0, 0.0), (0.0, 0.0)), (4, 4)) == -math.inf

def test_derivative_selection():
    texture = make_mip_texture()
    sampler = tr.SamplerConfig(mag_filter="linear", min_filter="nearest", mipmap_filter="linear")

    one_texel = tr.select_level(texture, sampler, derivatives=((0.25, 0.0), (0.0, 0.25)))
    assert one_texel.lod == 0.0
    assert one_texel.magnified
    assert one_texel.filter_mode(sampler) == tr.FilterMode.LINEAR
    assert one_texel.level_low == 0

    two_texels = tr.select_level(texture, sampler, derivatives=((0.5, 0.0), (0.0, 0.25)))
    assert two_texels.lod == 1.0
    assert not two_texels.magnified
    assert two_texels.filter_mode(sampler) == tr.FilterMode.NEAREST
    assert (two_texels.level_low, two_texels.level_high) == (1, 1)

    still = tr.select_level(texture, sampler, derivatives=((0.0, 0.0), (0.0, 0.0)))
    assert still.level_low == 0
    assert still.magnified

def test_bias():
    texture = make_mip_texture()
    sampler = tr.SamplerConfig()
    derivatives = ((0.25, 0.0), (0.0, 0.25))

    assert tr.select_level(texture, sampler, derivatives=derivatives, bias=1.0).level_low == 1
    assert tr.select_level(texture, sampler, derivatives=derivatives, bias=-1.0).level_low == 0

    assert tr.select_level(texture, sampler, derivatives=derivatives, bias=100.0).lod == 15.99
    assert tr.select_level(texture, tr.SamplerConfig(lod_min_clamp=0.0), derivatives=((64.0, 0.0), (0.0, 0.0)), bias=-100.0).lod == 0.0
    assert tr.select_level(texture, sampler, derivatives=((2.0 ** 20, 0.0), (0.0, 0.0)), bias=-100.0).lod == 6.0

def test_selection_requires_exactly_one_source():
    texture = make_mip_texture()
    sampler = tr.SamplerConfig()

    with pytest.raises(tr.MalformedInput):
        tr.select_level(texture, sampler)

    with pytest.raises(tr.MalformedInput):
        tr.select_level(texture, sampler, explicit_level=0, derivatives=((0.25, 0.0), (0.0, 0.25)))

def test_evaluate_with_derivatives_reads_selected_level():
    texture = make_mip_texture()
    sampler = tr.SamplerConfig(mipmap_filter="linear")

    request = tr.SampleRequest(tr.SampleBuiltin.TEXTURE_SAMPLE_GRAD, (0.5, 0.5), derivatives=((0.5, 0.0), (0.0, 0.0)))
    assert np.isclose(tr.evaluate(texture, sampler, request).value[0], 0.6)

    request = tr.SampleRequest(tr.SampleBuiltin.TEXTURE_SAMPLE, (0.5, 0.5), derivatives=((2.0 ** -1.5, 0.0), (0.0, 0.0)))
    result = tr.evaluate(texture, sampler, request)

    assert np.isclose(result.selection.blend, 0.5)
    assert np.isclose(result.value[0], 0.3)

def test_lod_offset_keeps_explicit_filter_choice():
    texture = make_mip_texture()
    sampler = tr.SamplerConfig(mag_filter="linear", min_filter="nearest", mipmap_filter="linear")

    for lod_offset in (2.0 ** -8, -(2.0 ** -8)):
        selection = tr.select_level(texture, sampler, explicit_level=0, lod_offset=lod_offset)

        assert selection.magnified
        assert selection.filter_mode(sampler) == tr.FilterMode.LINEAR

    shifted = tr.select_level(texture, sampler, explicit_level=1.25, lod_offset=0.25)
    assert (shifted.level_low, shifted.level_high, shifted.blend) == (1, 2, 0.5)
    assert shifted.lod == 1.25

    derivative = tr.select_level(texture, sampler, derivatives=((0.25, 0.0), (0.0, 0.25)), lod_offset=0.5)
    assert not derivative.magnified
