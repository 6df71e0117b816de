import texref as tr
import numpy as np

# A 2x2 texture with a red, green, blue and white texel
texels = np.array([[[1, 0, 0, 1], [0, 1, 0, 1]], [[0, 0, 1, 1], [1, 1, 1, 1]]], dtype=np.float64)
texture = tr.Texture.from_texels(tr.TexelFormat.RGBA8UNORM, [texels])
print(f"Texture: {texture}")

sampler = tr.SamplerConfig(mag_filter="linear", min_filter="linear")

# Sample the middle of the texture, where all four texels meet
request = tr.SampleRequest(tr.SampleBuiltin.TEXTURE_SAMPLE_LEVEL, (0.5, 0.5), mip_level=0)
result = tr.evaluate(texture, sampler, request)
print(f"Expected value: {result.value}")

expected_range = tr.tolerance_for(result, texture, sampler, request)
print(f"Accepted range: {expected_range}")

# Pretend these came back from a GPU
verdict = tr.verify_batch(texture, sampler, [request], [[0.5, 0.5, 0.5, 1.0]])
print(verdict.report())
