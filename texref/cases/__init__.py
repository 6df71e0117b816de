from .builder import SamplePointMethod, SampleCase, TEXTURE_TYPES
from .builder import hash_seed, generate_sample_points_2d, make_random_texture
from .builder import enumerate_sample_cases, enumerate_base_clamp_to_edge_cases, self_check
