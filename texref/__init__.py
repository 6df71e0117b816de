from .base.errors import OutOfRange
from .base.errors import MalformedInput
from .base.errors import Mismatch

from .base.init import LogLevel
from .base.init import initialize
from .base.init import is_initialized
from .base.init import log, log_error, log_warning, log_info, log_verbose, set_log_level

from .base.formats import NumericKind
from .base.formats import FormatInfo
from .base.formats import TexelFormat
from .base.formats import decode_texels, encode_texels, linearize, expand_to_rgba
from .base.formats import srgb_to_linear, linear_to_srgb, quantization_half_step

from .base.texture import TextureDimension
from .base.texture import Texture
from .base.texture import max_mip_level_count, mip_level_size

from .base.address import AddressMode
from .base.address import resolve, resolve_coords

from .base.sampler import FilterMode
from .base.sampler import SamplerConfig
from .base.sampler import TexelTap
from .base.sampler import FilterResult
from .base.sampler import sample_level, linear_weights, texel_space, round_half_away_from_zero

from .base.mip import MipSelection
from .base.mip import compute_lod, select_level

from .base.evaluator import SampleBuiltin
from .base.evaluator import SampleRequest
from .base.evaluator import SampleResult
from .base.evaluator import evaluate, validate_request

from .base.tolerance import ToleranceConfig
from .base.tolerance import ExpectedRange
from .base.tolerance import tolerance_for, alternative_results

from .base.verifier import SampleMismatch
from .base.verifier import SampleVerdict
from .base.verifier import BatchVerdict
from .base.verifier import verify, verify_batch, check_call_results

__version__ = "0.1.0"
