import dataclasses
import typing

import numpy as np

from .errors import MalformedInput, Mismatch
from .evaluator import SampleRequest, evaluate, validate_request
from .init import log_info, log_warning
from .sampler import SamplerConfig, TexelTap
from .texture import Texture
from .tolerance import ExpectedRange, ToleranceConfig, tolerance_for

_COMPONENT_NAMES = ("r", "g", "b", "a")

def _format_vector(values: np.ndarray) -> str:
    return "(" + ", ".join(f"{value:.6g}" for value in values) + ")"

@dataclasses.dataclass(frozen=True, eq=False)
class SampleMismatch:
    """
    The diagnostic detail of a sample that fell outside of its expected range.

    Attributes:
        index (`int`): The index of the sample in its batch.
        request (`Optional[SampleRequest]`): The call, which carries the input coordinates.
        expected_range (`ExpectedRange`): The range the value had to fall in.
        actual (`np.ndarray`): The value the implementation returned.
        failing_components (`Tuple[int, ...]`): The components outside of the range.
        taps (`Tuple[TexelTap, ...]`): The texels and weights behind the expectation.
    """
    index: int
    request: typing.Optional[SampleRequest]
    expected_range: ExpectedRange
    actual: np.ndarray
    failing_components: typing.Tuple[int, ...]
    taps: typing.Tuple[TexelTap, ...] = ()

    def __str__(self) -> str:
        result = f"sample {self.index}"

        if self.request is not None:
            result += f": {self.request.describe()}"

        result += f"\n       got: {_format_vector(self.actual)}"
        result += f"\n  expected: {_format_vector(self.expected_range.expected)}"
        result += f"\n     range: {self.expected_range}"
        result += "\n    failed: " + ", ".join(_COMPONENT_NAMES[c] for c in self.failing_components)

        if len(self.taps) != 0:
            result += "\n    texels:"

            for tap in self.taps:
                result += f"\n      {tap}"

        return result

@dataclasses.dataclass(frozen=True, eq=False)
class SampleVerdict:
    index: int
    passed: bool
    expected_range: ExpectedRange
    actual: np.ndarray
    mismatch: typing.Optional[SampleMismatch] = None

def verify(
    expected_range: ExpectedRange,
    actual: typing.Sequence[float],
    index: int = 0,
    request: typing.Optional[SampleRequest] = None,
    taps: typing.Sequence[TexelTap] = ()
) -> SampleVerdict:
    """
    Check one actual value against its expected range. Passes iff every
    component lies within [min, max]; NaN never passes.

    Args:
        expected_range (`ExpectedRange`): The range produced by tolerance_for().
        actual (`Sequence[float]`): The RGBA value returned by the implementation.
        index (`int`): The index of the sample, reported on failure.
        request (`Optional[SampleRequest]`): The call, reported on failure.
        taps (`Sequence[TexelTap]`): The texel neighborhood, reported on failure.

    Returns:
        `SampleVerdict`: The verdict, with a SampleMismatch when it failed.
    """

    actual = np.asarray(actual, dtype=np.float64).reshape(-1)

    if actual.shape != expected_range.min.shape:
        raise MalformedInput(f"Expected a result of {expected_range.min.shape[0]} components, got {actual.shape[0]}!")

    inside = expected_range.contains(actual)

    if inside.all():
        return SampleVerdict(index, True, expected_range, actual)

    mismatch = SampleMismatch(
        index,
        request,
        expected_range,
        actual,
        tuple(int(c) for c in np.flatnonzero(~inside)),
        tuple(taps)
    )

    return SampleVerdict(index, False, expected_range, actual, mismatch)

class BatchVerdict:
    """
    The verdicts of a whole batch of samples. The batch passes iff every sample passed.

    Attributes:
        verdicts (`List[SampleVerdict]`): One verdict per request, in request order.
    """

    verdicts: typing.List[SampleVerdict]

    def __init__(self, verdicts: typing.Sequence[SampleVerdict]) -> None:
        self.verdicts = list(verdicts)

    def __len__(self) -> int:
        return len(self.verdicts)

    def __iter__(self) -> typing.Iterator[SampleVerdict]:
        return iter(self.verdicts)

    @property
    def passed(self) -> bool:
        return all(verdict.passed for verdict in self.verdicts)

    @property
    def failures(self) -> typing.List[SampleMismatch]:
        return [verdict.mismatch for verdict in self.verdicts if not verdict.passed]

    @property
    def failing_indices(self) -> typing.List[int]:
        return [verdict.index for verdict in self.verdicts if not verdict.passed]

    def report(self) -> str:
        if self.passed:
            return f"all {len(self.verdicts)} samples passed"

        failures = self.failures
        lines = [f"{len(failures)} of {len(self.verdicts)} samples were not as expected:"]
        lines.extend(str(failure) for failure in failures)

        return "\n".join(lines)

    def raise_for_failures(self) -> None:
        if not self.passed:
            raise Mismatch(self.report(), self.failures)

    def __repr__(self) -> str:
        return f"BatchVerdict(passed={self.passed}, samples={len(self.verdicts)}, failing_indices={self.failing_indices})"

def verify_batch(
    texture: Texture,
    sampler: SamplerConfig,
    requests: typing.Sequence[SampleRequest],
    actuals: typing.Union[np.ndarray, typing.Sequence[typing.Sequence[float]]],
    config: typing.Optional[ToleranceConfig] = None
) -> BatchVerdict:
    """
    Evaluate every request, widen it into its expected range and check the
    matching actual value. Mismatches never stop the batch, every failing sample
    is reported.

    Args:
        texture (`Texture`): The sampled texture.
        sampler (`SamplerConfig`): The sampler used by every call.
        requests (`Sequence[SampleRequest]`): The calls, in the order they were issued.
        actuals (`np.ndarray`): The RGBA results, shaped (len(requests), 4).
        config (`Optional[ToleranceConfig]`): The tolerance allowances.

    Returns:
        `BatchVerdict`: One verdict per request.

    Raises:
        MalformedInput: If any request is invalid or the results do not match the requests.
    """

    actuals = np.asarray(actuals, dtype=np.float64)

    if actuals.shape != (len(requests), 4):
        raise MalformedInput(f"Expected results shaped {(len(requests), 4)}, got {actuals.shape}!")

    for request in requests:
        validate_request(texture, request)

    verdicts = []

    for index, (request, actual) in enumerate(zip(requests, actuals)):
        result = evaluate(texture, sampler, request)
        expected_range = tolerance_for(result, texture, sampler, request, config)

        verdict = verify(expected_range, actual, index, request, result.taps)

        if not verdict.passed:
            log_warning(str(verdict.mismatch))

        verdicts.append(verdict)

    batch = BatchVerdict(verdicts)

    log_info(f"{texture}: {len(batch) - len(batch.failing_indices)} of {len(batch)} samples passed")

    return batch

check_call_results = verify_batch
