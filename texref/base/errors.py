import typing

class OutOfRange(IndexError):
    """
    Raised when a resolved texel coordinate or mip level falls outside of the
    texture. This always means the reference model itself is broken, so it is
    never caught inside texref.
    """
    pass

class MalformedInput(ValueError):
    """
    Raised when a texture, sampler configuration, sample request or result list
    is structurally invalid. Raised before any evaluation starts.
    """
    pass

class Mismatch(AssertionError):
    """
    Raised by BatchVerdict.raise_for_failures() once a whole batch has been
    evaluated and at least one sample fell outside of its expected range.

    Attributes:
        failures (`List[SampleMismatch]`): Every failing sample of the batch.
    """

    def __init__(self, message: str, failures: typing.Sequence = ()) -> None:
        super().__init__(message)
        self.failures = list(failures)

def check_in_range(name: str, value: int, extent: int) -> None:
    """
    Raise OutOfRange if value is not inside [0, extent).

    Args:
        name (`str`): The name of the checked quantity, used in the message.
        value (`int`): The resolved index.
        extent (`int`): The number of valid indices.
    """

    if value < 0 or value >= extent:
        raise OutOfRange(f"{name} {value} is outside of [0, {extent})!")
