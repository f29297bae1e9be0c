"""Error and warning categories raised by the alignment engine."""


class ConfigurationError(ValueError):
    """The editing scheme, target selection or sub-experiment count is invalid.

    Raised before any optimization runs.
    """


class PreconditionError(ValueError):
    """The input signals are not ready for alignment.

    Alignment needs exactly one complex time-domain signal per editing
    condition, i.e. data that has already been coil-combined and averaged.
    """


class AlignmentWarning(UserWarning):
    """The least-squares solver terminated without reporting convergence."""
