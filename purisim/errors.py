"""Error taxonomy for purisim."""


class PurificationError(Exception):
    """Base class for all purisim errors."""


class DimensionMismatch(PurificationError, ValueError):
    """Matrix shapes are incompatible for the requested operation."""


class InvalidDensityMatrix(PurificationError, ValueError):
    """Matrix cannot represent a quantum state (shape, dimension, trace)."""


class MeasurementDegenerate(PurificationError, ValueError):
    """Sampled outcome has (numerically) zero probability."""


class ProtocolStateError(PurificationError, RuntimeError):
    """A protocol transition was invoked without its staging data."""
