"""Solver error types."""


class AssemblyError(ValueError):
    """Malformed grid metrics, configuration or operator dimensions at start-up."""


class DimensionMismatchError(RuntimeError):
    """A stored field no longer matches the operator it is multiplied with."""


def require_shape(name, matrix, shape):
    """Raise DimensionMismatchError unless ``matrix.shape == shape``."""
    if tuple(matrix.shape) != tuple(shape):
        raise DimensionMismatchError(
            f"{name} has shape {tuple(matrix.shape)}, expected {tuple(shape)}"
        )
