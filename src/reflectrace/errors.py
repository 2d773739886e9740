"""Error and warning types raised by the raytracer.

Configuration problems are rejected before any work is scheduled, while
degenerate geometry is recoverable: a deterministic fallback is substituted and
the condition is reported as a warning.
"""


class ConfigurationError(ValueError):
    """Invalid render parameters (size, field of view, depth, samples, colors)."""


class DegenerateGeometryWarning(UserWarning):
    """A normal or basis vector collapsed to zero and a fallback was used."""


class RenderCancelled(RuntimeError):
    """A render pass was cancelled between pixel batches.

    The pixel buffer contents are undefined after cancellation.
    """
