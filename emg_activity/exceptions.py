"""
Exceptions raised by the EMG activity detection toolkit.
"""


class InputShapeError(ValueError):
    """A signal or mask has no samples to work on (or the wrong shape)."""

    pass
