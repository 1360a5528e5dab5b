"""
Exception hierarchy for the feature tracking pipeline.

Every failure the pipeline can report derives from FeatureTrackingError, so
callers that drive whole evaluation plans can catch one type while still
telling configuration problems apart from broken input data.
"""


class FeatureTrackingError(Exception):
    """Base class for all feature tracking errors"""


class ConfigurationError(FeatureTrackingError, ValueError):
    """Unknown or incompatible detector/descriptor/matcher configuration.

    Raised before any frame of a run is processed.
    """


class InputError(FeatureTrackingError, IOError):
    """An input frame could not be loaded or decoded. Aborts the current run."""

    def __init__(self, message: str, frame_index: int = None, path: str = None):
        super().__init__(message)
        self.frame_index = frame_index
        self.path = path


class DegenerateStateError(FeatureTrackingError, ArithmeticError):
    """A statistic was requested over an empty sample (e.g. no keypoints left in the ROI)"""


class PreconditionError(FeatureTrackingError, RuntimeError):
    """An operation was invoked before the state it depends on exists"""
