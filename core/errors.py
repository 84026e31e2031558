"""Error taxonomy shared by the pipeline, the poll loop and the backends"""


class StudioError(Exception):
    """Base error for everything raised by the studio core"""


class ValidationError(StudioError):
    """Required input is missing or a precondition does not hold.

    Raised before any backend call is made, so the project state is untouched.
    """


class IllegalTransitionError(ValidationError):
    """Operation invoked from a stage where its transition is not legal"""


class AlreadyInProgressError(StudioError):
    """A generation operation is already in flight"""


class BackendError(StudioError):
    """A generation backend call failed (network, quota, provider error)"""


class NoResultError(BackendError):
    """Backend reported completion but produced no usable media"""


class PollTimeoutError(BackendError):
    """Polling exceeded the configured attempt or time bound"""


class GenerationCancelledError(BackendError):
    """The poll loop observed a fired cancellation token"""
