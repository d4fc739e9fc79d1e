"""Domain errors raised by services and mapped to responses in main."""


class NotAuthenticatedException(Exception):
    """Raised when a route requires login but no valid token was presented."""
    pass


class JobNotFound(Exception):
    """The requested job does not exist."""

    status_code = 404

    def __init__(self, job_id=None):
        super().__init__("Job not found")
        self.job_id = job_id


class ForbiddenAction(Exception):
    """The requester's role or ownership does not allow the action."""

    status_code = 403

    def __init__(self, message: str = "Forbidden"):
        super().__init__(message)


class JobStateConflict(Exception):
    """The job is not in a state that allows the transition."""

    status_code = 400

    def __init__(self, message: str = "Job not available"):
        super().__init__(message)
