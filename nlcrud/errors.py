class NLCrudError(Exception):
    """Base class for failures reported back to the caller of /query."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InputError(NLCrudError):
    """Missing or empty prompt, or a body that is not a JSON object."""


class ExtractionError(NLCrudError):
    """The completion did not contain a usable SQL statement."""


class ExecutionError(NLCrudError):
    """The store rejected the SQL. Carries the driver's message verbatim."""


class CompletionError(NLCrudError):
    """The completion service failed or answered with an unknown capability."""

    status_code = 502
