"""
Error taxonomy for the quoting core.

Engines raise these; routers let them bubble up to the handlers registered
in main.py, which map each family onto one HTTP status:

    PreconditionFailed   -> 500  (no partial record is ever persisted)
    ValidationFailed     -> 400  (every violated rule, not just the first)
    TransitionNotAllowed -> 400  (record left untouched, current status echoed)
    DuplicateConversion  -> 409
"""


class QuoteEngineError(Exception):
    """Base class for every error raised by the quoting core."""


# --- Precondition failures ---

class PreconditionFailed(QuoteEngineError):
    pass


class NoActivePricingConfig(PreconditionFailed):
    def __init__(self, message: str = "No active pricing configuration found"):
        super().__init__(message)


class SequenceAllocationError(PreconditionFailed):
    pass


# --- Validation failures ---

class ValidationFailed(QuoteEngineError):
    def __init__(self, errors: list):
        self.errors = list(errors)
        super().__init__(". ".join(self.errors))


# --- State-transition violations ---

class TransitionNotAllowed(QuoteEngineError):
    def __init__(self, message: str, current_status=None):
        self.current_status = getattr(current_status, "value", current_status)
        super().__init__(message)


class DuplicateConversion(TransitionNotAllowed):
    pass
