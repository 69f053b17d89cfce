"""Exception taxonomy for the concierge core.

Lookup misses are normal control flow and are never raised. Malformed or
empty input degrades to neutral defaults instead of raising.
"""


class ConciergeError(Exception):
    """Base class for all concierge errors."""
    pass


class ConfigurationError(ConciergeError):
    """Raised when an agent configuration patch is invalid."""
    pass


class AgentExecutionError(ConciergeError):
    """Raised by a responder; isolated and logged by the executor."""

    def __init__(self, agent_id: str, message: str):
        super().__init__(f"Agent '{agent_id}' failed: {message}")
        self.agent_id = agent_id


class CollaboratorError(ConciergeError):
    """Failure of an external collaborator (network, timeout, quota)."""

    def __init__(self, message: str, retryable: bool = True, code: str = "COLLABORATOR_ERROR"):
        super().__init__(message)
        self.retryable = retryable
        self.code = code


class NonRetryableError(CollaboratorError):
    """Validation failures and permanently exhausted quotas."""

    def __init__(self, message: str, code: str = "NON_RETRYABLE"):
        super().__init__(message, retryable=False, code=code)


class GenerationExhaustedError(CollaboratorError):
    """All generation attempts failed."""

    def __init__(self, message: str, attempts: int):
        super().__init__(message, retryable=False, code="GENERATION_EXHAUSTED")
        self.attempts = attempts
