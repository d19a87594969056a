"""Error hierarchy for the Aurora student records client.

Every failure in the core is fatal to the running collection: nothing is
retried, and no partial result is handed back to the caller.
"""

GATEWAY = 'gateway'
REGISTRAR = 'registrar'
PORTAL = 'portal'


class AuroraError(Exception):
    """Base exception for all client errors."""

    pass


class LoginError(AuroraError):
    """Authentication to a subsystem failed while its data was required.

    ``subsystem`` is one of ``gateway``, ``registrar`` or ``portal``.
    """

    def __init__(self, subsystem: str, message: str = None):
        self.subsystem = subsystem
        super().__init__(message or f"Login to {subsystem} failed")


class ParseError(AuroraError):
    """A payload could not be turned into a typed record."""

    def __init__(self, kind, detail: str = None):
        self.kind = kind
        self.detail = detail
        name = getattr(kind, 'name', kind)
        message = f"Could not parse {name} payload"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class FetchError(AuroraError):
    """A request to an authenticated backend failed at the HTTP level."""

    def __init__(self, subsystem: str, operation: str, detail: str = None):
        self.subsystem = subsystem
        self.operation = operation
        super().__init__(f"{subsystem} {operation} failed" + (f": {detail}" if detail else ""))


class SessionStateError(AuroraError):
    """A session was used outside the state its operation requires.

    Examples: fetching before login, logging in twice, reusing a destroyed
    gateway session, running an orchestrator a second time.
    """

    pass
