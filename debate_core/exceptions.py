"""Exceptions for debate orchestration"""


class DebateError(Exception):
    """Base exception for debate errors"""
    pass


class DebateValidationError(DebateError):
    """Raised when a debate is created with bad input"""

    def __init__(self, problems: list[str]):
        super().__init__("; ".join(problems))
        self.problems = problems


class DebateNotFoundError(DebateError):
    """Raised when a debate is neither in memory nor recoverable from storage"""

    def __init__(self, debate_id: str):
        super().__init__(f"Debate {debate_id} not found")
        self.debate_id = debate_id


class DebateAlreadyRunningError(DebateError):
    """Raised when start() is called while the round loop is active"""

    def __init__(self, message: str = "Debate is already running"):
        super().__init__(message)


class InvalidStateError(DebateError):
    """Raised when an operation is not allowed in the current status"""
    pass


class SnapshotValidationError(DebateError):
    """Raised when a persisted snapshot fails structural validation"""
    pass


class StoreError(DebateError):
    """Raised when the store cannot register or persist a debate"""
    pass
