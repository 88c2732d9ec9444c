"""Error taxonomy shared by the game services and the HTTP layer."""


class ClueboardError(Exception):
    """Base class for every error raised by the game core."""


class EmptyCatalog(ClueboardError):
    """No puzzle is available for the requested round."""


class StoreUnavailable(ClueboardError):
    """The ranked score store could not be read or written."""


class BroadcastUnavailable(ClueboardError):
    """A score update could not be published."""


class IdentityUnavailable(ClueboardError):
    """The hosting platform did not supply a player identity."""


class InvalidTransition(ClueboardError):
    """The requested action is not allowed in the session's current mode."""

    def __init__(self, action, mode):
        super().__init__(f"cannot {action} while in {mode}")
        self.action = action
        self.mode = mode


class InvalidScoreEvent(ClueboardError, ValueError):
    """A score update payload did not match ``{member: str, score: int}``."""
