from __future__ import annotations

# Every rejection carries a category code the host forwards verbatim. Specific
# errors subclass a category so callers can catch either level.


class PokerError(Exception):
    code = "INTERNAL"

    def __init__(self, msg: str) -> None:
        super().__init__(msg)
        self.msg = msg


class Unauthenticated(PokerError):
    code = "UNAUTHENTICATED"

    def __init__(self, msg: str = "Not authenticated") -> None:
        super().__init__(msg)


class NotFound(PokerError):
    code = "NOT_FOUND"


class PreconditionFailed(PokerError):
    code = "PRECONDITION_FAILED"


class Forbidden(PokerError):
    code = "FORBIDDEN"


class InvalidArgument(PokerError):
    code = "INVALID_ARGUMENT"


class ResourceExhausted(PokerError):
    code = "RESOURCE_EXHAUSTED"


class Conflict(PokerError):
    code = "CONFLICT"

    def __init__(self, msg: str = "Concurrent update, retry the request") -> None:
        super().__init__(msg)


class TableNotFound(NotFound):
    def __init__(self, msg: str = "Table not found") -> None:
        super().__init__(msg)


class NotSeated(NotFound):
    def __init__(self, msg: str = "Not seated at this table") -> None:
        super().__init__(msg)


class TableNotWaiting(PreconditionFailed):
    def __init__(self, msg: str = "Table already started") -> None:
        super().__init__(msg)


class GameNotPlaying(PreconditionFailed):
    def __init__(self, msg: str = "Game not in progress") -> None:
        super().__init__(msg)


class AlreadySeated(PreconditionFailed):
    def __init__(self, msg: str = "Already seated at this table") -> None:
        super().__init__(msg)


class InsufficientPlayers(PreconditionFailed):
    def __init__(self, msg: str = "Need at least 2 players") -> None:
        super().__init__(msg)


class NotAllReady(PreconditionFailed):
    def __init__(self, msg: str = "Not all players are ready") -> None:
        super().__init__(msg)


class CannotAct(PreconditionFailed):
    def __init__(self, msg: str = "Seat cannot act") -> None:
        super().__init__(msg)


class MustCallOrFold(PreconditionFailed):
    def __init__(self, msg: str = "Cannot check, must call or fold") -> None:
        super().__init__(msg)


class NothingToCall(PreconditionFailed):
    def __init__(self, msg: str = "Nothing to call; check instead") -> None:
        super().__init__(msg)


class NotHost(Forbidden):
    def __init__(self, msg: str = "Only the host can start") -> None:
        super().__init__(msg)


class NotYourTurn(Forbidden):
    def __init__(self, msg: str = "Not your turn") -> None:
        super().__init__(msg)


class InvalidAmount(InvalidArgument):
    def __init__(self, msg: str = "Amount must be a non-negative integer") -> None:
        super().__init__(msg)


class TableFull(ResourceExhausted):
    def __init__(self, msg: str = "Table is full") -> None:
        super().__init__(msg)


class InsufficientFunds(ResourceExhausted):
    def __init__(self, msg: str = "Not enough doubloons") -> None:
        super().__init__(msg)


class DeckExhausted(ResourceExhausted):
    def __init__(self, msg: str = "Not enough cards left in deck") -> None:
        super().__init__(msg)
