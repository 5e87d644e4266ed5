class ErrorCodes:
    # Generic
    GENERIC_ERROR = "GENERIC_ERROR"
    INTERNAL_SERVER_ERROR = "INTERNAL_SERVER_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    METHOD_NOT_ALLOWED = "METHOD_NOT_ALLOWED"

    # Game
    GAME_LOGIC_ERROR = "GAME_LOGIC_ERROR"
    SESSION_NOT_FOUND = "SESSION_NOT_FOUND"
    ROUND_IN_PROGRESS = "ROUND_IN_PROGRESS"
    BET_LOCKED = "BET_LOCKED"
    INSUFFICIENT_FUNDS = "INSUFFICIENT_FUNDS"
