from slots_be.error_codes import ErrorCodes

class AppException(Exception):
    def __init__(self, error_code, status_message, status_code, details=None, action_button=None):
        super().__init__(status_message)
        self.error_code = error_code
        self.status_message = status_message
        self.status_code = status_code
        self.details = details if details is not None else {}
        self.action_button = action_button if action_button is not None else {}

class ValidationException(AppException):
    def __init__(self, status_message="Validation failed", details=None, action_button=None, error_code=ErrorCodes.VALIDATION_ERROR):
        super().__init__(
            error_code=error_code,
            status_message=status_message,
            status_code=422,
            details=details,
            action_button=action_button
        )

class NotFoundException(AppException):
    def __init__(self, status_message="Resource not found", details=None, action_button=None, error_code=ErrorCodes.NOT_FOUND):
        super().__init__(
            error_code=error_code,
            status_message=status_message,
            status_code=404,
            details=details,
            action_button=action_button
        )

class InsufficientFundsException(AppException):
    def __init__(self, status_message="Insufficient funds", details=None, action_button=None):
        super().__init__(
            error_code=ErrorCodes.INSUFFICIENT_FUNDS,
            status_message=status_message,
            status_code=400,
            details=details,
            action_button=action_button
        )

class GameLogicException(AppException):
    def __init__(self, status_message="Game logic error", details=None, action_button=None, status_code=400, error_code=ErrorCodes.GAME_LOGIC_ERROR):
        super().__init__(
            error_code=error_code,
            status_message=status_message,
            status_code=status_code, # 400 for bad moves, 409 while a round is in flight
            details=details,
            action_button=action_button
        )

class InternalServerErrorException(AppException):
    def __init__(self, status_message="Internal server error", details=None, action_button=None):
        super().__init__(
            error_code=ErrorCodes.INTERNAL_SERVER_ERROR,
            status_message=status_message,
            status_code=500,
            details=details,
            action_button=action_button
        )

# --- Slot session errors ---

class SessionNotFoundException(NotFoundException):
    def __init__(self, session_id, action_button=None):
        super().__init__(
            status_message=f"Slot session {session_id} not found.",
            details={'session_id': session_id},
            action_button=action_button,
            error_code=ErrorCodes.SESSION_NOT_FOUND
        )

class RoundInProgressException(GameLogicException):
    def __init__(self, status_message="A round is already in progress for this session.", details=None):
        super().__init__(
            status_message=status_message,
            details=details,
            status_code=409,
            error_code=ErrorCodes.ROUND_IN_PROGRESS
        )

class BetLockedException(GameLogicException):
    """Bet changes are refused mid-round and while free spins remain."""
    def __init__(self, free_spins=0):
        super().__init__(
            status_message="Bet cannot be changed during a round or while free spins remain.",
            details={'free_spins': free_spins},
            status_code=409,
            error_code=ErrorCodes.BET_LOCKED
        )
