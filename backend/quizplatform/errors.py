"""Error types raised by the domain services.

Routes convert these into ``{'error': message}`` JSON responses with the
matching status code, so services never deal with HTTP objects.
"""

from flask import jsonify


class GameError(Exception):
    status_code = 400

    def __init__(self, message: str, status_code: int = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    def to_response(self):
        return jsonify({'error': self.message}), self.status_code


class InvalidRequest(GameError):
    status_code = 400


class NotAuthenticated(GameError):
    status_code = 401

    def __init__(self, message: str = 'Not authenticated'):
        super().__init__(message)


class Forbidden(GameError):
    status_code = 403


class NotFound(GameError):
    status_code = 404


class AlreadyCompleted(GameError):
    status_code = 409


class DuplicateGuestName(GameError):
    status_code = 409

    def __init__(self, message: str = 'A player with this name has already joined'):
        super().__init__(message)


class TimeLimitExceeded(GameError):
    status_code = 409

    def __init__(self, message: str = 'Time limit exceeded'):
        super().__init__(message)


class ExternalServiceError(GameError):
    status_code = 502


class ServiceUnavailable(GameError):
    status_code = 503


def register_error_handlers(blueprint) -> None:
    """Render GameError subclasses raised inside ``blueprint`` as JSON."""

    @blueprint.errorhandler(GameError)
    def _handle_game_error(exc):
        return exc.to_response()
