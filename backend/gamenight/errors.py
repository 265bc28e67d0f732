"""
Error taxonomy shared by the server, the dispatcher and the polling client.

Hierarchy:
- SessionError (base, carries an HTTP status and a machine readable code)
  - NotFound            session missing, or game not initialized
  - InvalidAction       unrecognized dispatcher action
  - ValidationConflict  duplicate names, bad bids, player count, bad settings
  - Forbidden           host-only action issued by someone else
  - StaleWrite          write computed against an outdated session version
"""

from flask import jsonify


class SessionError(Exception):
    """Base exception for session and game-state errors."""
    status_code = 400
    code = 'session_error'
    retryable = False

    def __init__(self, message=None):
        super().__init__(message or self.__class__.__doc__)
        self.message = message or self.__class__.__doc__

    def to_dict(self):
        return {'error': self.message, 'code': self.code}


class NotFound(SessionError):
    """Not found"""
    status_code = 404
    code = 'not_found'


class InvalidAction(SessionError):
    """Unrecognized action"""
    status_code = 400
    code = 'invalid_action'


class ValidationConflict(SessionError):
    """Request conflicts with the current session"""
    status_code = 400
    code = 'validation_conflict'


class Forbidden(SessionError):
    """Only the session host may do that"""
    status_code = 403
    code = 'forbidden'


class StaleWrite(SessionError):
    """Session changed since it was read; refetch and retry"""
    status_code = 409
    code = 'stale_write'
    retryable = True


ERRORS_BY_CODE = {cls.code: cls for cls in (NotFound, InvalidAction, ValidationConflict, Forbidden, StaleWrite)}


def error_from_response(status_code, body):
    """Rebuild the exception a server response describes (used by the client)."""
    body = body or {}
    cls = ERRORS_BY_CODE.get(body.get('code'))
    if cls is None:
        cls = {404: NotFound, 403: Forbidden, 409: StaleWrite}.get(status_code, SessionError)
    return cls(body.get('error'))


def register_error_handlers(flask_app, db):
    @flask_app.errorhandler(SessionError)
    def handle_session_error(exc):
        # Nothing from a rejected request is kept
        db.session.rollback()
        flask_app.logger.info(f"[rejected] code={exc.code} status={exc.status_code} message={exc.message}")
        return jsonify(exc.to_dict()), exc.status_code
