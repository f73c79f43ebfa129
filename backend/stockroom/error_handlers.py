# backend/stockroom/error_handlers.py
"""
Centralized Flask error handlers.

Services raise StockroomError subclasses; this module turns them into JSON
with the status code carried by the exception class. Anything else is a
system fault: logged with its traceback, session rolled back, 500.
"""
from flask import Flask, jsonify, current_app, Response
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException

from .errors import StockroomError
from .extensions import db


def _error_response(message: str, status_code: int, **extra) -> tuple[Response, int]:
    body = {"error": message}
    body.update(extra)
    return jsonify(body), status_code


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(StockroomError)
    def handle_stockroom_error(error: StockroomError) -> tuple[Response, int]:
        db.session.rollback()
        if error.status_code >= 500:
            current_app.logger.error("StockroomError: %s | payload=%s", error, error.payload)
        else:
            current_app.logger.debug("StockroomError: %s | payload=%s", error, error.payload)
        return _error_response(error.message, error.status_code, **error.payload)

    @app.errorhandler(HTTPException)
    def handle_http_exception(error: HTTPException) -> tuple[Response, int]:
        return _error_response(error.name.lower().replace(" ", "_"), error.code)

    @app.errorhandler(SQLAlchemyError)
    def handle_database_error(error: SQLAlchemyError) -> tuple[Response, int]:
        db.session.rollback()
        current_app.logger.exception("Database error")
        return _error_response("internal_server_error", 500)

    @app.errorhandler(Exception)
    def handle_unexpected_error(error: Exception) -> tuple[Response, int]:
        db.session.rollback()
        current_app.logger.exception("Unhandled exception")
        return _error_response("internal_server_error", 500)
