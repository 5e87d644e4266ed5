from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

from flask import Flask, request, jsonify, g, current_app
import uuid
import logging
from werkzeug.exceptions import HTTPException as WerkzeugHTTPException # Renamed to avoid conflict
from pythonjsonlogger import jsonlogger
from marshmallow import ValidationError

from slots_be.exceptions import AppException, InternalServerErrorException, ValidationException
from slots_be.error_codes import ErrorCodes
from .config import Config # Relative import
from .services.session_manager import SessionManager # Relative import
from .utils.math_spec import load_math_spec_from_env # Relative import
from .utils.rng import create_rng # Relative import
from .routes.slots import slots_bp

# Custom Logging Filter for Request ID
class RequestIdFilter(logging.Filter):
    def filter(self, record):
        try:
            record.request_id = g.get('request_id', 'N/A')
        except RuntimeError:
            # Outside of an app context (engine logs from the CLI or tests)
            record.request_id = 'N/A'
        return True


def configure_logging(app):
    level = getattr(logging, str(app.config.get('LOG_LEVEL', 'INFO')).upper(), logging.INFO)
    if app.config.get('JSON_LOGS') and not app.debug:
        handler = logging.StreamHandler()
        formatter = jsonlogger.JsonFormatter(
            '%(asctime)s %(levelname)s %(request_id)s %(module)s %(funcName)s %(lineno)d %(message)s'
        )
        handler.setFormatter(formatter)
        handler.addFilter(RequestIdFilter())
        # Engine modules log under slots_be.*, route them through the same handler
        for logger in (app.logger, logging.getLogger('slots_be')):
            if logger.hasHandlers():
                logger.handlers.clear()
            logger.addHandler(handler)
            logger.setLevel(level)
            logger.propagate = False
    else:
        # Basic logging for debug mode if not already configured
        if not app.logger.handlers:
            logging.basicConfig(level=logging.DEBUG if app.debug else level)


def error_body(error_code, status_message, details=None, action_button=None):
    return {
        'request_id': g.get('request_id', 'N/A'),
        'status': False,
        'error_code': error_code,
        'status_message': status_message,
        'details': details if details is not None else {},
        'action_button': action_button
    }


def create_app(config_class=Config):
    """Application factory for the slot round host."""
    app = Flask(__name__)
    app.config.from_object(config_class)

    configure_logging(app)

    # --- Math model and sessions ---
    math_spec = load_math_spec_from_env(app.config.get('MATH_ENV_FILE'))
    seed = app.config.get('RNG_SEED')
    if seed is None:
        seed = math_spec.rng_seed
    app.extensions['math_spec'] = math_spec
    app.extensions['slot_sessions'] = SessionManager(
        math_spec,
        create_rng(seed),
        settle_delay=app.config.get('SETTLE_DELAY_SECONDS', 0.35),
        auto_spin_delay=app.config.get('AUTO_SPIN_DELAY_SECONDS', 0.35),
    )
    app.logger.info(
        f"Slot host ready: {math_spec.reels}x{math_spec.rows}, {len(math_spec.paylines)} paylines, "
        f"bet {math_spec.bet_min}-{math_spec.bet_max} step {math_spec.bet_step}"
    )

    # --- Request ID Middleware ---
    @app.before_request
    def assign_request_id():
        g.request_id = request.headers.get('X-Request-ID') or str(uuid.uuid4())

    @app.after_request
    def add_request_id_header(response):
        response.headers['X-Request-ID'] = g.get('request_id', 'N/A')
        response.headers['X-Content-Type-Options'] = 'nosniff'
        return response

    # --- Specific Error Handlers ---
    @app.errorhandler(ValidationError)
    def handle_validation_error(e):
        # Marshmallow's ValidationError, rendered like any other AppException.
        return handle_app_exception(ValidationException(
            status_message='Input validation failed.', details={'errors': e.messages}
        ))

    @app.errorhandler(AppException)
    def handle_app_exception(e):
        log = current_app.logger.error if e.status_code >= 500 else current_app.logger.warning
        log(
            f"Request ID: {g.get('request_id', 'N/A')} - AppException: {e.error_code} - {e.status_message} - Details: {e.details}",
            exc_info=e.status_code >= 500 # Log stack trace for server errors
        )
        return jsonify(error_body(e.error_code, e.status_message, e.details, e.action_button)), e.status_code

    @app.errorhandler(WerkzeugHTTPException)
    def handle_werkzeug_http_exception(e):
        # Determine appropriate error code based on HTTP status
        error_code = ErrorCodes.GENERIC_ERROR
        if e.code == 404:
            error_code = ErrorCodes.NOT_FOUND
        elif e.code == 405:
            error_code = ErrorCodes.METHOD_NOT_ALLOWED
        elif e.code == 400:
            error_code = ErrorCodes.VALIDATION_ERROR
        elif e.code >= 500:
            error_code = ErrorCodes.INTERNAL_SERVER_ERROR

        current_app.logger.warning(
            f"Request ID: {g.get('request_id', 'N/A')} - Werkzeug HTTPException: {e.code} - {e.name}: {e.description} - Error Code: {error_code}"
        )
        details = {'description': e.description}
        if e.code == 404:
            details['path'] = request.path
        response = e.get_response()
        response.data = jsonify(error_body(error_code, e.name, details)).data
        response.content_type = "application/json"
        return response

    # --- Global Error Handler (catch-all for general exceptions) ---
    @app.errorhandler(Exception)
    def handle_global_exception(e):
        if isinstance(e, WerkzeugHTTPException):
            return handle_werkzeug_http_exception(e)

        current_app.logger.critical(
            f"Request ID: {g.get('request_id', 'N/A')} - Unhandled Critical Exception. Error Code: {ErrorCodes.INTERNAL_SERVER_ERROR}",
            exc_info=True
        )
        error = InternalServerErrorException(
            status_message='An unexpected internal server error occurred. Please try again later.'
        )
        return jsonify(error_body(error.error_code, error.status_message, error.details, error.action_button)), error.status_code

    # Register Blueprints
    app.register_blueprint(slots_bp)

    return app


# Add main section to run the app
if __name__ == '__main__':
    app = create_app()
    app.run(host='0.0.0.0', port=5000, debug=app.debug)
