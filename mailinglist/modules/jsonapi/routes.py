"""
JSON API Routes
===============

Every handler decodes its body, calls exactly one store operation and answers
through ``return_json``. Writes are followed by a fresh lookup so the response
shows what the store holds, not what the client sent.

Error responses share one envelope: ``{"Err": "<message>"}``.
"""

import logging
from flask import request, jsonify, current_app
from werkzeug.exceptions import HTTPException

from mailinglist.core.errors import (
    MailingListError, DuplicateKey, InvalidArgument, NotFound, StoreFailure
)
from mailinglist.core.logging_service import LoggingService
from mailinglist.core.translation import to_json_entry, from_json_entry
from . import jsonapi_bp

logger = logging.getLogger(__name__)

STATUS_BY_ERROR = {
    InvalidArgument: 400,
    DuplicateKey: 400,
    NotFound: 404,
    StoreFailure: 500,
}


def get_store():
    """The SubscriberStore registered on the current app"""
    return current_app.extensions['mailinglist_store']


def from_json():
    """Request fields from the JSON body, whatever the Content-Type says"""
    data = request.get_json(force=True, silent=True)
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise InvalidArgument("request body must be a JSON object")
    return data


def _status_for(error):
    for error_class, status in STATUS_BY_ERROR.items():
        if isinstance(error, error_class):
            return status
    return 500


def return_err(message, code):
    LoggingService.log_api_call('jsonapi', request.path, request.method, code, {'error': message})
    return jsonify({'Err': message}), code


def return_json(operation):
    """
    Run ``operation`` and encode its result.
    Store errors become envelopes with the status mapped in STATUS_BY_ERROR;
    anything unexpected is a 500.
    """
    try:
        data = operation()
    except MailingListError as e:
        code = _status_for(e)
        if code >= 500:
            logger.error(f"Store failure on {request.path}: {e}")
        return return_err(str(e), code)
    except Exception as e:
        logger.exception(f"Unexpected error on {request.path}")
        LoggingService.log_error_with_traceback('jsonapi', e, {'path': request.path})
        return return_err('An unexpected error occurred', 500)

    LoggingService.log_api_call('jsonapi', request.path, request.method, 200)
    return jsonify(data), 200


def _arg(data, field, query_name, convert=str):
    if field in data:
        return data[field]
    value = request.args.get(query_name)
    if value is None:
        return None
    try:
        return convert(value)
    except ValueError:
        raise InvalidArgument(f"{query_name} must be {convert.__name__}") from None


def _email_from(data):
    email = _arg(data, 'Email', 'email')
    if not isinstance(email, str) or not email.strip():
        raise InvalidArgument("Email field is required")
    return email


def _observed(email):
    entry = get_store().get(email)
    if entry is None:
        raise NotFound(f"email not found: {email}")
    return to_json_entry(entry)


# ===================
# ROUTES
# ===================

@jsonapi_bp.route('/create', methods=['POST'])
def create_email():
    def operation():
        email = _email_from(from_json())
        logger.info(f"JSON CreateEmail: {email}")
        get_store().create(email)
        return _observed(email)
    return return_json(operation)


@jsonapi_bp.route('/get', methods=['GET'])
def get_email():
    def operation():
        email = _email_from(from_json())
        logger.info(f"JSON GetEmail: {email}")
        return _observed(email)
    return return_json(operation)


@jsonapi_bp.route('/update', methods=['PUT'])
def update_email():
    def operation():
        data = from_json()
        _email_from(data)
        entry = from_json_entry(data)
        logger.info(f"JSON UpdateEmail: {entry.email}")
        get_store().update(entry)
        return _observed(entry.email)
    return return_json(operation)


@jsonapi_bp.route('/delete', methods=['POST'])
def delete_email():
    def operation():
        email = _email_from(from_json())
        logger.info(f"JSON DeleteEmail: {email}")
        get_store().opt_out(email)
        return _observed(email)
    return return_json(operation)


@jsonapi_bp.route('/get_batch', methods=['GET'])
def get_email_batch():
    def operation():
        data = from_json()
        page = _arg(data, 'Page', 'page', int)
        count = _arg(data, 'Count', 'count', int)
        if not _positive(page) or not _positive(count):
            raise InvalidArgument("page and count fields must be > 0")

        logger.info(f"JSON GetEmailBatch: page={page} count={count}")
        return [to_json_entry(entry) for entry in get_store().list_page(page, count)]
    return return_json(operation)


@jsonapi_bp.route('/get_all', methods=['GET'])
def get_all_rows():
    def operation():
        entries = get_store().list_all()
        logger.info(f"JSON GetAllRows: {len(entries)} rows")
        return [to_json_entry(entry) for entry in entries]
    return return_json(operation)


def _positive(value):
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


@jsonapi_bp.app_errorhandler(HTTPException)
def handle_http_error(error):
    """Wrong method, unknown path and unreadable bodies use the same envelope"""
    return return_err(error.description or error.name, error.code)
