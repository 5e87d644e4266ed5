from flask import Blueprint, request, jsonify, current_app

from slots_be.schemas import (
    CreateSessionSchema, ChangeBetSchema, AddCreditsSchema,
    SessionSchema, SpinResponseSchema, MathSpecSummarySchema
)
from slots_be.services.round_engine import REJECT_INSUFFICIENT_BALANCE
from slots_be.exceptions import BetLockedException, InsufficientFundsException, RoundInProgressException

slots_bp = Blueprint('slots', __name__, url_prefix='/api/slots')


def _sessions():
    return current_app.extensions['slot_sessions']


def _json_body():
    # Empty or non-JSON bodies load as an empty payload
    return request.get_json(silent=True) or {}


@slots_bp.route('/config', methods=['GET'])
def get_slot_config():
    """Client-safe summary of the math model."""
    math_spec = current_app.extensions['math_spec']
    return jsonify({'status': True, 'config': MathSpecSummarySchema().dump(math_spec)}), 200


@slots_bp.route('/sessions', methods=['POST'])
def create_session():
    data = CreateSessionSchema().load(_json_body())
    balance = data['balance'] if data.get('balance') is not None else current_app.config['STARTING_BALANCE']
    bet = data['bet'] if data.get('bet') is not None else current_app.config['DEFAULT_BET']

    handle = _sessions().create(balance, bet)
    current_app.logger.info(f"Slot session {handle.session.session_id} created with balance {balance}")
    return jsonify({'status': True, 'session': SessionSchema().dump(handle.session)}), 201


@slots_bp.route('/sessions/<session_id>', methods=['GET'])
def get_session(session_id):
    handle = _sessions().get(session_id)
    return jsonify({'status': True, 'session': SessionSchema().dump(handle.session)}), 200


@slots_bp.route('/sessions/<session_id>/spin', methods=['POST'])
def spin(session_id):
    # Unpaid rounds only come from the free-spin pool, never from the request body
    with _sessions().acquire(session_id) as handle:
        handle.presenter.drain()
        response = handle.engine.request_spin(handle.session)
        events = handle.presenter.drain()

        if not response.accepted:
            if response.rejection_reason == REJECT_INSUFFICIENT_BALANCE:
                raise InsufficientFundsException(
                    status_message="Insufficient balance for this bet.",
                    details={'balance': handle.session.balance, 'bet': handle.session.bet},
                )
            raise RoundInProgressException()

        return jsonify({
            'status': True,
            'result': SpinResponseSchema().dump(response),
            'events': events,
            'session': SessionSchema().dump(handle.session),
        }), 200


@slots_bp.route('/sessions/<session_id>/bet', methods=['POST'])
def change_bet(session_id):
    data = ChangeBetSchema().load(_json_body())

    with _sessions().acquire(session_id) as handle:
        if not handle.engine.can_change_bet(handle.session):
            raise BetLockedException(handle.session.free_spins)
        changed = handle.engine.change_bet(handle.session, data['delta'])
        handle.presenter.drain()
        return jsonify({
            'status': True,
            'changed': changed,
            'session': SessionSchema().dump(handle.session),
        }), 200


@slots_bp.route('/sessions/<session_id>/credits', methods=['POST'])
def add_credits(session_id):
    data = AddCreditsSchema().load(_json_body())

    with _sessions().acquire(session_id) as handle:
        handle.engine.add_credits(handle.session, data['amount'])
        handle.presenter.drain()
        return jsonify({'status': True, 'session': SessionSchema().dump(handle.session)}), 200
