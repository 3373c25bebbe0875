from flask import request
from flask_socketio import emit
from typing import Dict
from egghunt.errors import HuntError
from egghunt.services.hunt import rules
from egghunt.services.hunt.sync import Subscription


# sid -> table -> open subscription
_subscriptions: Dict[str, Dict[str, Subscription]] = {}


def _get_sid() -> str:
    # request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def handle_connect():
    emit('connected', {'message': 'Connected to /ws'})


def handle_disconnect(*args):
    for sub in _subscriptions.pop(_get_sid(), {}).values():
        sub.close()


def handle_subscribe(data):
    table = (data or {}).get('table')
    if not table:
        emit('error', {'message': 'table is required'})
        return
    try:
        sub = Subscription(table, (data or {}).get('events'))
    except ValueError as exc:
        emit('error', {'message': str(exc)})
        return
    subs = _subscriptions.setdefault(_get_sid(), {})
    # Re-subscribing replaces the previous event filter for that table
    previous = subs.pop(table, None)
    if previous:
        previous.close()
    sub.open()
    subs[table] = sub
    emit('subscribed', sub.to_dict())


def handle_unsubscribe(data):
    table = (data or {}).get('table')
    if not table:
        emit('error', {'message': 'table is required'})
        return
    sub = _subscriptions.get(_get_sid(), {}).pop(table, None)
    if sub:
        sub.close()
    emit('unsubscribed', {'table': table})


def handle_refresh(data=None):
    try:
        emit('leaderboard', rules.leaderboard())
    except HuntError as exc:
        emit('error', {'message': exc.message, 'reason': exc.reason})


def handle_ping(data):
    emit('pong', data or {})


def register_socketio_handlers() -> None:
    """Register Socket.IO event handlers on the '/ws' namespace."""
    from egghunt import socketio

    handlers = {
        'connect': handle_connect,
        'disconnect': handle_disconnect,
        'subscribe': handle_subscribe,
        'unsubscribe': handle_unsubscribe,
        'refresh': handle_refresh,
        'ping': handle_ping,
    }
    for event, handler in handlers.items():
        socketio.on_event(event, handler, namespace='/ws')
