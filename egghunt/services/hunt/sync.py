"""Change feed for live views.

Every committed mutation of a watched table is announced on the ``/ws``
namespace as a ``table_changed`` event. The payload only says *that*
something changed: observers re-fetch the leaderboard or their own
progress instead of applying it as a delta. Delivery is best effort, so
clients also keep a manual ``refresh``.

Each (table, kind) pair has its own room, which lets a socket subscribe
to e.g. only inserts and deletes on ``found_records``.
"""

from typing import Iterable, Optional, Tuple

from flask import current_app
from flask_socketio import join_room, leave_room

from egghunt import socketio

NAMESPACE = '/ws'
TABLES: Tuple[str, ...] = ('secret_codes', 'found_records', 'participants')
KINDS: Tuple[str, ...] = ('insert', 'update', 'delete')


def room_for(table: str, kind: str) -> str:
    return f"feed:{table}:{kind}"


def publish(table: str, kind: str, **extra) -> None:
    """Announce a committed change. Call only after the commit succeeded."""
    if table not in TABLES or kind not in KINDS:
        raise ValueError(f"unknown change {table}:{kind}")
    payload = {'table': table, 'event': kind}
    payload.update(extra)
    socketio.emit('table_changed', payload, to=room_for(table, kind), namespace=NAMESPACE)
    current_app.logger.info(f"[sync] table={table} event={kind} extra={extra or '-'}")


class Subscription:
    """Interest of one socket connection in one table's change stream.

    Must be opened and closed from inside a Socket.IO handler, since the
    room membership belongs to the calling connection.
    """

    def __init__(self, table: str, events: Optional[Iterable[str]] = None):
        if table not in TABLES:
            raise ValueError(f"unknown table: {table}")
        events = tuple(events) if events else KINDS
        unknown = [e for e in events if e not in KINDS]
        if unknown:
            raise ValueError(f"unknown event kind(s): {', '.join(unknown)}")
        self.table = table
        self.events = tuple(e for e in KINDS if e in events)
        self.is_open = False

    def rooms(self):
        return [room_for(self.table, kind) for kind in self.events]

    def open(self) -> None:
        if self.is_open:
            return
        for room in self.rooms():
            join_room(room)
        self.is_open = True

    def close(self) -> None:
        if not self.is_open:
            return
        for room in self.rooms():
            leave_room(room)
        self.is_open = False

    def to_dict(self):
        return {'table': self.table, 'events': list(self.events)}
