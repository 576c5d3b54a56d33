import logging
import os

from flask import request
from flask_socketio import SocketIO, emit, join_room, leave_room

logger = logging.getLogger(__name__)

_raw = os.getenv("SOCKETIO_CORS_ORIGINS", "*").strip()
CORS_ORIGINS = "*" if _raw == "*" else [o.strip() for o in _raw.split(",") if o.strip()]

socketio = SocketIO(cors_allowed_origins=CORS_ORIGINS)

LEDGER_ROOM = "ledger"


def beneficiary_room(beneficiary_id: str | None) -> str:
    return f"beneficiary:{beneficiary_id or 'none'}"


def publish_donation(record) -> None:
    """Push a freshly recorded donation to live listeners."""
    payload = record.to_dict()
    socketio.emit("donation", payload, to=beneficiary_room(record.beneficiary_id))
    socketio.emit("donation", payload, to=LEDGER_ROOM)


def init_socketio(app):
    socketio.init_app(
        app,
        async_mode=app.config.get("SOCKETIO_ASYNC_MODE") or None,
        logger=False,
        engineio_logger=False,
    )

    @socketio.on("connect")
    def handle_connect():
        logger.debug("socket connect origin=%s", request.headers.get("Origin"))
        emit("connected", {"ok": True})

    @socketio.on("join_ledger")
    def on_join_ledger():
        join_room(LEDGER_ROOM)
        emit("joined", {"room": LEDGER_ROOM})

    @socketio.on("join_beneficiary")
    def on_join(data):
        bid = (data or {}).get("beneficiary_id")
        if not bid:
            emit("error", {"error": "beneficiary_id required"})
            return
        room = beneficiary_room(bid)
        join_room(room)
        emit("joined", {"room": room})

    @socketio.on("leave_beneficiary")
    def on_leave(data):
        bid = (data or {}).get("beneficiary_id")
        if not bid:
            return
        room = beneficiary_room(bid)
        leave_room(room)
        emit("left", {"room": room})
