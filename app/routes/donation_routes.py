from uuid import UUID

from flask import Blueprint, current_app, jsonify, request

from app.services.intent_service import create_intent
from app.services.ledger_service import (
    beneficiary_totals,
    get_donation,
    list_donations,
)

donations_bp = Blueprint("donations", __name__)


def _deps():
    return current_app.extensions["donations"]


def _is_uuid(v: str) -> bool:
    try:
        UUID(v)
        return True
    except ValueError:
        return False


def _flag(value) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)


def _int_arg(name: str, default: int) -> int | None:
    raw = request.args.get(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return None


# POST /create-payment-intent  { amount, donateToPlatform, beneficiaryId }
@donations_bp.post("/create-payment-intent")
@donations_bp.post("/api/donations/intent")
def create_payment_intent():
    body = request.get_json(force=True, silent=True) or {}
    if not isinstance(body, dict):
        return jsonify({"error": "invalid_request"}), 400

    donate = body.get("donateToPlatform", body.get("donateToApp", False))
    beneficiary_id = body.get("beneficiaryId", body.get("profileId"))
    deps = _deps()
    issued = create_intent(
        amount=body.get("amount"),
        donate_to_platform=_flag(donate),
        beneficiary_id=beneficiary_id,
        gateway=deps["gateway"],
        currency=current_app.config["STRIPE_CURRENCY"],
        directory=deps["directory"],
        idempotency_key=request.headers.get("Idempotency-Key") or None,
    )
    return jsonify(issued.to_dict()), 200


# GET /api/donations?beneficiary_id=...&limit=...&offset=...
@donations_bp.get("/api/donations")
def list_all():
    limit = _int_arg("limit", 100)
    offset = _int_arg("offset", 0)
    if limit is None or offset is None:
        return jsonify({"error": "limit and offset must be integers"}), 400
    records = list_donations(
        _deps()["store"],
        beneficiary_id=request.args.get("beneficiary_id") or None,
        limit=limit,
        offset=offset,
    )
    return jsonify([r.to_dict() for r in records]), 200


# GET /api/donations/totals?beneficiary_id=...
@donations_bp.get("/api/donations/totals")
def totals():
    deps = _deps()
    out = beneficiary_totals(
        deps["store"],
        request.args.get("beneficiary_id") or None,
        cache=deps["cache"],
        ttl=current_app.config["LEDGER_CACHE_TTL"],
    )
    return jsonify(out), 200


@donations_bp.get("/api/donations/<donation_id>")
def get_one(donation_id):
    if not _is_uuid(donation_id):
        return jsonify({"error": "donation not found"}), 404
    record = get_donation(_deps()["store"], donation_id)
    if not record:
        return jsonify({"error": "donation not found"}), 404
    return jsonify(record.to_dict()), 200
