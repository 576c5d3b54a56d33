from flask import Blueprint, current_app, jsonify, request

from app.realtime import publish_donation
from app.services.ledger_service import invalidate_totals
from app.services.webhook_service import process_stripe_event

webhooks_bp = Blueprint("webhooks", __name__)


@webhooks_bp.post("/webhook")
@webhooks_bp.post("/webhooks/stripe")
def stripe_webhook():
    # The signature covers the exact bytes Stripe sent, so the body is read
    # raw and never run through get_json() before verification.
    payload = request.get_data(cache=False)
    deps = current_app.extensions["donations"]

    def on_recorded(record):
        invalidate_totals(deps["cache"], record.beneficiary_id)
        publish_donation(record)

    status, resp = process_stripe_event(
        payload,
        request.headers.get("Stripe-Signature"),
        secret=current_app.config["STRIPE_WEBHOOK_SECRET"],
        tolerance=current_app.config["STRIPE_WEBHOOK_TOLERANCE"],
        store=deps["store"],
        on_recorded=on_recorded,
    )
    return jsonify(resp), status
