"""
Locust load test: hammer the webhook with duplicate deliveries.

Install: pip install -e ".[load]"
Run: STRIPE_WEBHOOK_SECRET=whsec_... locust -f locustfile.py --host=http://127.0.0.1:4000

Every user replays notifications for a small pool of intents, so the ledger
should end with one row per intent no matter how many deliveries land
concurrently. Check afterwards with GET /api/donations/totals.
"""

import hashlib
import hmac
import json
import os
import random
import time

from locust import HttpUser, between, task

SECRET = os.getenv("STRIPE_WEBHOOK_SECRET", "")
POOL = int(os.getenv("LOCUST_INTENT_POOL", "20"))
RUN_ID = os.getenv("LOCUST_RUN_ID", str(int(time.time())))


def _payload(intent_id: str) -> bytes:
    return json.dumps(
        {
            "id": f"evt_{intent_id}",
            "type": "payment_intent.succeeded",
            "data": {
                "object": {
                    "id": intent_id,
                    "amount": 10000,
                    "currency": "usd",
                    "metadata": {
                        "beneficiary_id": "load-test",
                        "platform_share_cents": "1000",
                        "beneficiary_share_cents": "9000",
                    },
                }
            },
        }
    ).encode()


def _signature(payload: bytes) -> str:
    ts = int(time.time())
    mac = hmac.new(SECRET.encode(), f"{ts}.".encode() + payload, hashlib.sha256)
    return f"t={ts},v1={mac.hexdigest()}"


class WebhookUser(HttpUser):
    wait_time = between(0.1, 0.5)

    @task(10)
    def duplicate_delivery(self):
        intent_id = f"pi_load_{RUN_ID}_{random.randrange(POOL)}"
        payload = _payload(intent_id)
        self.client.post(
            "/webhook",
            data=payload,
            headers={
                "Content-Type": "application/json",
                "Stripe-Signature": _signature(payload),
            },
            name="/webhook",
        )

    @task(2)
    def ledger(self):
        self.client.get("/api/donations?beneficiary_id=load-test&limit=20")

    @task(1)
    def ping(self):
        self.client.get("/__ping")
