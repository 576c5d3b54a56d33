from prometheus_client import Counter

WEBHOOK_NOTIFICATIONS = Counter(
    "donation_webhook_notifications_total",
    "Stripe webhook notifications by outcome",
    ["outcome"],
)

PAYMENT_INTENTS = Counter(
    "donation_payment_intents_total",
    "PaymentIntent creation attempts by result",
    ["result"],
)
