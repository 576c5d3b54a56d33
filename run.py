import logging
import os

from app import create_app
from app.realtime import socketio

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)

app = create_app()

if __name__ == "__main__":
    port = int(os.getenv("PORT", 4000))
    socketio.run(
        app,
        host=os.getenv("HOST", "127.0.0.1"),
        port=port,
        debug=False,
        use_reloader=False,
        log_output=True,
        # development server; deploy behind gunicorn instead
        allow_unsafe_werkzeug=True,
    )

# Local run:
#   docker compose --env-file .env.docker up -d     (postgres, redis)
#   alembic upgrade head
#   PORT=4000 python run.py
#
# Forward Stripe test-mode webhooks:
#   stripe listen --forward-to localhost:4000/webhook
