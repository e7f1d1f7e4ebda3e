"""Billing FastAPI application.

Web server that processes billing commands synchronously via HTTP and
receives the payment gateway's webhooks. Every request runs inside the
billing domain context.

Usage:
    uvicorn src.app:app --host 0.0.0.0 --port 8000 --reload
"""

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# The domain is initialized at module level so uvicorn workers share it.
# PROTEAN_ENV controls which config overlay is applied.
from billing.domain import billing  # noqa: E402

billing.init()

from billing.api.application import create_app  # noqa: E402

app = create_app()
