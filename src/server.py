"""Protean Engine runner for the billing domain.

Starts the Engine that processes billing events asynchronously, so the
order ledger and payment activity projections (and any PaymentPaid
subscribers) run outside the request.

Usage:
    python src/server.py
"""

import asyncio

from protean.server.engine import Engine


async def run():
    from billing.domain import billing

    billing.init()
    await Engine(billing).run()


def main():
    asyncio.run(run())


if __name__ == "__main__":
    main()
