"""Scan one Solana wallet and print the snapshot as JSON.

Usage:
    PYTHONPATH=src python scripts/scan_wallet.py <address> [--no-tokens]
"""

import argparse
import asyncio
import logging

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)-5s %(name)s - %(message)s")
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)


async def main(address: str, tokens: bool) -> None:
    from walletscope.container import Container

    container = Container()
    try:
        if tokens:
            snapshot = await container.wallet_assembler().assemble(address)
            print(snapshot.model_dump_json(indent=2))
        else:
            result = await container.transaction_pipeline().fetch_transactions(address)
            print(result.model_dump_json(indent=2))
            print(
                f"\n{len(result.transactions)} transactions, "
                f"{len(result.abandoned)} abandoned, {len(result.pending)} pending"
            )
    finally:
        await container.rpc_http().close()
        await container.price_http().close()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("address")
    parser.add_argument("--no-tokens", action="store_true", help="only fetch transaction history")
    args = parser.parse_args()
    asyncio.run(main(args.address, tokens=not args.no_tokens))
