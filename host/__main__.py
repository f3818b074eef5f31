import argparse
import asyncio
import logging

from engine.models import EngineConfig
from engine.showdown import STRATEGIES
from tables.session import TableSession

from .server import HostServer


def main() -> None:
    parser = argparse.ArgumentParser(description="Table poker host server")
    parser.add_argument("--host", default="0.0.0.0")
    parser.add_argument("--port", type=int, default=8765)
    parser.add_argument("--starting-balance", type=int, default=1_000, help="Doubloons granted to new profiles")
    parser.add_argument("--table-limit", type=int, default=20, help="Maximum tables returned by list_tables")
    parser.add_argument("--conflict-retries", type=int, default=2, help="Retries for a request that hit a concurrent update")
    parser.add_argument(
        "--showdown",
        choices=sorted(STRATEGIES),
        default="split",
        help="How the river showdown picks winners (split shares the pot among every active seat)",
    )
    parser.add_argument("--log-level", default="INFO")
    args = parser.parse_args()

    logging.basicConfig(level=getattr(logging, args.log_level.upper(), logging.INFO))

    config = EngineConfig(
        starting_balance=args.starting_balance,
        recent_table_limit=args.table_limit,
        conflict_retries=args.conflict_retries,
    )
    tables = TableSession(config=config, strategy=STRATEGIES[args.showdown])
    server = HostServer(tables)
    asyncio.run(server.start(host=args.host, port=args.port))


if __name__ == "__main__":
    main()
