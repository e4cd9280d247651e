"""Dry-run pool inspection and clause building (nothing is submitted).

Usage:
    python -m vedelegate status   --account 0x...
    python -m vedelegate deposit  --account 0x... [--b3tr N] [--vot3 N] [--all]
    python -m vedelegate withdraw --account 0x... [--b3tr N] [--vot3 N] [--all] [--recipient 0x...]
    python -m vedelegate vote     --account 0x... --app-id 0x... --percent 60 --app-id 0x... --percent 40

Amounts are raw base units (1 token = 10**18). With --sign the pool-side
clauses carry an authorization signed with VEDELEGATE_PRIVATE_KEY.
"""
import argparse
import asyncio
import json
import logging
import sys

from .authorization import LocalSigner
from .config import load_settings
from .context import PoolContext
from .coordinator import PoolCoordinator
from .errors import ConfigError, PoolNotReadyError, VoteValidationError
from .ledger import ThorClient, clauses_to_wire


def parse_args(argv=None):
    p = argparse.ArgumentParser(prog="vedelegate", description="veDelegate pool dry-run tool")
    p.add_argument("command", choices=["status", "deposit", "withdraw", "vote"])
    p.add_argument("--account", required=True, help="connected account address")
    p.add_argument("--b3tr", type=int, default=0)
    p.add_argument("--vot3", type=int, default=0)
    p.add_argument("--all", action="store_true", help="use the full available balance")
    p.add_argument("--recipient", default=None)
    p.add_argument("--app-id", action="append", default=[], dest="app_ids")
    p.add_argument("--percent", action="append", default=[], type=float, dest="percentages")
    p.add_argument("--sign", action="store_true", help="sign authorizations with VEDELEGATE_PRIVATE_KEY")
    p.add_argument("--env-file", default=None)
    return p.parse_args(argv)


async def run(args, settings):
    sign = None
    if args.sign:
        if not settings.private_key:
            raise ConfigError("--sign needs VEDELEGATE_PRIVATE_KEY")
        sign = LocalSigner(settings.private_key)

    ctx = PoolContext(
        ledger=ThorClient(settings.node_url, timeout=settings.http_timeout),
        addresses=settings.contract_addresses(),
        sign=sign,
    )
    pool = PoolCoordinator(ctx)
    await pool.set_account(args.account)

    if args.command == "status":
        return pool.snapshot()

    if args.command == "deposit":
        if args.all:
            clauses = await pool.build_deposit_all_clauses()
        else:
            clauses = await pool.build_deposit_clauses(args.b3tr, args.vot3)
    elif args.command == "withdraw":
        if args.all:
            clauses = await pool.build_withdraw_all_clauses(args.recipient)
        else:
            clauses = await pool.build_withdraw_clauses(args.b3tr, args.vot3,
                                                        args.recipient or args.account)
    else:
        clauses = await pool.build_support_clauses(args.app_ids, args.percentages)

    return {"pool": pool.address, "tokenId": pool.token_id, "clauses": clauses_to_wire(clauses)}


def main(argv=None):
    args = parse_args(argv)
    try:
        settings = load_settings(args.env_file)
    except ConfigError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 2
    logging.basicConfig(level=settings.log_level,
                        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s")

    try:
        out = asyncio.run(run(args, settings))
    except (ConfigError, PoolNotReadyError, VoteValidationError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1
    print(json.dumps(out, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
