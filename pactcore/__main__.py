"""Entry point: python -m pactcore

Query the broker database directly, without going through HTTP.

Usage:
    python -m pactcore init-db
    python -m pactcore can-i-deploy --pacticipant web --version 1.0.0 [--to prod]
    python -m pactcore matrix --pacticipant web [--version 1.0.0] [--tag prod]
    python -m pactcore for-verification --provider api [--selector '{"tag": "main"}' ...]

can-i-deploy exits with status 1 when the version is not deployable.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys

from broker.config import settings
from broker.database import close_db, engine, init_db
from pactcore.matrix import summarize
from pactcore.selection import ConsumerVersionSelector
from pactcore.service import PactBroker


def _print(payload) -> None:
    print(json.dumps(payload, indent=2))


def _parse_selectors(raw: list[str]) -> list[ConsumerVersionSelector]:
    return [ConsumerVersionSelector.model_validate(json.loads(item)) for item in raw]


async def run(args: argparse.Namespace) -> int:
    broker = PactBroker(engine)
    try:
        await broker.start(init_db)

        if args.command == "init-db":
            print(f"Schema ready at {settings.database_url}")
            return 0

        if args.command == "can-i-deploy":
            decision = await broker.can_i_deploy(args.pacticipant, args.version, args.to)
            _print(decision.to_dict())
            return 0 if decision.deployable else 1

        if args.command == "matrix":
            rows = await broker.build_matrix(args.pacticipant, args.version, args.tag)
            _print(summarize(rows).to_dict())
            return 0

        if args.command == "for-verification":
            items = await broker.pacts_for_verification(args.provider, _parse_selectors(args.selector))
            _print([
                {
                    "consumer": item.pact.consumer_name,
                    "version": item.pact.consumer_version_number,
                    "sha": item.pact.content_sha,
                    "notices": item.notices,
                }
                for item in items
            ])
            return 0
    finally:
        await close_db()
    return 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="pactcore", description="Pact broker core queries")
    parser.add_argument("--log-level", default=settings.log_level)
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("init-db", help="Create or migrate the schema")

    deploy = sub.add_parser("can-i-deploy", help="Is this version safe to deploy?")
    deploy.add_argument("--pacticipant", required=True)
    deploy.add_argument("--version", required=True)
    deploy.add_argument("--to", default=None, help="Only count verifications by the provider version with this tag")

    matrix = sub.add_parser("matrix", help="Show the compatibility matrix")
    matrix.add_argument("--pacticipant", required=True)
    matrix.add_argument("--version", default=None)
    matrix.add_argument("--tag", default=None)

    verify = sub.add_parser("for-verification", help="List pacts a provider must verify")
    verify.add_argument("--provider", required=True)
    verify.add_argument(
        "--selector", action="append", default=[],
        help='Consumer version selector as JSON, e.g. \'{"tag": "main"}\'; repeatable',
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=args.log_level.upper(), format="%(levelname)s %(name)s: %(message)s")
    return asyncio.run(run(args))


if __name__ == "__main__":
    sys.exit(main())
