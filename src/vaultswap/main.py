"""Command-line entry point: run one configured swap."""

import argparse
import asyncio
import json
import logging
import sys
from typing import Optional

from pydantic import ValidationError

from vaultswap.config import Settings, load_swap_config
from vaultswap.errors import ConfigurationError
from vaultswap.swap.executor import SwapOutcome, create_swap_executor

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_CONFIG = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Execute a single Uniswap swap through a custody vault")
    parser.add_argument("--amount", type=str, help="Input amount in natural units (overrides AMOUNT_IN)")
    parser.add_argument("--token-in", type=str, help="Input token symbol (overrides TOKEN_IN)")
    parser.add_argument("--token-out", type=str, help="Output token symbol (overrides TOKEN_OUT)")
    parser.add_argument("--dry-run", action="store_true", default=None, help="Do not broadcast anything")
    parser.add_argument("--live", dest="dry_run", action="store_false", help="Broadcast through the signer")
    parser.add_argument("--show-config", action="store_true", help="Print redacted settings and exit")
    return parser


def load_settings(args: argparse.Namespace) -> Settings:
    """Settings from the environment with command-line overrides applied."""
    overrides = {}
    if args.amount is not None:
        overrides["amount_in"] = args.amount
    if args.token_in is not None:
        overrides["token_in"] = args.token_in
    if args.token_out is not None:
        overrides["token_out"] = args.token_out
    if args.dry_run is not None:
        overrides["dry_run"] = args.dry_run

    try:
        return Settings(**overrides)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e


def report(outcome: SwapOutcome) -> None:
    """Log the final outcome."""
    logger.info("=" * 60)
    logger.info(f"SWAP {outcome.state.value.upper()}")
    logger.info("=" * 60)
    logger.info(f"  States: {' -> '.join(state.value for state in outcome.history)}")
    if outcome.approval:
        logger.info(f"  Approval tx: {outcome.approval.tx_hash}")
    if outcome.transaction:
        logger.info(f"  Swap to:     {outcome.transaction.to}")
        logger.info(f"  Value:       {outcome.transaction.value}")
    if outcome.succeeded and outcome.reference_kind == "custody_id":
        logger.info(f"  Signer ref:  {outcome.tx_hash} (not an on-chain hash)")
    elif outcome.succeeded:
        logger.info(f"  Swap tx:     {outcome.tx_hash}")
    else:
        logger.error(f"  Failed at {outcome.failed_step}: {outcome.error}")


async def run(settings: Settings) -> SwapOutcome:
    config = load_swap_config(settings)
    executor = create_swap_executor(settings, config)
    return await executor.execute()


def main(argv: Optional[list[str]] = None) -> None:
    args = build_parser().parse_args(argv)

    try:
        settings = load_settings(args)
    except ConfigurationError as e:
        logging.basicConfig(level=logging.INFO)
        logger.error(str(e))
        sys.exit(EXIT_CONFIG)

    log_level = logging.DEBUG if settings.debug else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    if args.show_config:
        print(json.dumps(settings.get_safe_dict(), indent=2))
        sys.exit(EXIT_OK)

    if settings.dry_run:
        logger.info("DRY RUN MODE - nothing will be broadcast")

    try:
        outcome = asyncio.run(run(settings))
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        sys.exit(EXIT_CONFIG)

    report(outcome)
    sys.exit(EXIT_OK if outcome.succeeded else EXIT_FAILED)


if __name__ == "__main__":
    main()
