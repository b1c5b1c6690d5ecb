import argparse
import asyncio
import logging
import sys

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.FileHandler("sweeper.log"),
        logging.StreamHandler()
    ]
)
logger = logging.getLogger("Sweeper")

import config
from services.errors import ConfigurationError, ProviderConnectionError
from services.models import AssetClass
from services.sweep_scheduler import start_sweep
from utils.sweep_log import SweepLog


def build_parser():
    parser = argparse.ArgumentParser(description="Sweep native coins, ERC-20 tokens or NFTs to one address")
    parser.add_argument("--asset", choices=[a.value for a in AssetClass], help="Asset type to sweep")
    parser.add_argument("--network", help="Network name from the config file")
    parser.add_argument("--config", default=None, help=f"Config file (default: {config.SWEEP_CONFIG_FILE})")
    parser.add_argument("--once", action="store_true", help="Run a single round and exit")
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    log = SweepLog(logger)

    try:
        log.info("Loading configuration...")
        sweep_config = config.validate_config(config.load_config(args.config))
    except ConfigurationError as e:
        log.error(f"[ERROR] {e}")
        return 1

    if not args.asset or not args.network:
        print(f"Asset types: {', '.join(a.value for a in AssetClass)}")
        print(f"Networks: {', '.join(sorted(sweep_config.networks))}")
        print("Choose both --asset and --network.")
        return 2

    try:
        asyncio.run(start_sweep(
            args.asset,
            args.network,
            sweep_config=sweep_config,
            log=log,
            max_rounds=1 if args.once else None,
        ))
    except (ConfigurationError, ProviderConnectionError) as e:
        log.error(f"The application encountered a fatal error: {e}")
        return 1
    except KeyboardInterrupt:
        log.info("Thank you for using the sweeper. Exiting...")
    return 0


if __name__ == "__main__":
    sys.exit(main())
