# Teneo Fleet - Main Entry Point
# Keeps one Teneo node WebSocket alive per access token

"""
Teneo Fleet - Entry Point

Flow:
config/config.yaml + config/secrets.env -> banner -> token file -> fleet

Exit codes:
- 0: fleet stopped by SIGINT/SIGTERM
- 1: invalid configuration, or token file missing/unreadable/empty
"""

import asyncio
import sys

from teneo_fleet.accounts.token_loader import TokenFileError, load_tokens
from teneo_fleet.fleet.orchestrator import FleetOrchestrator
from teneo_fleet.utils.banner import display_banner
from teneo_fleet.utils.config import load_config, validate_config
from teneo_fleet.utils.logger import setup_logger

# Configured before any component creates its logger
COMPONENT_LOGGERS = ("Main", "Fleet", "WebSocketClient", "HeartbeatManager")


async def main() -> int:
    """Main entry point"""
    config = load_config()

    log_config = config.get('logging', {})
    for name in COMPONENT_LOGGERS:
        setup_logger(name, str(log_config.get('level', 'INFO')), log_config.get('log_file'))
    logger = setup_logger("Main")

    is_valid, errors = validate_config(config)
    if not is_valid:
        logger.error("Configuration validation failed:")
        for error in errors:
            logger.error(f"  - {error}")
        return 1

    display_banner()

    try:
        tokens = load_tokens(config['files']['token_file'])
    except TokenFileError as e:
        logger.error(f"Error reading tokens file: {e}")
        return 1

    fleet = FleetOrchestrator(tokens, config)
    return await fleet.run()


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
