"""Start the relying party HTTP server.

Reads settings from the environment (and a ``.env`` file, if present).
"""

import asyncio
import logging

from dotenv import load_dotenv

from pkcegate.config import RelyingPartyConfig
from pkcegate.web.server import RelyingPartyServer

LOG_FORMAT = "[%(asctime)s - %(levelname)s]: %(message)s"


async def run(config: RelyingPartyConfig) -> None:
    server = RelyingPartyServer(config)
    await server.serve()


def main() -> None:
    load_dotenv()
    config = RelyingPartyConfig.from_env()
    logging.basicConfig(level=config.log_level, format=LOG_FORMAT)
    asyncio.run(run(config))


if __name__ == "__main__":
    main()
