"""Entry point for ``python -m renderd``. Takes no arguments."""

import asyncio

from renderd.server.socket_server import run_server


def main() -> None:
    asyncio.run(run_server())


if __name__ == "__main__":
    main()
