"""Runtime package.

Keep this module dependency-light: settings and logging helpers must import
without opening sockets or touching the network.
"""

__all__: list[str] = []
