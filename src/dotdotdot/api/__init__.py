"""HTTP API for the bullets service."""

from dotdotdot.api.server import BulletsAPIServer, run_server

__all__ = ["BulletsAPIServer", "run_server"]
