"""
Agent server for pingprobe.

Accepts measurement jobs over a websocket and streams their progress
and results back.
"""

from .app import create_app, run_server

__all__ = ["create_app", "run_server"]
