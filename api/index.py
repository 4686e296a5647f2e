"""Serverless entry point: the hosting platform imports `app` from here"""

from deepguard.server import app

__all__ = ["app"]
