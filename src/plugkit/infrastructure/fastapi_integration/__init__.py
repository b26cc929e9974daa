"""
FastAPI integration module.

Registers plugin controller routes on a FastAPI application and serializes
pipeline results into Starlette responses.
"""

from .integration import build_raw_arguments, create_endpoint, mount, to_response

__all__ = [
    "mount",
    "create_endpoint",
    "build_raw_arguments",
    "to_response",
]
