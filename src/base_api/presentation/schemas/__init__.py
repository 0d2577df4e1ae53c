"""
Response schemas.
"""

from base_api.presentation.schemas.envelope import JSONResult, respond

__all__ = ["JSONResult", "respond"]
