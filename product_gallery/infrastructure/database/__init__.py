"""Async database infrastructure.

This module provides async database connectivity using aiosqlite.
"""
from .connection import AsyncConnectionPool, create_pool, init_async_db

__all__ = [
    'AsyncConnectionPool',
    'create_pool',
    'init_async_db',
]
