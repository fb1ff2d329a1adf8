"""
indexsync.

Read-after-write consistency bridge between a chain and its indexer.
"""

__version__ = "0.1.0"
