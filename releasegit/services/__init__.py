"""
Service layer for releasegit.

Contains the history synthesis logic that drives domain objects and
infrastructure:
- TreeBuilder: Archive entries -> tree object
- CommitChainBuilder: Ordered releases -> linear commit chain with tags
- HistoryUpdater: Catalog -> ordered, pre-resolved chain -> "latest" ref

Services are the primary API for commands to use.
"""

from .cancellation import CancellationToken
from .tree_builder import TreeBuilder, build_tree
from .chain_builder import CommitChainBuilder
from .history_updater import HistoryUpdater, order_releases, pre_resolve, update_history

__all__ = [
    'CancellationToken',
    'TreeBuilder',
    'build_tree',
    'CommitChainBuilder',
    'HistoryUpdater',
    'order_releases',
    'pre_resolve',
    'update_history',
]
