"""
Admin data layer: time-boxed cache, local store and the panel that drives them.
"""
from .cache import AdminCache, CacheState
from .store import AdminStore, MutationKind
from .panel import AdminPanel, LoadResult

__all__ = ['AdminCache', 'CacheState', 'AdminStore', 'MutationKind', 'AdminPanel', 'LoadResult']
