# ispdesk/utils/cache/__init__.py
from .manager import CacheManager, ResponseCache, cache_manager, make_key

__all__ = ["CacheManager", "ResponseCache", "cache_manager", "make_key"]
