from .cache import EntityCache
from .detail_resolver import DetailResolver
from .retry import RetryCoordinator, TransientPolicy

__all__ = [
    "DetailResolver",
    "EntityCache",
    "RetryCoordinator",
    "TransientPolicy",
]
