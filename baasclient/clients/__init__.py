from .base import BaseClient
from .hosts import HostSelector
from .rest import RestClient

__all__ = [
    "BaseClient",
    "HostSelector",
    "RestClient",
]
