"""Write phase: synchronize form values onto models and persist them."""

from form_sync.sync.persistence import save
from form_sync.sync.synchronizer import Synchronizer

__all__ = [
    "Synchronizer",
    "save",
]
