from .offset_store import OffsetStore
from .pending_store import PendingMatchStore

__all__ = ['OffsetStore', 'PendingMatchStore']
