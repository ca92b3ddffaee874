from .progress import TransferObserver, ProgressTracker
from .session import TransferSession

__all__ = [
    'TransferObserver',
    'ProgressTracker',
    'TransferSession'
]
