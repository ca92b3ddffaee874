from .history import Direction, TransferRecord, TransferHistory

__all__ = [
    'Direction',
    'TransferRecord',
    'TransferHistory'
]
