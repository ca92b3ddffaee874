from .receiver import FileReceiver, ListenerState

__all__ = [
    'FileReceiver',
    'ListenerState'
]
