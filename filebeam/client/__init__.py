from .sender import FileSender

__all__ = ['FileSender']
