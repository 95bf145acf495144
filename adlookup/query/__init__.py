from .query_builder import DirectoryQuery

__all__ = ['DirectoryQuery']
