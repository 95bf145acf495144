from .adlookup_facade import ADLookupFacade

__all__ = ['ADLookupFacade']
