class ResolutionError(Exception):
    '''
    Base class for failed forward or reverse lookups.

    Parent: Exception
    '''
    def __init__(self, query: str, message: str = '') -> None:
        self.query = query
        super().__init__(message or f'Lookup failed for {query}')


class NotFoundError(ResolutionError):
    '''
    Raised when the name or address has no matching record.

    Parent: ResolutionError
    '''


class ResolveTimeoutError(ResolutionError, TimeoutError):
    '''
    Raised when the resolver gives up waiting on the nameserver.

    Parent: ResolutionError, TimeoutError
    '''


class TransportError(ResolutionError):
    '''
    Raised on network or socket failures while talking to a nameserver.

    Parent: ResolutionError
    '''
