'''
**dnsenrich.dns**
-------------


The resolver facade used by the DNS filter for forward (hostname to address)
and reverse (address to hostname) lookups.
See: `dnsenrich.dns._core` and `dnsenrich.dns._hosts` for more details.
'''
from dnsenrich.dns._core import (
    DNSBackend,
)
from dnsenrich.dns._errors import (
    NotFoundError,
    ResolutionError,
    ResolveTimeoutError,
    TransportError,
)
from dnsenrich.dns._hosts import HostsTable
from dnsenrich.dns._models import ResolverConfig

__all__ = [
    "DNSBackend",
    "NotFoundError",
    "ResolutionError",
    "ResolveTimeoutError",
    "TransportError",
    "HostsTable",
    "ResolverConfig",
]
