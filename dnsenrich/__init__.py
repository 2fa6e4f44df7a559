'''
**dnsenrich**
---------

DNS enrichment for streaming records. `DNSFilter` resolves hostnames to
addresses and addresses to hostnames in configured record fields.
'''
from dnsenrich.filter import DNSFilter, FilterConfig, FilterResult, Outcome

__all__ = [
    'DNSFilter',
    'FilterConfig',
    'FilterResult',
    'Outcome',
]
