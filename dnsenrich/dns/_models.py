import dataclasses as dc


@dc.dataclass(slots=True)
class ResolverConfig:
    '''
    Options for the lookups made by `DNSBackend`.

    When `nameserver` is None the system resolver is used, otherwise the
    hosts file is consulted before querying `nameserver` directly.
    '''
    nameserver: str | None = None
    timeout: float = 2.0
    hostsfile: str = '/etc/hosts'
