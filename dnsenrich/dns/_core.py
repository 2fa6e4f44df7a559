import asyncio
import contextlib
import logging
import socket
from concurrent.futures import ThreadPoolExecutor
import dns
import dns.asyncresolver
import dns.exception
import dns.name
import dns.resolver
import dns.reversename
import dns.rdatatype as rtype
from dnsenrich.dns._errors import (
    NotFoundError,
    ResolutionError,
    ResolveTimeoutError,
    TransportError,
)
from dnsenrich.dns._hosts import HostsTable
from dnsenrich.dns._models import ResolverConfig

logger = logging.getLogger(__name__)


_NOT_FOUND_EAI = frozenset(
    code for code in (
        getattr(socket, 'EAI_NONAME', None),
        getattr(socket, 'EAI_NODATA', None),
        getattr(socket, 'EAI_ADDRFAMILY', None),
    )
    if code is not None
)


@contextlib.contextmanager
def _translate_errors(query: str):
    '''
    Context manager to turn resolver and socket exceptions into
    the `ResolutionError` hierarchy.

    Parameters
    ----------
    query : str
        The name or address being looked up.
    '''
    try:
        yield
    except ResolutionError:
        raise
    except (dns.resolver.NXDOMAIN, dns.resolver.NoAnswer) as exc:
        raise NotFoundError(query, f'No record for {query}') from exc
    except dns.exception.Timeout as exc:
        raise ResolveTimeoutError(query, f'Timeout while resolving {query}') from exc
    except dns.resolver.NoNameservers as exc:
        raise TransportError(query, f'No nameservers available for {query}') from exc
    except dns.exception.DNSException as exc:
        raise ResolutionError(query, f'Error resolving {query}: {exc}') from exc
    except socket.herror as exc:
        raise NotFoundError(query, f'No record for {query}') from exc
    except socket.gaierror as exc:
        if exc.errno in _NOT_FOUND_EAI:
            raise NotFoundError(query, f'No record for {query}') from exc
        if exc.errno == getattr(socket, 'EAI_AGAIN', None):
            raise ResolveTimeoutError(query, f'Timeout while resolving {query}') from exc
        raise TransportError(query, f'Socket error resolving {query}: {exc}') from exc
    except TimeoutError as exc:
        raise ResolveTimeoutError(query, f'Timeout while resolving {query}') from exc
    except OSError as exc:
        raise TransportError(query, f'Socket error resolving {query}: {exc}') from exc
    except UnicodeError as exc:
        raise NotFoundError(query, f'Cannot encode {query}: {exc}') from exc


def _first_address(infos: list[tuple]) -> str:
    ipv4 = [info for info in infos if info[0] == socket.AF_INET]
    chosen = ipv4[0] if ipv4 else infos[0]
    return str(chosen[4][0]).split('%', 1)[0]


class DNSBackend:
    '''
    Forward and reverse lookups backed either by the system resolver
    or by a single configured nameserver.
    '''
    _FORWARD_TYPES = (
        rtype.A,
        rtype.AAAA,
    )
    _MAX_WORKERS = 16

    def __init__(self, config: ResolverConfig | None = None) -> None:
        self._config = config or ResolverConfig()
        self._hosts: HostsTable | None = None
        self._resolver: dns.asyncresolver.Resolver | None = None
        self._executor: ThreadPoolExecutor | None = None

        if self._config.nameserver is None:
            self._executor = ThreadPoolExecutor(
                max_workers=self._MAX_WORKERS,
                thread_name_prefix='dnsenrich',
            )
        else:
            self._hosts = HostsTable(self._config.hostsfile)
            self._hosts.load()
            self._resolver = dns.asyncresolver.Resolver(configure=False)
            self._resolver.nameservers = [self._config.nameserver]
            self._resolver.search = []
            self._resolver.ndots = 1
            self._resolver.timeout = self._config.timeout
            self._resolver.lifetime = self._config.timeout

    async def _query(self, qname: str | dns.name.Name, rdtype: rtype.RdataType) -> dns.resolver.Answer:
        assert self._resolver is not None
        return await self._resolver.resolve(
            qname=qname,
            rdtype=rdtype,
            search=False,
            lifetime=self._config.timeout,
        )

    async def _nameserver_address(self, name: str) -> str:
        missing: dns.exception.DNSException | None = None
        for rt in self._FORWARD_TYPES:
            try:
                answer = await self._query(name, rt)
            except dns.resolver.NoAnswer as exc:
                missing = exc
                continue
            for record in answer:
                return record.address
        raise NotFoundError(name, f'No address for {name}') from missing

    async def _nameserver_name(self, address: str) -> str:
        answer = await self._query(dns.reversename.from_address(address), rtype.PTR)
        for record in answer:
            return str(record.target).rstrip('.')
        raise NotFoundError(address, f'No PTR record for {address}')

    async def _in_thread(self, func, *args):
        '''
        Run a blocking system lookup on the backend's own thread pool.
        A caller that stops waiting (e.g. a phase timeout) leaves the thread
        to finish on its own, the event loop never joins it.
        '''
        assert self._executor is not None
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._executor, func, *args)

    async def _system_address(self, name: str) -> str:
        infos = await self._in_thread(
            socket.getaddrinfo, name, None, 0, socket.SOCK_STREAM
        )
        if not infos:
            raise NotFoundError(name, f'No address for {name}')
        return _first_address(infos)

    async def _system_name(self, address: str) -> str:
        hostname, _aliases, _addrs = await self._in_thread(
            socket.gethostbyaddr, address
        )
        return hostname.rstrip('.')

    async def getaddress(self, name: str) -> str:
        '''
        Resolve a hostname to its first address.

        Parameters
        ----------
        name : str

        Returns
        -------
        str

        Raises
        ------
        NotFoundError
            If the name has no A or AAAA record.
        ResolveTimeoutError
            If the resolver timed out.
        TransportError
            If the nameserver could not be reached.
        '''
        logger.debug(f'Resolving hostname {name}')
        with _translate_errors(name):
            if self._resolver is None:
                return await self._system_address(name)

            if self._hosts is not None and (address := self._hosts.getaddress(name)):
                return address
            return await self._nameserver_address(name)

    async def getname(self, address: str) -> str:
        '''
        Resolve an address to its hostname (the PTR target).

        Parameters
        ----------
        address : str

        Returns
        -------
        str

        Raises
        ------
        NotFoundError
            If the address has no PTR record.
        ResolveTimeoutError
            If the resolver timed out.
        TransportError
            If the nameserver could not be reached.
        '''
        logger.debug(f'Reverse resolving address {address}')
        with _translate_errors(address):
            if self._resolver is None:
                return await self._system_name(address)

            if self._hosts is not None and (hostname := self._hosts.getname(address)):
                return hostname
            return await self._nameserver_name(address)

    def close(self) -> None:
        '''
        Release the lookup thread pool without waiting on lookups still
        in flight.
        '''
        if self._executor is not None:
            self._executor.shutdown(wait=False, cancel_futures=True)

    @property
    def config(self) -> ResolverConfig:
        return self._config

    @property
    def resolver(self) -> dns.asyncresolver.Resolver | None:
        return self._resolver
