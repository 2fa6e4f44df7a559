'''
Static host table lookups, read from a hosts(5) style file.
'''
from __future__ import annotations

import ipaddress
import logging
from pathlib import Path

logger = logging.getLogger(__name__)


def _normalize_name(name: str) -> str:
    return name.strip().lower().rstrip('.')


def _normalize_address(address: str) -> str:
    try:
        return str(ipaddress.ip_address(address.split('%', 1)[0]))
    except ValueError:
        return address


class HostsTable:
    '''
    Maps names to addresses and addresses to names the way the resolver
    library reads `/etc/hosts`: the first address listed for a name wins
    and the first name listed for an address is its canonical name.
    '''

    def __init__(self, filename: str | Path = '/etc/hosts') -> None:
        self._path = Path(filename)
        self._addresses: dict[str, list[str]] | None = None
        self._names: dict[str, list[str]] = {}

    def load(self) -> dict[str, list[str]]:
        '''
        Read the hosts file on first use, later calls return the cached table.
        '''
        if self._addresses is not None:
            return self._addresses

        addresses: dict[str, list[str]] = {}
        names: dict[str, list[str]] = {}
        try:
            text = self._path.read_text(encoding='utf-8', errors='ignore')
        except OSError as exc:
            logger.debug(f'Hosts file {self._path} unavailable: {exc}')
            text = ''

        for line in text.splitlines():
            line = line.split('#', 1)[0].strip()
            if not line:
                continue

            address, *aliases = line.split()
            try:
                ipaddress.ip_address(address.split('%', 1)[0])
            except ValueError:
                continue

            address = _normalize_address(address)
            for alias in aliases:
                name = _normalize_name(alias)
                addresses.setdefault(name, []).append(address)
                names.setdefault(address, []).append(alias.rstrip('.'))

        self._names = names
        self._addresses = addresses
        return addresses

    def getaddress(self, name: str) -> str | None:
        found = self.load().get(_normalize_name(name))
        return found[0] if found else None

    def getname(self, address: str) -> str | None:
        self.load()
        found = self._names.get(_normalize_address(address))
        return found[0] if found else None
