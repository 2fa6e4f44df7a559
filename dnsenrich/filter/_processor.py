import logging
from collections.abc import Awaitable, Callable
from typing import Protocol

from dnsenrich.dns import ResolutionError
from dnsenrich.filter._config import Action
from dnsenrich.filter._fields import (
    InvalidFieldError,
    MultipleValuesError,
    Record,
    apply_action,
    is_ip_address,
    read_field,
)

logger = logging.getLogger(__name__)


class Resolver(Protocol):
    async def getaddress(self, name: str) -> str: ...

    async def getname(self, address: str) -> str: ...


class FieldProcessor:
    '''
    Runs forward or reverse lookups over a list of record fields and writes
    the results back according to `action`.

    Both `resolve` and `reverse` stop at the first field that can't be
    processed and return False. Fields already written in that pass are
    left as they are.
    '''

    def __init__(self, resolver: Resolver, action: Action = 'append') -> None:
        self._resolver = resolver
        self._action: Action = action

    async def _process(
        self,
        record: Record,
        fields: tuple[str, ...],
        phase: str,
        lookup: Callable[[str], Awaitable[str]],
        address_only: bool = False,
    ) -> bool:
        for field in fields:
            try:
                current = read_field(record, field)
            except MultipleValuesError as exc:
                logger.warning(
                    f"DNS: skipping {phase}, can't deal with multiple values "
                    f"field={field} value={exc.value!r}"
                )
                return False
            except InvalidFieldError as exc:
                logger.debug(f'DNS: skipping {phase}, {exc}')
                return False

            raw = current.candidate
            if address_only and not is_ip_address(raw):
                logger.debug(f'DNS: not an address field={field} value={record[field]!r}')
                return False

            try:
                result = await lookup(raw)
            except ResolutionError as exc:
                logger.debug(
                    f"DNS: couldn't {phase} {raw!r} ({type(exc).__name__}: {exc}) "
                    f"field={field}"
                )
                return False

            apply_action(record, field, current, result, self._action)

        return True

    async def resolve(self, record: Record, fields: tuple[str, ...]) -> bool:
        '''
        Forward resolve each field (hostname to address).

        Parameters
        ----------
        record : Record
            The working record, mutated in place.
        fields : tuple[str, ...]

        Returns
        -------
        bool
            True if every field was resolved.
        '''
        return await self._process(record, fields, 'resolve', self._resolver.getaddress)

    async def reverse(self, record: Record, fields: tuple[str, ...]) -> bool:
        '''
        Reverse resolve each field (address to hostname). Values that are
        not IPv4 or IPv6 addresses are never sent to the resolver.

        Parameters
        ----------
        record : Record
            The working record, mutated in place.
        fields : tuple[str, ...]

        Returns
        -------
        bool
            True if every field was resolved.
        '''
        return await self._process(
            record,
            fields,
            'reverse',
            self._resolver.getname,
            address_only=True,
        )
