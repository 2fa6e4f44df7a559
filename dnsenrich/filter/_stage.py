from __future__ import annotations

import asyncio
import copy
import dataclasses as dc
import enum
import logging
from collections.abc import Awaitable, Callable, Iterable, Mapping
from typing import Any

from dnsenrich.dns import DNSBackend
from dnsenrich.filter._config import FilterConfig
from dnsenrich.filter._fields import Record
from dnsenrich.filter._processor import FieldProcessor, Resolver

logger = logging.getLogger(__name__)

Predicate = Callable[[Record], bool]


class Outcome(enum.Enum):
    EMIT = 'emit'
    DROP = 'drop'
    PASS_THROUGH = 'pass_through'


@dc.dataclass(slots=True)
class FilterResult:
    '''
    What the pipeline should do with a record after the DNS filter ran.

    - EMIT: send `record` (the enriched copy) downstream in place of the input
    - DROP: send nothing, `record` is None
    - PASS_THROUGH: the record was not eligible, `record` is the untouched input
    '''
    outcome: Outcome
    record: Record | None = None

    @property
    def emitted(self) -> bool:
        return self.outcome is Outcome.EMIT

    @property
    def dropped(self) -> bool:
        return self.outcome is Outcome.DROP

    @property
    def matched(self) -> bool:
        return self.outcome is Outcome.EMIT

    @property
    def cancels_original(self) -> bool:
        return self.outcome is Outcome.EMIT

    @classmethod
    def drop(cls) -> FilterResult:
        return cls(Outcome.DROP)


def _always(record: Record) -> bool:
    return True


def _add_tags(record: Record, tags: tuple[str, ...]) -> None:
    if not tags:
        return

    existing = record.get('tags')
    if existing is None:
        current: list[str] = []
    elif isinstance(existing, str):
        current = [existing]
    else:
        current = list(existing)

    for tag in tags:
        if tag not in current:
            current.append(tag)
    record['tags'] = current


class DNSFilter:
    '''
    The DNS filter stage. Each call to `filter` works on a deep copy of the
    input record, runs the resolve pass and then the reverse pass (each
    bounded by `config.timeout`), and emits the copy only if every
    configured pass succeeded.
    '''

    def __init__(
        self,
        config: FilterConfig,
        *,
        backend: Resolver | None = None,
        predicate: Predicate | None = None,
    ) -> None:
        self._config = config
        self._owned_backend: DNSBackend | None = None
        if backend is None:
            backend = self._owned_backend = DNSBackend(config.resolver_config())
        self._backend: Resolver = backend
        self._predicate: Predicate = predicate or _always
        self._processor = FieldProcessor(self._backend, config.action)

    @classmethod
    def from_options(
        cls,
        options: Mapping[str, Any],
        *,
        backend: Resolver | None = None,
        predicate: Predicate | None = None,
    ) -> DNSFilter:
        return cls(
            FilterConfig.from_mapping(options),
            backend=backend,
            predicate=predicate,
        )

    @property
    def config(self) -> FilterConfig:
        return self._config

    async def _run_phase(
        self,
        label: str,
        run: Callable[[Record, tuple[str, ...]], Awaitable[bool]],
        record: Record,
        fields: tuple[str, ...],
    ) -> bool:
        try:
            return await asyncio.wait_for(run(record, fields), timeout=self._config.timeout)
        except asyncio.TimeoutError:
            logger.debug(f'DNS: {label} action timed out')
            return False

    async def filter(self, record: Record) -> FilterResult:
        '''
        Run the filter on a single record.

        Parameters
        ----------
        record : Record
            The input record, never modified.

        Returns
        -------
        FilterResult
        '''
        if not self._predicate(record):
            return FilterResult(Outcome.PASS_THROUGH, record)

        working = copy.deepcopy(record)

        if self._config.has_resolve:
            if not await self._run_phase(
                'resolve', self._processor.resolve, working, self._config.resolve
            ):
                return FilterResult.drop()

        if self._config.has_reverse:
            if not await self._run_phase(
                'reverse', self._processor.reverse, working, self._config.reverse
            ):
                return FilterResult.drop()

        _add_tags(working, self._config.add_tag)
        return FilterResult(Outcome.EMIT, working)

    async def filter_many(
        self,
        records: Iterable[Record],
        *,
        concurrency: int = 16,
    ) -> list[FilterResult]:
        '''
        Filter several records concurrently, results are returned in input order.

        Parameters
        ----------
        records : Iterable[Record]
        concurrency : int, optional
            Maximum number of records in flight, by default 16

        Returns
        -------
        list[FilterResult]
        '''
        if concurrency < 1:
            raise ValueError(f'concurrency must be at least 1, got {concurrency}')

        semaphore = asyncio.Semaphore(concurrency)

        async def run_one(record: Record) -> FilterResult:
            async with semaphore:
                return await self.filter(record)

        return list(await asyncio.gather(*(run_one(record) for record in records)))

    def filter_sync(self, record: Record) -> FilterResult:
        '''
        Run `filter` on a fresh event loop for callers without one.
        '''
        return asyncio.run(self.filter(record))

    def close(self) -> None:
        '''
        Release the lookup threads of the backend this filter created.
        An injected backend is left to its owner.
        '''
        if self._owned_backend is not None:
            self._owned_backend.close()
