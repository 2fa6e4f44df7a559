from __future__ import annotations

import dataclasses as dc
from collections.abc import Iterable, Mapping
from typing import Any, Literal, get_args

from dnsenrich.dns import ResolverConfig

Action = Literal['append', 'replace']


class ConfigError(ValueError):
    '''
    Raised when the filter options are rejected at startup.

    Parent: ValueError
    '''


def _field_names(option: str, value: Iterable[str] | str | None) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        value = (value,)

    names = tuple(value)
    for name in names:
        if not isinstance(name, str) or not name:
            raise ConfigError(f'{option} entries must be non-empty strings, got {name!r}')
    return names


@dc.dataclass(slots=True, frozen=True)
class FilterConfig:
    '''
    Options for the DNS filter. `resolve` fields are looked up as hostnames,
    `reverse` fields as addresses, `action` decides whether the result is
    appended to or replaces the field value.
    '''
    resolve: tuple[str, ...] = ()
    reverse: tuple[str, ...] = ()
    action: Action = 'append'
    nameserver: str | None = None
    timeout: float = 2.0
    hostsfile: str = '/etc/hosts'
    add_tag: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, 'resolve', _field_names('resolve', self.resolve))
        object.__setattr__(self, 'reverse', _field_names('reverse', self.reverse))
        object.__setattr__(self, 'add_tag', _field_names('add_tag', self.add_tag))

        if self.action not in get_args(Action):
            raise ConfigError(
                f'action must be one of {", ".join(get_args(Action))}, got {self.action!r}'
            )

        if isinstance(self.timeout, bool) or not isinstance(self.timeout, (int, float)):
            raise ConfigError(f'timeout must be a number, got {self.timeout!r}')
        if self.timeout <= 0:
            raise ConfigError(f'timeout must be positive, got {self.timeout}')

        if self.nameserver is not None and (
            not isinstance(self.nameserver, str) or not self.nameserver.strip()
        ):
            raise ConfigError(f'nameserver must be a non-empty string, got {self.nameserver!r}')

    @property
    def has_resolve(self) -> bool:
        return bool(self.resolve)

    @property
    def has_reverse(self) -> bool:
        return bool(self.reverse)

    def resolver_config(self) -> ResolverConfig:
        return ResolverConfig(
            nameserver=self.nameserver.strip() if self.nameserver else None,
            timeout=float(self.timeout),
            hostsfile=self.hostsfile,
        )

    @classmethod
    def from_mapping(cls, options: Mapping[str, Any]) -> FilterConfig:
        '''
        Build a config from plain options, e.g. a parsed YAML or JSON block.

        Parameters
        ----------
        options : Mapping[str, Any]

        Returns
        -------
        FilterConfig

        Raises
        ------
        ConfigError
            If an option is unknown or has an invalid value.
        '''
        known = {f.name for f in dc.fields(cls)}
        unknown = sorted(set(options) - known)
        if unknown:
            raise ConfigError(f'Unknown DNS filter options: {", ".join(unknown)}')

        kwargs = dict(options)
        for key in ('resolve', 'reverse', 'add_tag'):
            if key in kwargs:
                kwargs[key] = _field_names(key, kwargs[key])
        return cls(**kwargs)
