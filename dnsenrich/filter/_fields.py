'''
Field values as seen by the DNS filter. A record field holds either a single
string or a list of strings; `read_field` turns it into a `Scalar` or a
`Sequence` and `apply_action` writes a lookup result back in the same shape.
'''
from __future__ import annotations

import dataclasses as dc
import ipaddress
from collections.abc import MutableMapping

from dnsenrich.filter._config import Action

Record = MutableMapping[str, str | list[str]]


class InvalidFieldError(ValueError):
    '''
    Raised when a field value can't be used as a lookup candidate.

    Parent: ValueError
    '''
    def __init__(self, field: str, value: object, reason: str) -> None:
        self.field = field
        self.value = value
        self.reason = reason
        super().__init__(f'{reason}: field={field} value={value!r}')


class MultipleValuesError(InvalidFieldError):
    '''
    Raised when a list field holds more than one value.

    Parent: InvalidFieldError
    '''


@dc.dataclass(slots=True, frozen=True)
class Scalar:
    value: str

    @property
    def candidate(self) -> str:
        return self.value


@dc.dataclass(slots=True, frozen=True)
class Sequence:
    values: tuple[str, ...]

    @property
    def candidate(self) -> str:
        return self.values[0]


FieldValue = Scalar | Sequence


def read_field(record: Record, field: str) -> FieldValue:
    '''
    Read `field` from the record as a lookup candidate.

    Parameters
    ----------
    record : Record
    field : str

    Returns
    -------
    FieldValue

    Raises
    ------
    MultipleValuesError
        If the field is a list with more than one value.
    InvalidFieldError
        If the field is missing, empty, or not a string or list of strings.
    '''
    if field not in record:
        raise InvalidFieldError(field, None, 'field is missing')

    raw = record[field]
    if isinstance(raw, str):
        return Scalar(raw)

    if isinstance(raw, (list, tuple)):
        if len(raw) > 1:
            raise MultipleValuesError(field, raw, "can't deal with multiple values")
        if not raw:
            raise InvalidFieldError(field, raw, 'field is empty')
        if not isinstance(raw[0], str):
            raise InvalidFieldError(field, raw, 'value is not a string')
        return Sequence((raw[0],))

    raise InvalidFieldError(field, raw, 'value is not a string')


def is_ip_address(value: str) -> bool:
    try:
        ipaddress.ip_address(value)
    except ValueError:
        return False
    return True


def apply_action(
    record: Record,
    field: str,
    current: FieldValue,
    result: str,
    action: Action,
) -> None:
    '''
    Write a lookup result into the record.

    - replace: the field becomes `result`, or `[result]` for list fields
    - append: a string field becomes `[value, result]`, a list field
      gets `result` appended

    Parameters
    ----------
    record : Record
    field : str
    current : FieldValue
        The value `read_field` returned for this field.
    result : str
    action : Action
    '''
    match (action, current):
        case ('replace', Scalar()):
            record[field] = result
        case ('replace', Sequence()):
            record[field] = [result]
        case ('append', Scalar(value=value)):
            record[field] = [value, result]
        case ('append', Sequence()):
            existing = record[field]
            if isinstance(existing, list):
                existing.append(result)
            else:
                record[field] = [*existing, result]
        case _:
            raise ValueError(f'Unsupported action {action!r}')
