'''
**dnsenrich.filter**
-------------

The DNS filter stage: forward (`resolve`) and reverse (`reverse`) lookups on
record fields, with the result appended to or replacing the field value.
See: `dnsenrich.filter._stage` and `dnsenrich.filter._processor` for more details.
'''
from dnsenrich.filter._config import (
    Action,
    ConfigError,
    FilterConfig,
)
from dnsenrich.filter._fields import (
    FieldValue,
    InvalidFieldError,
    MultipleValuesError,
    Record,
    Scalar,
    Sequence,
    apply_action,
    is_ip_address,
    read_field,
)
from dnsenrich.filter._processor import FieldProcessor, Resolver
from dnsenrich.filter._stage import (
    DNSFilter,
    FilterResult,
    Outcome,
    Predicate,
)

__all__ = [
    'Action',
    'ConfigError',
    'FilterConfig',
    'FieldValue',
    'InvalidFieldError',
    'MultipleValuesError',
    'Record',
    'Scalar',
    'Sequence',
    'apply_action',
    'is_ip_address',
    'read_field',
    'FieldProcessor',
    'Resolver',
    'DNSFilter',
    'FilterResult',
    'Outcome',
    'Predicate',
]
