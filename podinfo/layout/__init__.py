"""Plain-old-data layout descriptors and the describe() registry."""

from .record import DeclarationError as DeclarationError
from .record import Record as Record
from .record import RecordType as RecordType
from .record import TupleRecord as TupleRecord
from .registry import Describable as Describable
from .registry import NotDescribableError as NotDescribableError
from .registry import derive as derive
from .registry import describe as describe
from .registry import is_describable as is_describable
from .scalars import *
from .types import *
