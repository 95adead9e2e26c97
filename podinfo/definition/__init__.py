"""Layout definition files: parsing and record building."""

from .builder import RecordBuilder as RecordBuilder
from .builder import build_records as build_records
from .parser import ValidationError as ValidationError
from .parser import parse as parse
from .types import *
