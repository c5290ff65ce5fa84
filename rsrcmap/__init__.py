"""A pure Python, cross-platform library for reading and writing complete Macintosh resource maps, as stored in resource forks and ``.rsrc`` files."""

__version__ = "1.0.0.dev0"

__all__ = [
	"CorruptFileError",
	"FileTooBigError",
	"OutOfBoundsError",
	"Resource",
	"ResourceAttrs",
	"ResourceFormatError",
	"ResourceMap",
	"TruncatedInputError",
	"ValueOverflowError",
	"read",
	"write",
]

from . import api, errors
from .api import Resource, ResourceAttrs, ResourceMap, read, write
from .errors import CorruptFileError, FileTooBigError, OutOfBoundsError, ResourceFormatError, TruncatedInputError, ValueOverflowError
