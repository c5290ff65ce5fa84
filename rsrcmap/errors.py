"""Exception classes raised by the resource map reader and writer."""


class ResourceFormatError(Exception):
	"""Base class for all errors raised while reading or writing resource data."""


class TruncatedInputError(ResourceFormatError, EOFError):
	"""Raised when a read runs past the end of the input data."""


class OutOfBoundsError(ResourceFormatError, IndexError):
	"""Raised when a seek or backpatch targets an offset outside of the buffer."""


class CorruptFileError(ResourceFormatError):
	"""Raised when the resource file header is inconsistent or a resource name cannot be decoded."""


class ValueOverflowError(ResourceFormatError, OverflowError):
	"""Raised when a value does not fit into the field that should hold it (an internal limit of the format was exceeded)."""


class FileTooBigError(ResourceFormatError, OverflowError):
	"""Raised when the resource data would exceed the maximum size addressable by the format (24 bits)."""
