"""Cursor-based readers and writers for big-endian binary data held in memory. For internal use only."""

import struct
import typing

from .errors import OutOfBoundsError, TruncatedInputError, ValueOverflowError

# The encoding used for length-prefixed strings unless the caller asks for another one.
# Resource names on classic Mac OS are stored in the system script, which for western systems is MacRoman.
DEFAULT_TEXT_ENCODING = "MacRoman"

# Fixed-width big-endian integers.
STRUCT_UINT8 = struct.Struct(">B")
STRUCT_UINT16 = struct.Struct(">H")
STRUCT_INT16 = struct.Struct(">h")
STRUCT_UINT32 = struct.Struct(">I")

# Header of a Pascal string.
# 1 byte: Length of the following string data.
STRUCT_PSTRING_HEADER = STRUCT_UINT8

# The longest string that fits behind a one-byte length.
MAX_PSTRING_LENGTH = 0xff


class BinaryDataReader(object):
	"""A random-access reader over a byte buffer.
	
	The reader keeps a current position, which every read advances. In addition to absolute and relative seeks,
	the reader has a stack of saved positions, so that a nested structure can be visited using :meth:`push_position`
	and the outer position restored afterwards using :meth:`pop_position`.
	
	Each reader owns its own position and stack, so a reader must not be shared between threads,
	but any number of readers can be created over the same data.
	"""
	
	_data: bytes
	_position: int
	_saved_positions: typing.List[int]
	
	def __init__(self, data: bytes) -> None:
		"""Create a reader positioned at the start of ``data``.
		
		:param data: The data to read. A private copy is made if a mutable buffer is passed.
		"""
		
		super().__init__()
		
		self._data = bytes(data)
		self._position = 0
		self._saved_positions = []
	
	def __len__(self) -> int:
		return len(self._data)
	
	@property
	def bytes_read(self) -> int:
		"""The current absolute position in the data."""
		
		return self._position
	
	def _check_position(self, offset: int) -> None:
		# Seeking exactly to the end is allowed, reading from there is not.
		if not 0 <= offset <= len(self._data):
			raise OutOfBoundsError(f"Offset {offset} is outside of the data, which is {len(self._data)} bytes long")
	
	def set_position(self, offset: int) -> None:
		"""Seek to the absolute position ``offset``.
		
		:raise OutOfBoundsError: If the offset lies outside of the data.
		"""
		
		self._check_position(offset)
		self._position = offset
	
	def advance(self, byte_count: int) -> None:
		"""Skip ``byte_count`` bytes without reading them."""
		
		self.set_position(self._position + byte_count)
	
	def push_position(self, offset: int) -> None:
		"""Save the current position on the position stack, then seek to ``offset``.
		
		If the seek fails, the position stack is left unchanged.
		"""
		
		self._check_position(offset)
		self._saved_positions.append(self._position)
		self._position = offset
	
	def pop_position(self) -> None:
		"""Return to the position saved by the most recent :meth:`push_position` call.
		
		Calling this method without a matching :meth:`push_position` call is a programming error and raises an :class:`IndexError`.
		"""
		
		self._position = self._saved_positions.pop()
	
	def read_data(self, byte_count: int) -> bytes:
		"""Read byte_count bytes and raise an exception if too few bytes are available.
		
		:param byte_count: The number of bytes to read.
		:return: A copy of the read data, which is exactly ``byte_count`` bytes long.
		:raise TruncatedInputError: If the data ends before ``byte_count`` bytes could be read.
		"""
		
		if byte_count < 0:
			raise ValueError(f"Byte count must not be negative: {byte_count}")
		
		available = len(self._data) - self._position
		if byte_count > available:
			raise TruncatedInputError(f"Attempted to read {byte_count} bytes of data at offset {self._position}, but only {available} bytes are left")
		
		data = self._data[self._position:self._position + byte_count]
		self._position += byte_count
		return data
	
	def read(self, st: struct.Struct) -> tuple:
		"""Unpack data according to the struct st. The number of bytes to read is determined using st.size, so variable-sized structs cannot be used with this method."""
		
		return st.unpack(self.read_data(st.size))
	
	def read_pstring(self, encoding: str = DEFAULT_TEXT_ENCODING) -> str:
		"""Read a Pascal string (a length byte followed by that many bytes of text).
		
		:raise TruncatedInputError: If the string data is cut off.
		:raise UnicodeDecodeError: If the string data is not valid in the given encoding.
		"""
		
		(length,) = self.read(STRUCT_PSTRING_HEADER)
		return self.read_data(length).decode(encoding)


class BinaryDataWriter(object):
	"""An append-only writer that builds a byte buffer in memory.
	
	Data is always appended at the end of the buffer. Already written bytes can be overwritten later
	using the ``*_at`` methods, which is how placeholder values are filled in once they are known.
	"""
	
	_data: bytearray
	
	def __init__(self) -> None:
		super().__init__()
		
		self._data = bytearray()
	
	def __len__(self) -> int:
		return len(self._data)
	
	@property
	def bytes_written(self) -> int:
		"""The number of bytes written so far, which is also the offset at which the next write will happen."""
		
		return len(self._data)
	
	@property
	def data(self) -> bytes:
		"""A copy of all data written so far."""
		
		return bytes(self._data)
	
	def _check_range(self, offset: int, byte_count: int) -> None:
		if offset < 0 or offset + byte_count > len(self._data):
			raise OutOfBoundsError(f"Cannot overwrite {byte_count} bytes at offset {offset}, only {len(self._data)} bytes have been written")
	
	@staticmethod
	def _pack(st: struct.Struct, *values: typing.Any) -> bytes:
		try:
			return st.pack(*values)
		except struct.error as e:
			raise ValueOverflowError(f"Cannot pack {values!r} using format {st.format!r}: {e}")
	
	def write(self, st: struct.Struct, *values: typing.Any) -> None:
		"""Pack the values according to the struct st and append them.
		
		:raise ValueOverflowError: If a value does not fit into its field.
		"""
		
		self._data += self._pack(st, *values)
	
	def write_at(self, offset: int, st: struct.Struct, *values: typing.Any) -> None:
		"""Pack the values according to the struct st and overwrite the already written bytes at ``offset`` with them.
		
		:raise OutOfBoundsError: If the packed data would extend past the end of the buffer.
		"""
		
		self.write_data_at(offset, self._pack(st, *values))
	
	def advance(self, byte_count: int) -> None:
		"""Append ``byte_count`` null bytes, usually to reserve space that is filled in later."""
		
		self._data += bytes(byte_count)
	
	def write_data(self, data: bytes) -> None:
		self._data += data
	
	def write_data_at(self, offset: int, data: bytes) -> None:
		self._check_range(offset, len(data))
		self._data[offset:offset + len(data)] = data
	
	def write_pstring(self, string: str, encoding: str = DEFAULT_TEXT_ENCODING) -> None:
		"""Write a Pascal string (a length byte followed by the encoded text).
		
		:raise ValueOverflowError: If the encoded text is longer than 255 bytes.
		:raise UnicodeEncodeError: If the text cannot be represented in the given encoding.
		"""
		
		encoded = string.encode(encoding)
		if len(encoded) > MAX_PSTRING_LENGTH:
			raise ValueOverflowError(f"A Pascal string can be at most {MAX_PSTRING_LENGTH} bytes long, but {string!r} is {len(encoded)} bytes long when encoded as {encoding}")
		
		self.write(STRUCT_PSTRING_HEADER, len(encoded))
		self.write_data(encoded)
	
	def write_cstring(self, string: str, encoding: str = DEFAULT_TEXT_ENCODING) -> None:
		"""Write the encoded text followed by a single null byte."""
		
		self.write_data(string.encode(encoding))
		self.advance(1)
