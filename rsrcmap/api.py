"""Reading and writing of complete Macintosh resource maps, as stored in resource forks and ``.rsrc`` files.

The formats of all following structures is as described in the Inside Macintosh book (More Macintosh Toolbox, chapter 1, "Resource Manager Reference").
"""

import collections
import enum
import logging
import struct
import typing

from . import _io_utils
from .errors import CorruptFileError, FileTooBigError, ValueOverflowError

logger = logging.getLogger(__name__)

# Signedness and byte order of the integers is never stated explicitly in IM.
# All integers are big-endian, as this is the native byte order of the 68k and PowerPC processors used in old Macs.
# Almost all integers are non-negative byte counts or offsets. Counts are stored minus one, so a stored 0xffff (-1) means that there are no entries at all. The only signed field is the resource ID.

# Resource file header, found at the start of the resource file. The same four fields are repeated at the start of the resource map.
# 4 bytes: Offset from beginning of resource file to resource data.
# 4 bytes: Offset from beginning of resource file to resource map.
# 4 bytes: Length of resource data.
# 4 bytes: Length of resource map.
STRUCT_RESOURCE_HEADER = struct.Struct(">IIII")

# Files written by this module always start their resource data at this offset.
# The space between the header and the data (240 bytes of system- and application-reserved data) is left as null bytes.
DATA_OFFSET = 0x100

# Header for a single resource data block, found immediately before the resource data itself.
# 4 bytes: Length of following resource data.
STRUCT_RESOURCE_DATA_HEADER = struct.Struct(">I")

# Header for the resource map, found immediately after the last resource data block.
# 16 bytes: Copy of resource header, or all zero.
# 4 bytes: Reserved for handle to next resource map to be searched (in memory). Should be 0 in file.
# 2 bytes: Reserved for file reference number (in memory). Should be 0 in file.
# 2 bytes: Resource file attributes. Ignored when reading, written as 0.
RESOURCE_MAP_RESERVED_LENGTH = 8
MAP_HEADER_LENGTH = STRUCT_RESOURCE_HEADER.size + RESOURCE_MAP_RESERVED_LENGTH

# Remainder of the resource map header.
# 2 bytes: Offset from beginning of resource map to type list.
# 2 bytes: Offset from beginning of resource map to resource name list.
STRUCT_RESOURCE_MAP_LIST_OFFSETS = struct.Struct(">HH")

# Header for the type list.
# 2 bytes: Number of resource types in the map minus 1.
STRUCT_RESOURCE_TYPE_LIST_HEADER = struct.Struct(">H")

# A single type in the type list.
# 4 bytes: Resource type. This is usually a 4-character ASCII mnemonic, but may be any 4 bytes.
# 2 bytes: Number of resources of this type in the map minus 1.
# 2 bytes: Offset from beginning of type list to reference list for resources of this type.
STRUCT_RESOURCE_TYPE = struct.Struct(">IHH")

# A single resource reference in a reference list. (A reference list has no header, and neither does the list of reference lists.)
# 2 bytes: Resource ID.
# 2 bytes: Offset from beginning of resource name list to length of resource name, or -1 (0xffff) if none.
# 1 byte: Resource attributes. (Note: packed into 4 bytes together with the next 3 bytes.)
# 3 bytes: Offset from beginning of resource data to length of data for this resource. (Note: packed into 4 bytes together with the previous 1 byte.)
# 4 bytes: Reserved for handle to resource (in memory). Should be 0 in file.
STRUCT_RESOURCE_REFERENCE = struct.Struct(">hHI4x")

# Name offset of a resource that has no name.
NO_NAME_OFFSET = 0xffff

# Largest value of any 16-bit offset field.
MAX_MAP_OFFSET = 0xffff

# Mask for the 24-bit data offset in a resource reference. The Resource Manager also refuses to open files whose total size reaches this value.
DATA_OFFSET_MASK = (1 << 24) - 1


class ResourceAttrs(enum.IntFlag):
	"""Resource attribute flags. The descriptions for these flags are taken from comments on the res*Bit and res* enum constants in <CarbonCore/Resources.h>.
	
	The reader and writer do not interpret the attributes in any way, so plain integers are accepted wherever these flags are.
	"""
	
	resSysRef = 1 << 7 # "reference to system/local reference"
	resSysHeap = 1 << 6 # "In system/in application heap", "System or application heap?"
	resPurgeable = 1 << 5 # "Purgeable/not purgeable", "Purgeable resource?"
	resLocked = 1 << 4 # "Locked/not locked", "Load it in locked?"
	resProtected = 1 << 3 # "Protected/not protected", "Protected?"
	resPreload = 1 << 2 # "Read in at OpenResource?", "Load in on OpenResFile?"
	resChanged = 1 << 1 # "Existing resource changed since last update", "Resource changed?"
	resCompressed = 1 << 0 # "indicates that the resource data is compressed"


def _type_repr(resource_type: int) -> str:
	if 0 <= resource_type <= 0xffffffff:
		return repr(resource_type.to_bytes(4, "big"))
	else:
		return f"{resource_type:#x}"


class Resource(object):
	"""A single resource, held completely in memory.
	
	A name of None means that the resource has no name. This is different from an empty name, which is stored as a zero-length entry in the name list.
	"""
	
	type: int
	id: int
	name: typing.Optional[str]
	attributes: int
	data: bytes
	
	def __init__(self, resource_type: int, resource_id: int, name: typing.Optional[str] = None, attributes: int = 0, data: bytes = b"") -> None:
		super().__init__()
		
		self.type = resource_type
		self.id = resource_id
		self.name = name
		self.attributes = attributes
		self.data = data
	
	def __eq__(self, other: object) -> bool:
		if not isinstance(other, Resource):
			return NotImplemented
		
		return (
			self.type == other.type
			and self.id == other.id
			and self.name == other.name
			and self.attributes == other.attributes
			and self.data == other.data
		)
	
	def __repr__(self) -> str:
		if len(self.data) > 32:
			data_repr = f"<{len(self.data)} bytes: {self.data[:32]!r}...>"
		else:
			data_repr = repr(self.data)
		
		return f"<{type(self).__qualname__} type {_type_repr(self.type)}, id {self.id}, name {self.name!r}, attributes {self.attributes:#04x}, data {data_repr}>"


ResourceMap = typing.Dict[int, typing.List[Resource]]


def _read_header(reader: _io_utils.BinaryDataReader) -> typing.Tuple[int, int, int, int]:
	"""Read and validate the resource file header at the start of the data."""
	
	header = reader.read(STRUCT_RESOURCE_HEADER)
	data_offset, map_offset, data_length, map_length = header
	
	if data_offset == 0 or map_offset == 0 or map_length == 0:
		raise CorruptFileError(f"Resource file header contains a zero offset or map length: {header}")
	if map_offset != data_offset + data_length:
		raise CorruptFileError(f"The map offset ({map_offset}) should point exactly to the end of the resource data ({data_offset} + {data_length})")
	if map_offset + map_length > len(reader):
		raise CorruptFileError(f"The resource map ({map_length} bytes at offset {map_offset}) extends past the end of the data ({len(reader)} bytes)")
	
	return header


def _read_resource(reader: _io_utils.BinaryDataReader, resource_type: int, data_offset: int, name_list_offset: int, encoding: str) -> Resource:
	"""Read a single resource reference at the current position, along with the name and data it points to.
	
	Afterwards the reader is positioned right after the reference.
	"""
	
	(
		resource_id,
		name_offset,
		attributes_and_data_offset,
	) = reader.read(STRUCT_RESOURCE_REFERENCE)
	next_offset = reader.bytes_read
	
	attributes = attributes_and_data_offset >> 24
	resource_data_offset = attributes_and_data_offset & DATA_OFFSET_MASK
	
	name: typing.Optional[str]
	if name_offset == NO_NAME_OFFSET:
		name = None
	else:
		reader.set_position(name_list_offset + name_offset)
		try:
			name = reader.read_pstring(encoding)
		except UnicodeDecodeError as e:
			raise CorruptFileError(f"Name of resource {_type_repr(resource_type)} ({resource_id}) is not valid {encoding}: {e}") from e
	
	reader.set_position(data_offset + resource_data_offset)
	(length,) = reader.read(STRUCT_RESOURCE_DATA_HEADER)
	data = reader.read_data(length)
	
	reader.set_position(next_offset)
	
	return Resource(resource_type, resource_id, name, attributes, data)


def read(data: bytes, *, encoding: str = _io_utils.DEFAULT_TEXT_ENCODING) -> ResourceMap:
	"""Parse a complete resource file from data.
	
	:param data: The contents of a resource fork or ``.rsrc`` file.
	:param encoding: The encoding used to decode resource names.
	:return: A mapping of resource types to lists of resources, in the order in which they are listed in the file.
	:raise TruncatedInputError: If the data ends inside a structure.
	:raise OutOfBoundsError: If an offset points outside of the data.
	:raise CorruptFileError: If the headers are inconsistent or a resource name cannot be decoded.
	"""
	
	reader = _io_utils.BinaryDataReader(data)
	
	header = _read_header(reader)
	data_offset, map_offset, data_length, map_length = header
	logger.debug("Resource data: %d bytes at offset %d, resource map: %d bytes at offset %d", data_length, data_offset, map_length, map_offset)
	
	reader.set_position(map_offset)
	header_copy = reader.read(STRUCT_RESOURCE_HEADER)
	if any(header_copy) and header_copy != header:
		raise CorruptFileError(f"The copy of the header in the resource map ({header_copy}) does not match the header ({header})")
	
	reader.advance(RESOURCE_MAP_RESERVED_LENGTH)
	type_list_offset, name_list_offset = reader.read(STRUCT_RESOURCE_MAP_LIST_OFFSETS)
	type_list_offset += map_offset
	name_list_offset += map_offset
	
	reader.set_position(type_list_offset)
	(type_count_m1,) = reader.read(STRUCT_RESOURCE_TYPE_LIST_HEADER)
	type_count = (type_count_m1 + 1) & 0xffff
	logger.debug("Type list at offset %d lists %d types", type_list_offset, type_count)
	
	resource_map: ResourceMap = collections.OrderedDict()
	for _ in range(type_count):
		(
			resource_type,
			count_m1,
			reflist_offset,
		) = reader.read(STRUCT_RESOURCE_TYPE)
		count = (count_m1 + 1) & 0xffff
		
		# A type that is listed more than once has its resources merged into the first entry.
		resources = resource_map.setdefault(resource_type, [])
		reader.push_position(type_list_offset + reflist_offset)
		for _ in range(count):
			resources.append(_read_resource(reader, resource_type, data_offset, name_list_offset, encoding))
		reader.pop_position()
	
	return resource_map


def write(resource_map: typing.Mapping[int, typing.Sequence[Resource]], *, encoding: str = _io_utils.DEFAULT_TEXT_ENCODING) -> bytes:
	"""Serialize a resource map into the contents of a resource file.
	
	Types are written in the iteration order of ``resource_map`` and resources in the order of each type's sequence, so the output is deterministic for a given map. The type of each resource is taken from its key in the map.
	
	:param resource_map: A mapping of resource types to the resources of that type.
	:param encoding: The encoding used to encode resource names.
	:return: The complete resource file data.
	:raise ValueOverflowError: If the map has too many resources or names, or a field value is out of range.
	:raise FileTooBigError: If the resulting file would be 16 MiB or larger.
	"""
	
	type_count = len(resource_map)
	resource_count = sum(len(resources) for resources in resource_map.values())
	type_list_offset = MAP_HEADER_LENGTH + STRUCT_RESOURCE_MAP_LIST_OFFSETS.size
	reflists_offset = STRUCT_RESOURCE_TYPE_LIST_HEADER.size + type_count * STRUCT_RESOURCE_TYPE.size
	name_list_offset = type_list_offset + reflists_offset + resource_count * STRUCT_RESOURCE_REFERENCE.size
	# This limits the number of resources in a file to 5458.
	if name_list_offset > MAX_MAP_OFFSET:
		raise ValueOverflowError(f"Too many resources: {type_count} types with {resource_count} resources would put the name list at offset {name_list_offset}, which does not fit into 16 bits")
	
	writer = _io_utils.BinaryDataWriter()
	# The header is filled in once all offsets and lengths are known.
	writer.advance(DATA_OFFSET)
	
	data_offsets: typing.List[int] = []
	for resource_type, resources in resource_map.items():
		for resource in resources:
			offset = writer.bytes_written - DATA_OFFSET
			if offset > DATA_OFFSET_MASK:
				raise FileTooBigError(f"Data of resource {_type_repr(resource_type)} ({resource.id}) would start at offset {offset:#x} into the resource data, which does not fit into 24 bits")
			data_offsets.append(offset)
			writer.write(STRUCT_RESOURCE_DATA_HEADER, len(resource.data))
			writer.write_data(resource.data)
	
	map_offset = writer.bytes_written
	# Header copy and reserved fields, also filled in at the end.
	writer.advance(MAP_HEADER_LENGTH)
	writer.write(STRUCT_RESOURCE_MAP_LIST_OFFSETS, type_list_offset, name_list_offset)
	
	writer.write(STRUCT_RESOURCE_TYPE_LIST_HEADER, (type_count - 1) & 0xffff)
	reflist_offset = reflists_offset
	for resource_type, resources in resource_map.items():
		writer.write(STRUCT_RESOURCE_TYPE, resource_type, (len(resources) - 1) & 0xffff, reflist_offset)
		reflist_offset += len(resources) * STRUCT_RESOURCE_REFERENCE.size
	
	name_list = _io_utils.BinaryDataWriter()
	offsets_iter = iter(data_offsets)
	for resource_type, resources in resource_map.items():
		for resource in resources:
			if resource.name is None:
				name_offset = NO_NAME_OFFSET
			elif name_list.bytes_written >= NO_NAME_OFFSET:
				raise ValueOverflowError(f"Name of resource {_type_repr(resource_type)} ({resource.id}) would start at offset {name_list.bytes_written} into the name list, which does not fit into 16 bits")
			else:
				name_offset = name_list.bytes_written
				name_list.write_pstring(resource.name, encoding)
			
			if not 0 <= resource.attributes <= 0xff:
				raise ValueOverflowError(f"Attributes of resource {_type_repr(resource_type)} ({resource.id}) do not fit into 8 bits: {resource.attributes:#x}")
			
			writer.write(STRUCT_RESOURCE_REFERENCE, resource.id, name_offset, resource.attributes << 24 | next(offsets_iter))
	
	writer.write_data(name_list.data)
	
	if writer.bytes_written >= DATA_OFFSET_MASK:
		raise FileTooBigError(f"Resource file would be {writer.bytes_written} bytes long, but it must be shorter than {DATA_OFFSET_MASK} bytes")
	
	data_length = map_offset - DATA_OFFSET
	map_length = writer.bytes_written - map_offset
	writer.write_at(0, STRUCT_RESOURCE_HEADER, DATA_OFFSET, map_offset, data_length, map_length)
	writer.write_data_at(map_offset, writer.data[:STRUCT_RESOURCE_HEADER.size])
	logger.debug("Wrote %d types with %d resources, %d bytes of names, %d bytes in total", type_count, resource_count, name_list.bytes_written, writer.bytes_written)
	
	return writer.data
