import unittest

from rsrcmap import _io_utils
from rsrcmap.errors import OutOfBoundsError, ResourceFormatError, TruncatedInputError, ValueOverflowError


class BinaryDataReaderTests(unittest.TestCase):
	def test_read_big_endian(self) -> None:
		reader = _io_utils.BinaryDataReader(b"\x12\x34\x56\x78\xff\xfe\x01")
		self.assertEqual(reader.read(_io_utils.STRUCT_UINT32), (0x12345678,))
		self.assertEqual(reader.bytes_read, 4)
		self.assertEqual(reader.read(_io_utils.STRUCT_INT16), (-2,))
		self.assertEqual(reader.read(_io_utils.STRUCT_UINT8), (1,))
		self.assertEqual(reader.bytes_read, 7)
	
	def test_read_truncated(self) -> None:
		reader = _io_utils.BinaryDataReader(b"\x00\x01\x02")
		with self.assertRaises(TruncatedInputError):
			reader.read(_io_utils.STRUCT_UINT32)
		# A failed read does not move the position.
		self.assertEqual(reader.bytes_read, 0)
		self.assertEqual(reader.read(_io_utils.STRUCT_UINT16), (1,))
	
	def test_truncated_is_eof_error(self) -> None:
		reader = _io_utils.BinaryDataReader(b"")
		with self.assertRaises(EOFError):
			reader.read_data(1)
		with self.assertRaises(ResourceFormatError):
			reader.read_data(1)
	
	def test_read_data_copies(self) -> None:
		buffer = bytearray(b"abcdef")
		reader = _io_utils.BinaryDataReader(buffer)
		buffer[0:3] = b"xyz"
		self.assertEqual(reader.read_data(3), b"abc")
		self.assertEqual(reader.read_data(0), b"")
		self.assertEqual(reader.read_data(3), b"def")
		self.assertEqual(reader.read_data(0), b"")
	
	def test_set_position(self) -> None:
		reader = _io_utils.BinaryDataReader(b"\x00\x01\x02\x03")
		reader.set_position(2)
		self.assertEqual(reader.read_data(2), b"\x02\x03")
		
		# Seeking exactly to the end is allowed.
		reader.set_position(4)
		self.assertEqual(reader.bytes_read, 4)
		
		with self.assertRaises(OutOfBoundsError):
			reader.set_position(5)
		with self.assertRaises(OutOfBoundsError):
			reader.set_position(-1)
		self.assertEqual(reader.bytes_read, 4)
	
	def test_advance(self) -> None:
		reader = _io_utils.BinaryDataReader(bytes(8))
		reader.advance(3)
		self.assertEqual(reader.bytes_read, 3)
		reader.advance(5)
		self.assertEqual(reader.bytes_read, 8)
		with self.assertRaises(OutOfBoundsError):
			reader.advance(1)
	
	def test_position_stack(self) -> None:
		reader = _io_utils.BinaryDataReader(bytes(range(16)))
		reader.advance(2)
		reader.push_position(8)
		self.assertEqual(reader.read_data(1), b"\x08")
		reader.push_position(12)
		self.assertEqual(reader.read_data(1), b"\x0c")
		reader.pop_position()
		self.assertEqual(reader.bytes_read, 9)
		reader.pop_position()
		self.assertEqual(reader.bytes_read, 2)
	
	def test_push_position_out_of_bounds(self) -> None:
		reader = _io_utils.BinaryDataReader(bytes(4))
		reader.advance(1)
		with self.assertRaises(OutOfBoundsError):
			reader.push_position(5)
		self.assertEqual(reader.bytes_read, 1)
		# The failed push did not save anything.
		with self.assertRaises(IndexError):
			reader.pop_position()
	
	def test_pop_empty_stack(self) -> None:
		reader = _io_utils.BinaryDataReader(bytes(4))
		with self.assertRaises(IndexError):
			reader.pop_position()
	
	def test_read_pstring(self) -> None:
		reader = _io_utils.BinaryDataReader(b"\x04Ship\x00\x02\x8e!")
		self.assertEqual(reader.read_pstring(), "Ship")
		self.assertEqual(reader.read_pstring(), "")
		self.assertEqual(reader.read_pstring(), "é!")
		self.assertEqual(reader.bytes_read, len(b"\x04Ship\x00\x02\x8e!"))
	
	def test_read_pstring_truncated(self) -> None:
		with self.assertRaises(TruncatedInputError):
			_io_utils.BinaryDataReader(b"\x05Ship").read_pstring()
		with self.assertRaises(TruncatedInputError):
			_io_utils.BinaryDataReader(b"").read_pstring()
	
	def test_read_pstring_invalid(self) -> None:
		with self.assertRaises(UnicodeDecodeError):
			_io_utils.BinaryDataReader(b"\x01\xff").read_pstring("ascii")


class BinaryDataWriterTests(unittest.TestCase):
	def test_write_big_endian(self) -> None:
		writer = _io_utils.BinaryDataWriter()
		writer.write(_io_utils.STRUCT_UINT32, 0x12345678)
		writer.write(_io_utils.STRUCT_INT16, -2)
		writer.write(_io_utils.STRUCT_UINT8, 1)
		self.assertEqual(writer.data, b"\x12\x34\x56\x78\xff\xfe\x01")
		self.assertEqual(writer.bytes_written, 7)
	
	def test_write_overflow(self) -> None:
		writer = _io_utils.BinaryDataWriter()
		for st, value in [
			(_io_utils.STRUCT_UINT8, 0x100),
			(_io_utils.STRUCT_UINT16, -1),
			(_io_utils.STRUCT_INT16, 0x8000),
			(_io_utils.STRUCT_UINT32, 1 << 32),
		]:
			with self.subTest(format=st.format, value=value):
				with self.assertRaises(ValueOverflowError):
					writer.write(st, value)
		self.assertEqual(writer.bytes_written, 0)
	
	def test_advance(self) -> None:
		writer = _io_utils.BinaryDataWriter()
		writer.write_data(b"ab")
		writer.advance(3)
		self.assertEqual(writer.data, b"ab\x00\x00\x00")
	
	def test_backpatch(self) -> None:
		writer = _io_utils.BinaryDataWriter()
		writer.advance(4)
		writer.write_data(b"data")
		writer.write_at(0, _io_utils.STRUCT_UINT32, writer.bytes_written)
		self.assertEqual(writer.data, b"\x00\x00\x00\x08data")
		
		writer.write_data_at(4, b"DA")
		self.assertEqual(writer.data, b"\x00\x00\x00\x08DAta")
		self.assertEqual(writer.bytes_written, 8)
	
	def test_backpatch_never_extends(self) -> None:
		writer = _io_utils.BinaryDataWriter()
		writer.advance(3)
		with self.assertRaises(OutOfBoundsError):
			writer.write_at(0, _io_utils.STRUCT_UINT32, 0)
		with self.assertRaises(OutOfBoundsError):
			writer.write_data_at(2, b"ab")
		with self.assertRaises(OutOfBoundsError):
			writer.write_data_at(-1, b"a")
		self.assertEqual(writer.data, bytes(3))
	
	def test_write_pstring(self) -> None:
		writer = _io_utils.BinaryDataWriter()
		writer.write_pstring("Ship")
		writer.write_pstring("")
		writer.write_pstring("é")
		self.assertEqual(writer.data, b"\x04Ship\x00\x01\x8e")
	
	def test_write_pstring_max_length(self) -> None:
		writer = _io_utils.BinaryDataWriter()
		writer.write_pstring("x" * 255)
		self.assertEqual(writer.data, b"\xff" + b"x" * 255)
		
		with self.assertRaises(ValueOverflowError):
			writer.write_pstring("x" * 256)
		self.assertEqual(writer.bytes_written, 256)
	
	def test_write_pstring_length_is_encoded_length(self) -> None:
		writer = _io_utils.BinaryDataWriter()
		with self.assertRaises(ValueOverflowError):
			writer.write_pstring("é" * 128, "utf-8")
	
	def test_write_cstring(self) -> None:
		writer = _io_utils.BinaryDataWriter()
		writer.write_cstring("abc")
		writer.write_cstring("")
		self.assertEqual(writer.data, b"abc\x00\x00")


if __name__ == "__main__":
	unittest.main()
