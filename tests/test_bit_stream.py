import io
import os
import sys
import pytest

REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
if REPO_ROOT not in sys.path:
	sys.path.insert(0, REPO_ROOT)

from bit_stream import NO_MORE_BITS, BitInputStream, BitOutputStream


class _Unseekable(io.BytesIO):
	def seekable(self):
		return False


def test_write_packs_msb_first():
	out = BitOutputStream()
	out.write_bits(3, 0b101)
	out.write_bits(5, 0b00001)
	out.close()
	assert out.getvalue() == b'\xa1'
	assert out.bits_written == 8


def test_close_pads_partial_byte():
	out = BitOutputStream()
	out.write_bits(1, 1)
	out.write_bits(9, 256)
	out.close()
	# 1 100000000 -> 11000000 00000000
	assert out.getvalue() == b'\xc0\x00'
	assert out.bits_written == 10


def test_close_twice_is_harmless():
	out = BitOutputStream()
	out.write_bits(4, 0xF)
	out.close()
	out.close()
	assert out.getvalue() == b'\xf0'


def test_write_after_close_rejected():
	out = BitOutputStream()
	out.close()
	with pytest.raises(ValueError):
		out.write_bits(1, 0)


def test_zero_width_write_is_noop():
	out = BitOutputStream()
	out.write_bits(0, 0)
	out.close()
	assert out.getvalue() == b''


def test_value_must_fit_width():
	out = BitOutputStream()
	with pytest.raises(ValueError):
		out.write_bits(3, 8)
	with pytest.raises(ValueError):
		out.write_bits(-1, 0)
	with pytest.raises(ValueError):
		out.write_bits(4, -2)


def test_wide_fields():
	out = BitOutputStream()
	out.write_bits(32, 0xface8201)
	out.write_bits(1, 1)
	out.close()
	reader = BitInputStream(out.getvalue())
	assert reader.read_bits(32) == 0xface8201
	assert reader.read_bits(1) == 1
	assert reader.read_bits(7) == 0
	assert reader.read_bits(1) == NO_MORE_BITS


def test_read_fields():
	reader = BitInputStream(b'\xa1')
	assert reader.read_bits(4) == 0b1010
	assert reader.read_bits(4) == 0b0001
	assert reader.read_bits(1) == NO_MORE_BITS
	assert reader.bits_read == 8


def test_read_short_field_signals_end():
	reader = BitInputStream(b'\xff')
	assert reader.read_bits(9) == NO_MORE_BITS
	assert reader.read_bits(8) == 0xff


def test_reset_rewinds():
	reader = BitInputStream(bytearray(b'hi'))
	assert reader.read_bits(8) == ord('h')
	assert reader.read_bits(8) == ord('i')
	reader.reset()
	assert reader.bits_read == 0
	assert reader.read_bits(16) == int.from_bytes(b'hi', 'big')


def test_reset_needs_seekable_source():
	reader = BitInputStream(_Unseekable(b'abc'))
	assert reader.read_bits(8) == ord('a')
	with pytest.raises(io.UnsupportedOperation):
		reader.reset()


def test_large_input_spans_chunks():
	data = bytes(range(256)) * 600
	reader = BitInputStream(io.BytesIO(data))
	got = bytearray()
	while True:
		bits = reader.read_bits(8)
		if bits == NO_MORE_BITS:
			break
		got.append(bits)
	assert bytes(got) == data


def test_file_sink_and_source(tmp_path):
	path = tmp_path / 'bits.bin'
	with BitOutputStream(open(path, 'wb')) as out:
		for value in range(10):
			out.write_bits(4, value)
		out.write_bits(3, 0b111)
	assert out.sink.closed
	assert path.read_bytes() == bytes([0x01, 0x23, 0x45, 0x67, 0x89, 0xe0])

	with BitInputStream(open(path, 'rb')) as reader:
		assert [reader.read_bits(4) for _ in range(10)] == list(range(10))
		assert reader.read_bits(3) == 0b111
	assert reader.source.closed
