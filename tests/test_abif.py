import datetime
import struct

import pytest

from abistruct.enum import Compliant
from abistruct.fields import StringField, ArrayField
from abistruct.exceptions import MagicException, TruncatedException, PreconditionException
from abistruct.streams import Stream
from abistruct.sequencing.abif import (
    ABIFDirEntry,
    ABIFDirectoryField,
    ABIFHeader,
    ABIFFile,
    parse,
)
from abistruct.sequencing.abif.enum import ABIFDataType
from abistruct.sequencing.abif.utils import locate_header, find_cmbf, decode_elements

from conftest import ABIFBuilder, HEADER_SIZE


def test_entry_layout():
    """Check the directory entry is 28 bytes and the header 34."""
    assert ABIFDirEntry().size == 28
    assert ABIFHeader().size == 4 + 2 + 28


def test_locate_header():
    data = ABIFBuilder().build()

    assert locate_header(Stream(data)) == 0
    assert locate_header(Stream(b'\x00' * 128 + data)) == 128
    assert locate_header(Stream(b'\x00' * 256)) is None
    # not enough data for the second candidate
    assert locate_header(Stream(b'\x00' * 64)) is None

    with pytest.raises(TruncatedException):
        locate_header(Stream(b''))

    with pytest.raises(TruncatedException):
        locate_header(Stream(b'AB'))


def test_locate_header_keeps_position():
    stream = Stream(b'\x00' * 128 + b'ABIF')
    stream.seek(3)

    assert locate_header(stream) == 128
    assert stream.tell() == 3


def test_parse(sample):
    abif = parse(sample.build())

    assert abif.header_offset == 0
    assert abif.header.magic.value == b'ABIF'
    assert abif.header.version.value == 101
    assert abif.header.directory.tag.value == b'tdir'
    assert abif.header.directory.record_count.value == 4
    assert len(abif) == 4
    assert abif.tags == [('PBAS', 1), ('SMPL', 1), ('LANE', 1), ('DATA', 9)]


def test_parse_with_mac_header(sample):
    data = b'\xaa' * 128 + sample.build()

    abif = parse(data)

    assert abif.header_offset == 128
    assert abif.get_sequence_bases(1) == 'ACGTNACGTT'
    assert abif.get_pascal_string('SMPL', 1) == 'sample'


def test_parse_from_path(sample, tmp_path):
    path = tmp_path / 'sample.ab1'
    path.write_bytes(sample.build())

    assert parse(path).get_sequence_bases() == 'ACGTNACGTT'
    assert parse(str(path)).get_sequence_bases() == 'ACGTNACGTT'


def test_parse_not_abif():
    with pytest.raises(MagicException):
        parse(b'\x00' * 512)

    with pytest.raises(MagicException):
        parse(b'PK\x03\x04' + b'\x00' * 200)


@pytest.mark.parametrize('data', [
    b'',
    b'ABI',
])
def test_parse_too_short(data):
    with pytest.raises(TruncatedException):
        parse(data)


def test_parse_truncated_header():
    with pytest.raises(TruncatedException) as e:
        parse(b'ABIF\x00\x65tdir\x00\x00')

    assert e.value.chain[-1] == 'header'


def test_parse_truncated_directory(sample):
    data = sample.build()

    with pytest.raises(TruncatedException) as e:
        parse(data[:-10])

    assert e.value.chain[-1] == 'directory'


def test_parse_truncated_payload(builder):
    # the entry declares more bytes than there are
    builder.add('PBAS', 1, b'ACGTACGT', byte_count=0x1000)

    with pytest.raises(TruncatedException):
        parse(builder.build())


def test_parse_directory_instance(builder):
    """The directory entry in the header must have instance 1."""
    builder.dir_instance = 2
    builder.add('PBAS', 1, b'ACGTACGT')
    data = builder.build()

    with pytest.raises(MagicException) as e:
        parse(data)

    assert e.value.chain == ['header']

    # being lenient we get the records anyway
    abif = parse(data, compliant=Compliant.NONE)

    assert abif.get_sequence_bases() == 'ACGTACGT'


def test_inline_value(builder):
    builder.add('LANE', 1, b'\x00\x00\x00\x2a', data_type=ABIFDataType.LONG, data_size=4)
    builder.add('B1Pt', 2, b'\x01\x02', data_type=ABIFDataType.SHORT, data_size=2)
    data = builder.build()
    directory_offset = HEADER_SIZE

    abif = parse(data)
    record = abif.get_record('LANE', 1)

    assert record.payload is None
    assert record.is_inline
    assert record.directory_offset == directory_offset
    assert record.entry_end_offset == directory_offset + 28
    assert record.raw_value.raw == data[directory_offset + 20:directory_offset + 24]
    assert abif.get_value('LANE', 1) == int.from_bytes(data[directory_offset + 20:directory_offset + 24], 'big')
    assert abif.get_value('LANE', 1) == 42

    # the data is left aligned in the value field
    assert abif.get_value('B1Pt', 2) == 0x01020000
    assert abif.get_bytes('B1Pt', 2) == b'\x01\x02'
    assert abif.get_data('B1Pt', 2) == 0x0102


def test_payload(builder):
    sequence = b'ACGT' * 100
    builder.add('PBAS', 1, sequence)
    data = builder.build()

    abif = parse(data)
    record = abif.get_record('PBAS', 1)

    assert not record.is_inline
    assert len(record.payload) == record.byte_count.value == 400
    assert record.raw_value.value == HEADER_SIZE
    assert record.payload == data[record.raw_value.value:record.raw_value.value + 400]
    assert record.payload == sequence
    assert record.data is record.payload


def test_payload_is_a_copy(builder):
    builder.add('PBAS', 1, b'ACGTACGT')
    data = bytearray(builder.build())

    abif = parse(data)
    data[HEADER_SIZE:HEADER_SIZE + 8] = b'\x00' * 8

    assert abif.get_sequence_bases() == 'ACGTACGT'


def test_empty_records_are_dropped(builder):
    builder.add('PBAS', 1, b'ACGTACGT')
    builder.add('EMPT', 1, b'', byte_count=0)
    builder.add('NEGA', 1, b'', byte_count=-4)
    builder.add('SPAC', 1, b'\x00\x00\x00\x01', data_type=ABIFDataType.LONG, data_size=4)

    abif = parse(builder.build())

    assert abif.header.directory.record_count.value == 4
    assert len(abif) == 2
    assert abif.find('EMPT', 1) is None
    assert abif.find('NEGA', 1) is None
    assert abif.find('SPAC', 1) == 1


def test_pascal_string(builder):
    builder.add('SMPL', 1, b'\x05HELLO', data_type=ABIFDataType.PSTRING)
    builder.add('SMLL', 1, b'\x03ABC', data_type=ABIFDataType.PSTRING)
    builder.add('INLN', 1, b'\x00XYZ')
    builder.add('SHRT', 1, b'\x00X')

    abif = parse(builder.build())

    assert abif.get_record('SMPL', 1).payload is not None
    assert abif.get_pascal_string('SMPL', 1) == 'HELLO'
    assert abif.get_record('SMLL', 1).payload is None
    assert abif.get_pascal_string('SMLL', 1) == 'ABC'
    # the first byte of the value is never used
    assert abif.get_pascal_string('INLN', 1) == 'XYZ'
    assert abif.get_pascal_string('SHRT', 1) == 'X'


def test_pascal_string_length_past_the_payload(builder):
    builder.add('SMPL', 1, b'\x09HELLO')

    abif = parse(builder.build())

    assert abif.get_pascal_string('SMPL', 1) == 'HELLO'


def test_sequence_bases(builder):
    builder.add('PBAS', 1, b'ACGT')
    builder.add('PBAS', 2, b'\x04ACGT')

    abif = parse(builder.build())

    assert abif.get_sequence_bases() == 'ACGT'
    # no length prefix is consumed
    assert abif.get_sequence_bases(2) == '\x04ACGT'
    assert abif.get_bytes_as_string('PBAS', 2) == '\x04ACGT'


def test_sequence_bases_missing(builder):
    builder.add('PBAS', 1, b'ACGTACGT')

    abif = parse(builder.build())

    with pytest.raises(PreconditionException):
        abif.get_sequence_bases(2)


def test_missing_record(sample):
    abif = parse(sample.build())

    assert abif.find('ZZZZ', 99) is None
    assert abif.get_record('ZZZZ', 99) is None
    assert abif.get_value('ZZZZ', 99) == 0
    assert abif.get_bytes('ZZZZ', 99) == b''
    assert abif.get_bytes_as_string('ZZZZ', 99) == ''
    assert abif.get_pascal_string('ZZZZ', 99) == ''
    assert abif.get_data('ZZZZ', 99) is None
    # the instance is part of the key
    assert abif.find('DATA', 1) is None
    assert abif.find(b'DATA', 9) == 3


def test_first_match_wins(builder):
    builder.add('PBAS', 1, b'AAAAAAAA')
    builder.add('PBAS', 1, b'CCCCCCCC')

    abif = parse(builder.build())

    assert abif.find('PBAS', 1) == 0
    assert abif.get_sequence_bases() == 'AAAAAAAA'


def test_parse_is_deterministic(sample):
    data = sample.build()

    def summary(abif):
        return [(_.key, _.data_type.value, _.data) for _ in abif]

    assert summary(parse(data)) == summary(parse(data))


def test_unpack_replaces_records(sample, builder):
    builder.add('PBAS', 1, b'TTTTTTTT')

    abif = parse(sample.build())
    abif.unpack(Stream(b'\x00' * 128 + builder.build()))

    assert abif.header_offset == 128
    assert abif.tags == [('PBAS', 1)]
    assert abif.get_sequence_bases() == 'TTTTTTTT'


def test_get_data(sample, builder):
    builder.add('FLTS', 1, struct.pack('>2f', 1.5, -2.25), data_type=ABIFDataType.FLOAT, data_size=4)
    builder.add('DBLS', 1, struct.pack('>d', 0.125), data_type=ABIFDataType.DOUBLE, data_size=8)
    builder.add('RUND', 1, struct.pack('>hBB', 2021, 3, 14), data_type=ABIFDataType.DATE, data_size=4)
    builder.add('RUNT', 1, bytes([12, 34, 56, 5]), data_type=ABIFDataType.TIME, data_size=4)
    builder.add('CMNT', 1, b'a comment\x00', data_type=ABIFDataType.CSTRING)
    builder.add('FLAG', 1, b'\x01', data_type=ABIFDataType.BOOL)
    builder.add('WORD', 1, struct.pack('>3H', 1, 65535, 2), data_type=ABIFDataType.WORD, data_size=2)
    builder.add('USER', 1, b'\xde\xad\xbe\xef\x00', data_type=1024)

    abif = parse(builder.build())

    assert abif.get_data('FLTS', 1) == [1.5, -2.25]
    assert abif.get_data('DBLS', 1) == 0.125
    assert abif.get_data('RUND', 1) == datetime.date(2021, 3, 14)
    assert abif.get_data('RUNT', 1) == datetime.time(12, 34, 56, 50000)
    assert abif.get_data('CMNT', 1) == 'a comment'
    assert abif.get_data('FLAG', 1) is True
    assert abif.get_data('WORD', 1) == [1, 65535, 2]
    assert abif.get_data('USER', 1) == b'\xde\xad\xbe\xef\x00'

    abif = parse(sample.build())

    assert abif.get_data('DATA', 9) == [0, 10, -20, 300, 4000]
    assert abif.get_data('LANE', 1) == 7
    assert abif.get_data('SMPL', 1) == 'sample'
    assert abif.get_data('PBAS', 1) == 'ACGTNACGTT'


def test_decode_elements_truncated():
    with pytest.raises(TruncatedException):
        decode_elements(b'\x00\x01\x00', ABIFDataType.SHORT.value, 2)

    with pytest.raises(TruncatedException):
        decode_elements(b'\x05AB', ABIFDataType.PSTRING.value, 1)

    assert decode_elements(b'', ABIFDataType.LONG.value, 0) == []


def test_find_cmbf():
    data = b'\x00' * 16 + b'CMBF' + b'\x00' * 4 + b'CMBF' + b'\x00' * 8

    assert find_cmbf(data) == 24
    # the first byte is never considered
    assert find_cmbf(b'CMBF' + b'\x00' * 8) == -1
    # neither are the last 7 bytes
    assert find_cmbf(b'\x00' * 8 + b'CMBF' + b'\x00' * 3) == -1
    assert find_cmbf(b'\x00' * 8 + b'CMBF' + b'\x00' * 4) == 8
    assert find_cmbf(b'') == -1


def test_abif_file_without_data():
    abif = ABIFFile()

    assert len(abif) == 0
    assert abif.get_value('PBAS', 1) == 0


def test_chunks_use_the_framework_fields():
    assert isinstance(ABIFDirEntry.tag, StringField)
    assert isinstance(ABIFHeader.magic, StringField)
    assert isinstance(ABIFFile.directory, ABIFDirectoryField)
    assert isinstance(ABIFFile.directory, ArrayField)


def test_negative_entry_count(builder):
    builder.add('PBAS', 1, b'ACGTACGT')
    data = bytearray(builder.build())
    # record_count of the directory entry in the header
    data[18:22] = b'\xff\xff\xff\xff'

    abif = parse(bytes(data))

    assert abif.header.directory.record_count.value == -1
    assert len(abif) == 0


def test_tag_outside_latin1(sample):
    abif = parse(sample.build())

    assert abif.find('€BCD', 1) is None
    assert abif.get_value('€BCD', 1) == 0
    assert abif.get_pascal_string('€BCD', 1) == ''
    assert abif.get_bytes_as_string('€BCD', 1) == ''
    assert abif.get_data('€BCD', 1) is None


def test_truncated_payload_leaves_stream_history_empty(builder):
    builder.add('PBAS', 1, b'ACGTACGT', byte_count=0x1000)
    stream = Stream(builder.build())

    with pytest.raises(TruncatedException):
        ABIFFile().unpack(stream)

    assert stream.history == []
