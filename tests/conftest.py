import struct

import pytest

from abistruct.sequencing.abif.enum import ABIFDataType


HEADER_SIZE = 128
ENTRY_FORMAT = '>4siHHiiII'


def pack_entry(tag, instance, data_type, data_size, record_count, byte_count, value, spare=0):
    return struct.pack(ENTRY_FORMAT, tag, instance, data_type, data_size, record_count, byte_count, value, spare)


class ABIFBuilder:
    '''Build in memory an ABIF container: header, then the data that doesn't
    fit in the entries, then the directory.'''

    def __init__(self, pad=0, version=101, dir_instance=1):
        self.pad = pad
        self.version = version
        self.dir_instance = dir_instance
        self.entries = []

    def add(self, tag, instance, data, data_type=ABIFDataType.CHAR, data_size=1, record_count=None, byte_count=None):
        if isinstance(data_type, ABIFDataType):
            data_type = data_type.value

        self.entries.append({
            'tag': tag if isinstance(tag, bytes) else tag.encode('latin1'),
            'instance': instance,
            'data': data,
            'data_type': data_type,
            'data_size': data_size,
            'record_count': len(data) // data_size if record_count is None else record_count,
            'byte_count': len(data) if byte_count is None else byte_count,
        })

        return self

    def layout(self):
        '''Returns the directory (as bytes), the data area and the offset of the directory'''
        data_area = b''
        directory = b''

        for entry in self.entries:
            if entry['byte_count'] > 4:
                value = HEADER_SIZE + len(data_area)
                data_area += entry['data']
            else:
                value = int.from_bytes(entry['data'][:4].ljust(4, b'\x00'), 'big')

            directory += pack_entry(
                entry['tag'],
                entry['instance'],
                entry['data_type'],
                entry['data_size'],
                entry['record_count'],
                entry['byte_count'],
                value,
            )

        return directory, data_area, HEADER_SIZE + len(data_area)

    def build(self):
        directory, data_area, directory_offset = self.layout()

        header = b'ABIF' + struct.pack('>H', self.version) + pack_entry(
            b'tdir', self.dir_instance, 1023, 28, len(self.entries), len(directory), directory_offset)
        header = header.ljust(HEADER_SIZE, b'\x00')

        return b'\x00' * self.pad + header + data_area + directory


@pytest.fixture
def builder():
    return ABIFBuilder()


@pytest.fixture
def sample():
    '''A small run: a sequence, a sample name, a lane number and a trace.'''
    return ABIFBuilder()\
        .add('PBAS', 1, b'ACGTNACGTT')\
        .add('SMPL', 1, b'\x06sample', data_type=ABIFDataType.PSTRING)\
        .add('LANE', 1, b'\x00\x07', data_type=ABIFDataType.SHORT, data_size=2)\
        .add('DATA', 9, struct.pack('>5h', 0, 10, -20, 300, 4000), data_type=ABIFDataType.SHORT, data_size=2)
