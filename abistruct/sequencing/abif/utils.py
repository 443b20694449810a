import datetime
import logging
from typing import Optional

from bitstring import ConstBitStream

from ...exceptions import TruncatedException, UnpackException
from ...fields import PascalStringField
from ...streams import Stream
from .enum import ABIFDataType


logger = logging.getLogger(__name__)


ABIF_MAGIC = b'ABIF'
CMBF_MAGIC = b'CMBF'

# the header is at the start of the file, unless the file comes
# with a 128 bytes Macintosh header in front of it
HEADER_OFFSETS = (0, 128)

# token for bitstring and size in bytes of each numeric element
ELEMENT_TOKENS = {
    ABIFDataType.BYTE:   ('uint:8', 1),
    ABIFDataType.WORD:   ('uintbe:16', 2),
    ABIFDataType.SHORT:  ('intbe:16', 2),
    ABIFDataType.LONG:   ('intbe:32', 4),
    ABIFDataType.FLOAT:  ('floatbe:32', 4),
    ABIFDataType.DOUBLE: ('floatbe:64', 8),
    ABIFDataType.BOOL:   ('uint:8', 1),
}


def locate_header(stream: Stream) -> Optional[int]:
    '''Returns the offset of the "ABIF" magic, None if it's not where we expect it.

    The position of the stream is not modified.'''
    if stream.size < len(ABIF_MAGIC):
        logger.debug(f'{stream.size} bytes are not enough for the magic')
        raise TruncatedException(chain=[])

    stream.save()
    try:
        for offset in HEADER_OFFSETS:
            if offset + len(ABIF_MAGIC) > stream.size:
                continue

            stream.seek(offset)
            if stream.read(len(ABIF_MAGIC)) == ABIF_MAGIC:
                logger.debug(f'header found at offset {offset}')
                return offset
    finally:
        stream.restore()

    return None


def find_cmbf(data: bytes) -> int:
    '''Scan backward for a CMBF structure, starting 8 bytes before the end and
    stopping before the first byte.

    Returns its offset or -1.'''
    return data.rfind(CMBF_MAGIC, 1, max(len(data) - 4, 0))


def unpack_elements(data: bytes, token: str, size: int, count: int) -> list:
    if count <= 0:
        return []

    if len(data) < size * count:
        logger.debug(f'{count} elements of {size} bytes don\'t fit in {len(data)} bytes')
        raise TruncatedException(chain=[])

    return ConstBitStream(bytes=data).readlist([token] * count)


def _decode_dates(data, count):
    dates = []
    for idx in range(count):
        year, month, day = ConstBitStream(bytes=data[idx * 4:idx * 4 + 4]).readlist(['intbe:16', 'uint:8', 'uint:8'])
        dates.append(datetime.date(year, month, day))

    return dates


def _decode_times(data, count):
    times = []
    for idx in range(count):
        hour, minute, second, hsecond = unpack_elements(data[idx * 4:idx * 4 + 4], 'uint:8', 1, 4)
        times.append(datetime.time(hour, minute, second, hsecond * 10000))

    return times


def decode_elements(data: bytes, data_type: int, count: int):
    '''Decode the data of a record following its element type.

    Numeric types give a list, or a scalar when there is a single element;
    textual types give a string; the others are returned as they are.'''
    try:
        element_type = ABIFDataType(data_type)
    except ValueError:
        logger.debug(f'no decoding for data type {data_type}')
        return data

    if element_type in ELEMENT_TOKENS:
        token, size = ELEMENT_TOKENS[element_type]
        values = unpack_elements(data, token, size, count)

        if element_type == ABIFDataType.BOOL:
            values = [bool(_) for _ in values]

        return values[0] if len(values) == 1 else values

    if element_type in (ABIFDataType.DATE, ABIFDataType.TIME):
        if len(data) < 4 * count:
            raise TruncatedException(chain=[])

        try:
            values = _decode_dates(data, count) if element_type == ABIFDataType.DATE else _decode_times(data, count)
        except ValueError as e:
            logger.error(e)
            raise UnpackException(chain=[])

        return values[0] if len(values) == 1 else values

    if element_type == ABIFDataType.CHAR:
        return data.decode('latin1')

    if element_type == ABIFDataType.PSTRING:
        field = PascalStringField()
        field.unpack(Stream(data))
        return field.value.decode('latin1')

    if element_type == ABIFDataType.CSTRING:
        return data.split(b'\x00', 1)[0].decode('latin1')

    logger.debug(f'data type {element_type} is returned as raw bytes')

    return data
