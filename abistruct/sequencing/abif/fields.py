'''
Integer fields of the ABIF format: everything is big-endian, and the 32-bit
values are read as two 16-bit halves.
'''
import struct

from ... import fields
from ...meta import Endianess
from ...properties import Dependency, get_root_from_chunk


class ABIFWord(fields.StructField):
    '''16-bit big-endian integer, i.e. byte0 * 256 + byte1'''

    def __init__(self, signed=False, **kwargs):
        kwargs['endianess'] = Endianess.BIG_ENDIAN
        super().__init__('h' if signed else 'H', **kwargs)


class ABIFLong(fields.StructField):
    '''32-bit integer assembled from two big-endian 16-bit halves as high * 65536 + low.

    With signed=True the high half is read as signed, giving the
    signed 32-bit value.'''

    def __init__(self, signed=False, **kwargs):
        kwargs['endianess'] = Endianess.BIG_ENDIAN
        self.signed = signed
        super().__init__('i' if signed else 'I', **kwargs)

    def _unpack_struct(self, value: bytes) -> int:
        halves = '>hH' if self.signed else '>HH'
        try:
            high, low = struct.unpack(halves, value)
        except struct.error:
            # let the parent class decide which exception
            return super()._unpack_struct(value)

        return high * 0x10000 + low


class HeaderOffset(Dependency):
    '''Offsets inside an ABIF container are relative to the start of
    the header, that is not always at the start of the data: this adds
    the header_offset of the root chunk to the resolved value.'''

    def resolve(self, instance):
        value = super().resolve(instance)
        root = get_root_from_chunk(instance)

        return getattr(root, 'header_offset', 0) + value
