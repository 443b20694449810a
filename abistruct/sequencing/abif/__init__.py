'''
# Applied Biosystems Genetic Analysis Data File Format

Format used by the capillary electrophoresis sequencers to store the traces
and the base calls (the files with extension .ab1/.abi/.fsa).

The file is a "directory" of records, each one identified by a tag of four
characters and an instance number. The header contains the entry that
points to the directory:

    offset  size
      0      4   magic "ABIF"
      4      2   version
      6     28   directory entry of the directory itself ("tdir")

and each entry of the directory is

    offset  size
      0      4   tag
      4      4   instance
      8      2   data type (see ABIFDataType)
     10      2   data size (size of one element)
     12      4   number of elements
     16      4   size of the data in bytes
     20      4   value: the data itself if the size is at most 4 bytes,
                 otherwise the offset of the data
     24      4   spare

All the integers are big-endian and all the offsets are relative to the
start of the header: files coming from the Macintosh can have 128 bytes
in front of it.

The description of the format is at
<https://projects.nfstc.org/workshops/resources/articles/ABIF_File_Format.pdf>.
'''
import logging
from typing import List, Optional, Tuple, Union

from ...core import Chunk
from ...enum import Compliant
from ...exceptions import MagicException, PreconditionException
from ...properties import Dependency
from .enum import ABIFDataType, TAG_SEQUENCE_BASES, TAG_DIRECTORY
from .fields import ABIFWord, ABIFLong, HeaderOffset
from .utils import ABIF_MAGIC, locate_header, decode_elements
# after the local modules, otherwise importing .fields shadows it
from ... import fields


logger = logging.getLogger(__name__)

# beyond this size the data is not stored inside the entry
INLINE_SIZE = 4


def _tag_to_bytes(tag: Union[str, bytes]) -> bytes:
    return tag.encode('latin1') if isinstance(tag, str) else bytes(tag)


class ABIFDirEntry(Chunk):
    tag          = fields.StringField(4)
    instance     = ABIFLong(signed=True)
    data_type    = ABIFWord()
    data_size    = ABIFWord()
    record_count = ABIFLong(signed=True)
    byte_count   = ABIFLong(signed=True)
    raw_value    = ABIFLong()
    spare        = ABIFLong()

    def __repr__(self):
        return '<%s(%s, %d, type=%d, count=%d, bytes=%d, value=0x%08x)>' % (
            self.__class__.__name__,
            self.tag.value.decode('latin1'),
            self.instance.value,
            self.data_type.value,
            self.record_count.value,
            self.byte_count.value,
            self.raw_value.value,
        )

    @property
    def key(self) -> Tuple[bytes, int]:
        return self.tag.value, self.instance.value

    @property
    def is_inline(self):
        return self.byte_count.value <= INLINE_SIZE


class ABIFRecord(ABIFDirEntry):
    '''An entry of the directory together with its data.

    When the data doesn't fit in the entry it's copied out of the stream
    into "payload", otherwise "payload" is None and the data is the
    value field itself.'''
    payload    = None
    end_offset = None

    def unpack(self, stream):
        self.offset = stream.tell()
        self.payload = None

        super().unpack(stream)

        self.end_offset = stream.tell()

        if self.is_inline:
            return

        byte_count = self.byte_count.value

        data_offset = getattr(self.root, 'header_offset', 0) + self.raw_value.value
        logger.debug(f'copying {byte_count} bytes for \'{self.tag.value!r}\' from offset 0x{data_offset:x}')

        stream.save()
        try:
            stream.seek(data_offset)
            self.payload = stream.read(byte_count)
        finally:
            stream.restore()

    @property
    def directory_offset(self) -> int:
        return self.offset

    @property
    def entry_end_offset(self) -> int:
        return self.end_offset

    @property
    def data(self) -> bytes:
        '''The bytes of the record, wherever they are stored.'''
        if self.payload is not None:
            return self.payload

        byte_count = max(self.byte_count.value, 0)

        return self.raw_value.raw[:byte_count]

    def get_pascal_string(self) -> str:
        '''The first byte of the payload is the length of the string; when the
        data is inline the last three bytes of the value are the string
        (the first one is never used).'''
        if self.payload is None:
            return self.raw_value.raw[1:].split(b'\x00', 1)[0].decode('latin1')

        length = self.payload[0]

        return self.payload[1:1 + length].decode('latin1')

    def get_data(self):
        return decode_elements(self.data, self.data_type.value, self.record_count.value)


class ABIFHeader(Chunk):
    magic     = fields.StringField(4, default=ABIF_MAGIC, is_magic=True)
    version   = ABIFWord()
    directory = ABIFDirEntry()

    def validate(self):
        '''The directory has always instance number 1'''
        if self.directory.tag.value != TAG_DIRECTORY:
            logger.debug(f'the directory has tag {self.directory.tag.value!r}')

        return self.directory.instance.value == 1


class ABIFDirectoryField(fields.ArrayField):
    '''The directory table: the entries without data are dropped.'''

    def unpack_element(self, element, stream):
        element.unpack(stream)

        if element.byte_count.value <= 0:
            logger.debug(f'dropping {element!r} since it has no data')
            return

        self.append(element)


class ABIFFile(Chunk):
    '''The container: it owns the records read from the directory and gives
    access to them by tag and instance number.

    The tag can be passed as str or bytes; the strings returned are
    the bytes of the record decoded one by one (latin1).

        abif = ABIFFile('sample.ab1', compliant=Compliant.MAGIC)
        abif.get_sequence_bases()
        abif.get_pascal_string('SMPL', 1)
    '''
    header    = ABIFHeader()
    directory = ABIFDirectoryField(
        ABIFRecord,
        n=Dependency('header.directory.record_count'),
        offset=HeaderOffset('header.directory.raw_value'),
    )

    def __init__(self, filepath=None, **kwargs):
        self.header_offset = None
        super().__init__(filepath, **kwargs)

    def __len__(self):
        return len(self.records)

    def __iter__(self):
        return iter(self.records)

    def unpack(self, stream):
        # a new unpacking replaces whatever was there
        self.reset()
        self.header_offset = None

        header_offset = locate_header(stream)

        if header_offset is None:
            logger.warning('no ABIF magic found, this is not an ABIF file')
            raise MagicException(chain=['header'])

        self.header_offset = header_offset
        stream.seek(header_offset)

        super().unpack(stream)

        logger.debug(f'found {len(self.records)} records')

    @property
    def records(self) -> List[ABIFRecord]:
        if self.header_offset is None:
            return []

        return self.directory.value

    @property
    def tags(self) -> List[Tuple[str, int]]:
        return [(_.tag.value.decode('latin1'), _.instance.value) for _ in self.records]

    def find(self, tag: Union[str, bytes], instance: int) -> Optional[int]:
        '''Returns the index of the record, None if there isn't one.'''
        try:
            key = (_tag_to_bytes(tag), instance)
        except UnicodeEncodeError:
            # no record has a tag outside latin1
            return None

        for idx, record in enumerate(self.records):
            if record.key == key:
                return idx

        return None

    def get_record(self, tag: Union[str, bytes], instance: int) -> Optional[ABIFRecord]:
        idx = self.find(tag, instance)

        return self.records[idx] if idx is not None else None

    def get_value(self, tag: Union[str, bytes], instance: int) -> int:
        '''The value field of the record, 0 if it doesn't exist.'''
        record = self.get_record(tag, instance)

        return record.raw_value.value if record is not None else 0

    def get_bytes(self, tag: Union[str, bytes], instance: int) -> bytes:
        record = self.get_record(tag, instance)

        return record.data if record is not None else b''

    def get_bytes_as_string(self, tag: Union[str, bytes], instance: int) -> str:
        return self.get_bytes(tag, instance).decode('latin1')

    def get_pascal_string(self, tag: Union[str, bytes], instance: int) -> str:
        record = self.get_record(tag, instance)

        return record.get_pascal_string() if record is not None else ''

    def get_sequence_bases(self, instance: int = 1) -> str:
        '''The called bases, as they are stored (there is no length prefix).

        The caller must know the record exists: if it doesn't, a
        PreconditionException is raised.'''
        record = self.get_record(TAG_SEQUENCE_BASES, instance)

        if record is None:
            raise PreconditionException(chain=[f'PBAS{instance}'])

        return record.data.decode('latin1')

    def get_data(self, tag: Union[str, bytes], instance: int):
        '''The data of the record decoded following its data type, None if it doesn't exist.'''
        record = self.get_record(tag, instance)

        return record.get_data() if record is not None else None


def parse(source, compliant=Compliant.MAGIC) -> ABIFFile:
    '''Parse a path or some bytes, raising MagicException if it's not an ABIF
    container and TruncatedException if the data ends too early.'''
    return ABIFFile(source, compliant=compliant)


__all__ = [
    'ABIFDataType',
    'ABIFDirEntry',
    'ABIFRecord',
    'ABIFHeader',
    'ABIFDirectoryField',
    'ABIFFile',
    'parse',
]
