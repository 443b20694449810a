"""
A Field is "fundamental" datatype from the format point of view, something directly
unpackable from a stream without need of sub-components.
"""
import logging
import struct
from enum import Enum

from .enum import Compliant
from .meta import FieldBase, Endianess
from .properties import ChunkPhase, PropertyDescriptor
from .exceptions import UnpackException, MagicException


logger = logging.getLogger(__name__)


class Field(FieldBase):
    """Base class to subclass from"""

    offset = PropertyDescriptor('offset', int)

    def __init__(self, *args, name=None, father=None, default=None, offset=None,
                 endianess=Endianess.LITTLE_ENDIAN, compliant=Compliant.INHERIT, is_magic=False):
        super().__init__()
        self._phase = ChunkPhase.INIT
        self.name = name
        self.father = father
        self.default = default
        self.offset = offset
        self.endianess = endianess
        self.compliant = compliant
        self.is_magic = is_magic

        self.init()

    def init(self):
        self.value = self.value_from_default()

    def value_from_default(self):
        return self.default

    def __str__(self):
        return str(self.value)

    def is_compliant(self, level):
        '''Returns True if the field (or the father it inherits from) requires the given level'''
        instance = self
        while instance is not None:
            if instance.compliant & level:
                return True
            if not instance.compliant & Compliant.INHERIT:
                break

            instance = instance.father

        return False

    def check_magic(self, value):
        if self.is_magic and value != self.default:
            logger.warning(f'the magic for field \'{self.name}\' doesn\'t correspond: {value!r} != {self.default!r}')
            if self.is_compliant(Compliant.MAGIC):
                raise MagicException(chain=[])

    value = property(
        fget=lambda self: self._get_value(),
        fset=lambda self, value: self._set_value(value))

    def _get_value(self):
        return self._value

    def _set_value(self, value) -> None:
        self._value = value

    def _get_size(self):
        raise NotImplementedError(f"method {self.__class__.__name__}._get_size() not implemented")

    size = property(
        fget=lambda self: self._get_size(),
    )

    def _get_raw(self) -> bytes:
        raise NotImplementedError(f"method {self.__class__.__name__}._get_raw() not implemented")

    raw = property(
        fget=lambda self: self._get_raw(),
    )

    def unpack(self, stream):
        raise NotImplementedError('you need to implement this in the subclass')


class StructField(Field):
    """
    Simplest of the fields: mimic the behaviour of the struct module unpacking
    integers from bytes.

    The main advantage is the possibility to indicate via the "enum" argument some subclass
    of enum.Enum so to have directly a representation of the integer value of the field itself.
    """

    def __init__(self, format, default=0, enum=None, **kw):
        self.format = format
        self.enum = enum
        super().__init__(default=default, **kw)

    def _get_encoder(self):
        return str if isinstance(self.value, bytes) else hex

    def __repr__(self):
        if not self.enum:
            return '<%s(%s)>' % (self.__class__.__name__, self._get_encoder()(self.value))

        return f'<{self.__class__.__name__}({self.value!r})>'

    def __str__(self):
        if self.format == 'c':
            return self.value.decode('latin1')
        formatter = '0x%%0%dx' % (self.size * 2)
        return formatter % (self.value if not isinstance(self.value, Enum) else self.value.value,)

    def value_from_default(self):
        if not self.enum or isinstance(self.default, self.enum):
            return super().value_from_default()

        return self.enum(self.default)

    def get_format(self):
        return '%s%s' % ('<' if self.endianess == Endianess.LITTLE_ENDIAN else '>', self.format)

    def _get_size(self):
        return struct.calcsize(self.get_format())

    def _get_raw(self) -> bytes:
        value = self.value
        return struct.pack(self.get_format(), value.value if isinstance(value, Enum) else value)

    def _unpack_struct(self, value: bytes) -> int:
        try:
            unpacked_value = struct.unpack(self.get_format(), value)[0]
        except struct.error as e:
            logger.error(e)
            exc = MagicException if self.is_compliant(Compliant.MAGIC) else UnpackException
            raise exc(chain=[])

        return unpacked_value

    def _unpack_enum(self, value: int) -> Enum:
        try:
            return self.enum(value)
        except ValueError:
            if self.is_compliant(Compliant.ENUM):
                raise UnpackException(chain=[])

            logger.warning(f'enum {self.enum!r} doesn\'t have element with value 0x{value:x} in it')

        return value

    def _unpack(self, raw):
        value = self._unpack_struct(raw)
        if self.enum:
            value = self._unpack_enum(value)

        self.check_magic(value)

        return value

    def unpack(self, stream):
        self.value = self._unpack(stream.read(self.size))


class StringField(Field):
    """Represent a contiguous chunk of bytes."""

    length = PropertyDescriptor('length', int)

    def __init__(self, n=None, **kw):
        if n is None and 'default' not in kw:
            raise ValueError(f"StringField must have 'n' or 'default' indicated!")

        self.length = n if n is not None else len(kw['default'])

        super().__init__(**kw)

    def __repr__(self):
        return '<%s(%s)>' % (self.__class__.__name__, repr(self.value))

    def value_from_default(self):
        return self.default if self.default is not None else b''

    def _get_size(self):
        length = self.length
        return length if length is not None else len(self.value)

    def _get_raw(self):
        return self.value

    def unpack(self, stream):
        value = stream.read(self.length)
        self.check_magic(value)
        self.value = value


class PascalStringField(Field):
    """A string prefixed by a byte containing its length."""

    def __repr__(self):
        return '<%s(%s)>' % (self.__class__.__name__, repr(self.value))

    def value_from_default(self):
        return self.default if self.default is not None else b''

    def _get_size(self):
        return 1 + len(self.value)

    def _get_raw(self):
        return bytes([len(self.value)]) + self.value

    def unpack(self, stream):
        length = stream.read(1)[0]
        self.value = stream.read(length)


class ArrayField(Field):
    '''Unpack an array of Chunks.

    You indicate the number of elements via the parameter named "n", it can be
    an integer or a Dependency.

    The field_cls can be a Chunk class or a field instance acting as prototype.
    '''

    n = PropertyDescriptor('n', int)

    def __init__(self, field_cls, n=0, **kw):
        self.field_cls = field_cls
        self.n = n

        if 'default' not in kw:
            kw['default'] = []

        super().__init__(**kw)

    def __repr__(self):
        return f'<{self.__class__.__name__}({self.value!r})>'

    def __getitem__(self, item):
        return self.value[item]

    def __iter__(self):
        return iter(self.value)

    def __len__(self):
        return len(self.value)

    def value_from_default(self):
        return list(self.default)

    def clear(self):
        self.value.clear()

    def _get_raw(self):
        return b''.join(element.raw for element in self.value)

    def _get_size(self):
        return sum(element.size for element in self.value)

    def instance_element(self):
        # pass the father so that we don't lose the hierarchy
        if isinstance(self.field_cls, type):
            return self.field_cls(father=self)

        return self.field_cls.create(father=self)

    def unpack_element(self, element, stream):
        element.unpack(stream)
        self.append(element)

    def unpack(self, stream):
        self.value = []

        n = self.n or 0
        logger.debug(f'unpacking {n} elements for \'{self.name}\'')

        for _ in range(n):
            element = self.instance_element()
            element.offset = stream.tell()
            self.unpack_element(element, stream)

    def append(self, element):
        element.father = self
        self.value.append(element)
