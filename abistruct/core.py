"""
Core module for the abstraction of a file format

"""
import logging
from typing import Tuple, List, Dict

from .fields import Field
from .enum import Compliant
from .meta import MetaChunk
from .streams import Stream
from .exceptions import (
    AbstructException,
    MagicException,
)
from .properties import (
    get_root_from_chunk,
    ChunkPhase,
)


logger = logging.getLogger(__name__)


class Chunk(Field, metaclass=MetaChunk):
    """
    Together with Field is the main class that defines a format: its main attributes
    are offset and size that identify a Chunk.

    A Chunk can contain sub-chunks, declared in the class body like any other field:
    the declaration is a prototype and each instance gets its own copy.

    A subclass can define a validate() method returning a boolean: it's called
    after the unpacking and, if it fails, a MagicException is raised when the
    chunk is compliant with Compliant.MAGIC.
    """

    def __init__(self, filepath=None, **kwargs):
        super().__init__(**kwargs)

        # the stream is not kept around: once unpacked the chunk doesn't
        # need the original data anymore
        if filepath is not None:
            stream = filepath if isinstance(filepath, Stream) else Stream(filepath)
            logger.debug('unpacking \'%s\' from %r' % (self.__class__.__name__, stream))
            self.unpack(stream)

    def get_ordered_fields_name(self) -> List[str]:
        return self._meta.fields

    def get_fields(self) -> List[Tuple[str, Field]]:
        '''It returns a list of couples (name, instance) for each field.'''
        return [(_, getattr(self, _)) for _ in self.get_ordered_fields_name()]

    def reset(self):
        '''Forget the unpacked fields: the next access creates them anew from the prototypes.'''
        for name in self.get_ordered_fields_name():
            self.__dict__.pop(name, None)

    def __repr__(self):
        msg = []
        for field_name, field in self.get_fields():
            msg.append('%s=%s' % (field_name, repr(field)))
        return '<%s(%s)>' % (self.__class__.__name__, ','.join(msg))

    def __str__(self):
        msg = ''
        for field_name, field in self.get_fields():
            msg += '%s: %s\n' % (field_name, repr(field))
        return msg

    @property
    def root(self):
        '''Obtain the final father of this chunk'''
        return get_root_from_chunk(self)

    @property
    def isRoot(self):
        return self.root is self

    def _get_size(self):
        '''the size parameter MUST not be set but MUST be derived from the subchunks'''
        size = 0
        for _, field in self.get_fields():
            size += field.size

        return size

    def _get_raw(self):
        value = b''
        for field_name, field_instance in self.get_fields():
            value += field_instance.raw

        return value

    @property
    def layout(self) -> Dict[str, Tuple[int, int]]:
        result = {}
        for name, field in self.get_fields():
            result[name] = (field.offset, field.size)

        return result

    def unpack(self, stream):
        '''This is one of the main APIs to take care of: its aim is to take a binary
        data and transform in the representation given by the class this method
        is implemented.

        Passing a stream is mandatory since is possible that the different
        sub-chunks can have offsets not contiguous so we need to jump back and
        forth.

        A field with an explicit offset (possibly a Dependency) is read from
        there, otherwise from where the previous field ended.

        When a field fails, its name is appended to the chain of the exception
        so that the caller knows where the failure happened.
        '''
        self._phase = ChunkPhase.UNPACKING
        for field_name, field in self.get_fields():
            logger.debug('unpacking %s.%s' % (self.__class__.__name__, field_name))

            # setup the offset for this chunk
            offset = field.offset
            if offset is not None:
                stream.seek(offset)
            else:
                offset = stream.tell()

            logger.debug('offset at %d' % offset)

            try:
                field.unpack(stream)
            except AbstructException as e:
                e.chain.append(field_name)
                raise
            field.offset = offset

        if hasattr(self, 'validate'):
            ret = self.validate()
            if not ret:
                logger.warning(f'validation for \'{self.__class__.__name__}\' failed')
                if self.is_compliant(Compliant.MAGIC):
                    raise MagicException(chain=[])

        self._phase = ChunkPhase.DONE
