import io
import os
import logging

from .exceptions import TruncatedException


logger = logging.getLogger(__name__)


class Stream(object):
    '''This is a simple wrapper around the data to unpack: whatever
    is passed (a path or some bytes) ends up completely in memory, so the
    original file is closed before any field reads from it.

    Every read is checked against the size of the data; reading past
    the end raises TruncatedException instead of returning short data.'''
    def __init__(self, obj):
        '''Here we normalize the object in order to be accessed as a normal file object'''
        if isinstance(obj, os.PathLike):
            obj = os.fspath(obj)

        self._type = type(obj)
        self.obj = obj
        self.history = []

        init_method_name = 'init_%s' % self.obj.__class__.__name__

        init_method = getattr(self, init_method_name, None)

        if init_method is None:
            raise ValueError('\'%s\' is not something we can stream from' % self._type.__name__)

        init_method()

        self.size = self.obj.seek(0, io.SEEK_END)
        self.obj.seek(0)

    def __getattr__(self, name):
        if name == 'obj':
            raise AttributeError(name)
        return getattr(self.obj, name)

    def __repr__(self):
        return '<%s(%s, size=%d)>' % (self.__class__.__name__, self._type.__name__, self.size)

    def __len__(self):
        return self.size

    def init_str(self):
        '''We think this is a path'''
        logger.debug('reading path \'%s\'' % self.obj)
        with open(self.obj, 'rb') as f:
            self.obj = io.BytesIO(f.read())

    def init_bytes(self):
        '''We think these are raw bytes'''
        self.obj = io.BytesIO(self.obj)

    def init_bytearray(self):
        self.obj = io.BytesIO(bytes(self.obj))

    def init_memoryview(self):
        self.obj = io.BytesIO(self.obj.tobytes())

    def seek(self, offset):
        if not isinstance(offset, int):
            raise ValueError('\'%s\' is the wrong kind of offset to use' % offset.__class__.__name__)

        if offset < 0:
            logger.debug('negative offset %d' % offset)
            raise TruncatedException(chain=[])

        self.obj.seek(offset)

    def read(self, n):
        position = self.obj.tell()

        if n < 0 or position + n > self.size:
            logger.debug(f'reading {n} bytes at offset 0x{position:x} but the data is {self.size} bytes long')
            raise TruncatedException(chain=[])

        return self.obj.read(n)

    def read_all(self):
        '''Returns all the data from the actual position to the end.'''
        return self.obj.read()

    def remaining(self):
        return self.size - self.obj.tell()

    def save(self):
        self.history.append(self.obj.tell())

    def restore(self):
        old_seek = self.history.pop()
        self.obj.seek(old_seek)
