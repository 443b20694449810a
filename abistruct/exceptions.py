class AbstructException(Exception):
    '''Base class to extend in order to throw exception in abistruct.

    It takes a single argument that represents the chain of the layer that
    caused the exception.
    '''

    def __init__(self, chain):
        self.chain = chain
        super().__init__()

    def __str__(self):
        return '.'.join(reversed(self.chain))


class UnpackException(AbstructException):
    pass


class TruncatedException(UnpackException):
    '''A read would go past the end of the data.'''
    pass


class MagicException(AbstructException):
    '''The data is not in the format we are trying to unpack.'''
    pass


class PreconditionException(AbstructException):
    '''The caller asked for something it is sure is there, and it isn't.'''
    pass
