'''
This module contains the constant values used by the ABIF format.
'''
from enum import Enum


class ABIFDataType(Enum):
    '''Element type of a directory entry (the "data_type" field).

    Values 1024 and above are reserved for user defined types.'''
    BYTE    = 1   # unsigned 8-bit
    CHAR    = 2   # 8-bit, used for text
    WORD    = 3   # unsigned 16-bit
    SHORT   = 4   # signed 16-bit
    LONG    = 5   # signed 32-bit
    RATIONAL = 6  # unsupported legacy
    FLOAT   = 7   # IEEE 754 32-bit
    DOUBLE  = 8   # IEEE 754 64-bit
    BCD     = 9   # unsupported legacy
    DATE    = 10  # year (16-bit), month, day
    TIME    = 11  # hour, minute, second, hundredths
    THUMB   = 12  # run fingerprint
    BOOL    = 13
    POINT   = 14  # unsupported legacy
    RECT    = 15  # unsupported legacy
    VPOINT  = 16  # unsupported legacy
    VRECT   = 17  # unsupported legacy
    PSTRING = 18  # Pascal string
    CSTRING = 19  # NUL terminated string
    TAG     = 20  # unsupported legacy
    DELTACOMP = 128  # unsupported legacy
    LZWCOMP   = 256  # unsupported legacy
    DELTALZW  = 384  # unsupported legacy
    USER    = 1024


# tags the accessors know about
TAG_SEQUENCE_BASES = b'PBAS'
TAG_DIRECTORY      = b'tdir'
