from enum import Flag


class Compliant(Flag):
    '''How strictly the data must follow the format.

    A field with INHERIT asks its father, up to the root chunk; the root
    is usually where the level is set, e.g. ABIFFile(data, compliant=Compliant.MAGIC).
    '''
    NONE    = 0
    ENUM    = 1 << 0  # an integer outside its enum raises
    MAGIC   = 1 << 1  # wrong magic values and failed validate() raise
    INHERIT = 1 << 2
    STRICT  = ENUM | MAGIC
