"""
# Abistruct: file formats for sequencing instruments.

We describe a file format as a tree of chunks: each chunk is a sequence of
fields, a field being something directly readable from the data (an integer,
a fixed size string, an array of other chunks).

The format is declared in the body of a class, Django-style

    class Entry(Chunk):
        tag    = fields.StringField(4)
        length = fields.StructField('I', endianess=Endianess.BIG_ENDIAN)
        data   = fields.StringField(Dependency('.length'))

and instantiating the class with a path or some bytes unpacks the data

    entry = Entry(b'...')
    entry.data.value

The fields declared in the class are prototypes: each instance works on its
own copies. A field can depend on the value of another one (length, number
of elements, offset) via Dependency.

Everything read goes through a Stream that keeps the whole data in memory and
refuses to read past its end (TruncatedException).

How strict the unpacking is with respect to the format is controlled by the
Compliant flag: with Compliant.MAGIC a wrong magic raises MagicException
instead of logging a warning.
"""
