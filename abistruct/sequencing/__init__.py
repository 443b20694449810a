'''Formats of the files produced by sequencing instruments.'''
