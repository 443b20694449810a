#!/usr/bin/env python3
'''
Dump the directory of an ABIF file (.ab1, .abi, .fsa).

 $ abifdump.py sample.ab1
 $ abifdump.py sample.ab1 DATA 9
'''
import sys
import os
import logging
from pathlib import Path

from abistruct.enum import Compliant
from abistruct.exceptions import MagicException, UnpackException
from abistruct.sequencing.abif import parse
from abistruct.sequencing.abif.enum import ABIFDataType
from abistruct.sequencing.abif.utils import find_cmbf


logging.basicConfig(level=logging.DEBUG if 'DEBUG' in os.environ else logging.INFO)
logger = logging.getLogger(__name__)


def usage(progname):
    print(f'usage: {progname} <abif file> [tag instance]')
    sys.exit(1)


def data_type_name(data_type):
    try:
        return ABIFDataType(data_type).name
    except ValueError:
        return str(data_type)


def dump_header(abif):
    hdr = abif.header
    print(f'''ABIF Header:
  Offset:                            {abif.header_offset}
  Version:                           {hdr.version.value}
  Directory entries:                 {hdr.directory.record_count.value}
  Directory size:                    {hdr.directory.byte_count.value} (bytes)
  Directory offset:                  0x{hdr.directory.raw_value.value:08x}''')


def dump_directory(abif):
    print(f'''Directory ({len(abif)} records with data):
  [Nr] Tag   Inst  Type         Count      Bytes  Value''')
    for idx, record in enumerate(abif):
        print(f'''  [{idx: >3d}] {record.tag.value.decode("latin1"):<5} {record.instance.value:>4d}  {data_type_name(record.data_type.value):<10} {record.record_count.value:>7d} {record.byte_count.value:>10d}  0x{record.raw_value.value:08x}''')


if __name__ == '__main__':
    if len(sys.argv) not in (2, 4):
        usage(sys.argv[0])

    path = Path(sys.argv[1])
    data = path.read_bytes()

    try:
        abif = parse(data, compliant=Compliant.MAGIC)
    except (MagicException, UnpackException) as e:
        logger.error(f'\'{path}\' is not a valid ABIF file ({e.__class__.__name__} at \'{e}\')')
        sys.exit(1)

    dump_header(abif)
    dump_directory(abif)

    cmbf = find_cmbf(data)
    if cmbf != -1:
        print(f'CMBF structure at offset 0x{cmbf:x}')

    if len(sys.argv) == 4:
        tag = sys.argv[2]
        try:
            instance = int(sys.argv[3])
        except ValueError:
            logger.error(f'\'{sys.argv[3]}\' is not an instance number')
            sys.exit(1)

        try:
            value = abif.get_data(tag, instance)
        except UnpackException as e:
            logger.error(f'record {tag}{instance} can\'t be decoded ({e.__class__.__name__})')
            sys.exit(1)

        print(f'{tag}{instance}: {value!r}')
    elif abif.find('PBAS', 1) is not None:
        print(f'Sequence: {abif.get_sequence_bases(1)}')
