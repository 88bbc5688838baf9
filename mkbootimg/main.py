#! /usr/bin/env python3
#
# SPDX-License-Identifier: Apache-2.0
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

import sys

import click

from mkbootimg import bootimg, mkbootimg_version
from mkbootimg.dumpinfo import dump_imginfo
from mkbootimg.loader import load_payloads

MIN_PYTHON_VERSION = (3, 7)
if sys.version_info < MIN_PYTHON_VERSION:
    sys.exit("Python %s.%s or newer is required by mkbootimg."
             % MIN_PYTHON_VERSION)


class HexIntParamType(click.ParamType):
    name = 'address'

    def convert(self, value, param, ctx):
        if isinstance(value, int):
            return value
        try:
            return int(value, 16)
        except ValueError:
            self.fail('%s is not a valid hexadecimal value' % value,
                      param, ctx)


HEX_INT = HexIntParamType()


@click.option('-o', '--output', metavar='filename', required=True,
              help='Boot image to create')
@click.option('--signature', metavar='filename',
              help='Signature blob appended verbatim after the payloads '
                   '({} bytes)'.format(bootimg.SIGNATURE_SIZE))
@click.option('--id', 'emit_id', default=False, is_flag=True,
              help='Print the image id to stdout')
@click.option('--dt', metavar='filename', help='Device tree image')
@click.option('--pagesize', type=int, default=bootimg.DEFAULT_PAGE_SIZE,
              show_default=True,
              help='Page size, one of: {}'.format(
                  ', '.join(str(p) for p in bootimg.PAGE_SIZES)))
@click.option('--unknown', type=HEX_INT, default=bootimg.DEFAULT_UNKNOWN,
              help='Value of the unknown header field (hex)')
@click.option('--tags_offset', type=HEX_INT,
              default=bootimg.DEFAULT_TAGS_OFFSET,
              help='Tags offset from --base (hex)')
@click.option('--second_offset', type=HEX_INT,
              default=bootimg.DEFAULT_SECOND_OFFSET,
              help='Second stage offset from --base (hex)')
@click.option('--ramdisk_offset', type=HEX_INT,
              default=bootimg.DEFAULT_RAMDISK_OFFSET,
              help='Ramdisk offset from --base (hex)')
@click.option('--kernel_offset', type=HEX_INT,
              default=bootimg.DEFAULT_KERNEL_OFFSET,
              help='Kernel offset from --base (hex)')
@click.option('--base', type=HEX_INT, default=bootimg.DEFAULT_BASE,
              help='Base load address (hex)')
@click.option('--board', default='', metavar='boardname',
              help='Board name, at most {} bytes'.format(
                  bootimg.BOOT_NAME_SIZE - 1))
@click.option('--cmdline', default='', metavar='kernel-commandline',
              help='Kernel command line')
@click.option('--second', metavar='filename',
              help='Second stage bootloader image')
@click.option('--ramdisk', metavar='filename', help='Ramdisk image')
@click.option('--kernel', metavar='filename', required=True,
              help='Kernel image')
@click.command(help='''Create a boot image\n
               Payload files are parsed as Intel HEX if they have a .hex
               extension, otherwise binary format is used''')
def create(kernel, ramdisk, second, cmdline, board, base, kernel_offset,
           ramdisk_offset, second_offset, tags_offset, unknown, pagesize, dt,
           emit_id, signature, output):
    config = bootimg.BootConfig(page_size=pagesize, base=base,
                                kernel_offset=kernel_offset,
                                ramdisk_offset=ramdisk_offset,
                                second_offset=second_offset,
                                tags_offset=tags_offset, unknown=unknown,
                                board=board, cmdline=cmdline,
                                emit_id=emit_id)
    img = bootimg.BootImage(config)
    payloads = load_payloads(kernel, ramdisk=ramdisk, second=second, dt=dt,
                             signature=signature)
    img.create(payloads)
    img.save(output)


@click.argument('imgfile')
@click.command(help="Check that the id stored in a boot image matches its "
                    "payloads")
def verify(imgfile):
    ret, header = bootimg.BootImage.verify(imgfile)
    if ret == bootimg.VerifyResult.OK:
        print("Image was correctly validated")
        print("Image id: {}".format(bootimg.format_id(header.id)))
        return
    elif ret == bootimg.VerifyResult.INVALID_MAGIC:
        print("Invalid image magic; is this a boot image?")
    elif ret == bootimg.VerifyResult.INVALID_PAGE_SIZE:
        print("Unsupported page size: {}".format(header.page_size))
    elif ret == bootimg.VerifyResult.TRUNCATED:
        print("Image is truncated")
    elif ret == bootimg.VerifyResult.INVALID_ID:
        print("Image id does not match its payloads")
    else:
        print("Unknown return code: {}".format(ret))
    sys.exit(1)


@click.argument('imgfile')
@click.option('-o', '--outfile', metavar='filename', required=False,
              help='Save image information to outfile in YAML format')
@click.option('-s', '--silent', default=False, is_flag=True,
              help='Do not print image information to output')
@click.command(help='Print header and segment layout information '
                    'of a boot image')
def dumpinfo(imgfile, outfile, silent):
    dump_imginfo(imgfile, outfile, silent)
    if not silent:
        print("dumpinfo has run successfully")


class AliasesGroup(click.Group):

    _aliases = {
        "build": "create",
    }

    def list_commands(self, ctx):
        cmds = [k for k in self.commands]
        aliases = [k for k in self._aliases]
        return sorted(cmds + aliases)

    def get_command(self, ctx, cmd_name):
        rv = click.Group.get_command(self, ctx, cmd_name)
        if rv is not None:
            return rv
        if cmd_name in self._aliases:
            return click.Group.get_command(self, ctx, self._aliases[cmd_name])
        return None


@click.command(help='Print mkbootimg version information')
def version():
    print(mkbootimg_version)


@click.command(cls=AliasesGroup,
               context_settings=dict(help_option_names=['-h', '--help']))
def mkbootimg():
    pass


mkbootimg.add_command(create)
mkbootimg.add_command(verify)
mkbootimg.add_command(version)
mkbootimg.add_command(dumpinfo)


if __name__ == '__main__':
    mkbootimg()
