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

"""
Boot image creation and management.
"""

import hashlib
import io
import os
import struct
from collections import namedtuple
from enum import Enum

import click

BOOT_MAGIC = b'ANDROID!'
BOOT_MAGIC_SIZE = 8
BOOT_NAME_SIZE = 16
BOOT_ARGS_SIZE = 512
BOOT_EXTRA_ARGS_SIZE = 1024
BOOT_ID_SIZE = 32
SIGNATURE_SIZE = 272

PAGE_SIZES = (2048, 4096, 8192, 16384, 32768, 65536, 131072)
UINT32_MAX = 0xffffffff
# Output name used in errors for images built in memory.
MEMORY_PATH = "<memory>"

DEFAULT_PAGE_SIZE = 2048
DEFAULT_BASE = 0x10000000
DEFAULT_KERNEL_OFFSET = 0x00008000
DEFAULT_RAMDISK_OFFSET = 0x01000000
DEFAULT_SECOND_OFFSET = 0x00f00000
DEFAULT_TAGS_OFFSET = 0x00000100
DEFAULT_UNKNOWN = 0x03000000

HEADER_FMT = ('<' +
              # struct boot_img_hdr {
              '8s' +    # magic          uint8_t[BOOT_MAGIC_SIZE]
              'I' +     # kernel_size    uint32_t
              'I' +     # kernel_addr    uint32_t
              'I' +     # ramdisk_size   uint32_t
              'I' +     # ramdisk_addr   uint32_t
              'I' +     # second_size    uint32_t
              'I' +     # second_addr    uint32_t
              'I' +     # tags_addr      uint32_t
              'I' +     # page_size      uint32_t
              'I' +     # dt_size        uint32_t
              'I' +     # unknown        uint32_t
              '16s' +   # name           uint8_t[BOOT_NAME_SIZE]
              '512s' +  # cmdline        uint8_t[BOOT_ARGS_SIZE]
              '32s' +   # id             uint32_t[8]
              '1024s'   # extra_cmdline  uint8_t[BOOT_EXTRA_ARGS_SIZE]
              )  # }
BOOT_IMG_HEADER_SIZE = struct.calcsize(HEADER_FMT)

HEADER_ITEMS = ("magic", "kernel_size", "kernel_addr", "ramdisk_size",
                "ramdisk_addr", "second_size", "second_addr", "tags_addr",
                "page_size", "dt_size", "unknown", "name", "cmdline", "id",
                "extra_cmdline")

# Payload roles as they are named in diagnostics.
PAYLOAD_NAMES = {
    'kernel':    'kernel',
    'ramdisk':   'ramdisk',
    'second':    'secondstage',
    'dt':        'device tree image',
    'signature': 'signature',
}

VerifyResult = Enum('VerifyResult',
                    ['OK', 'INVALID_MAGIC', 'INVALID_PAGE_SIZE', 'TRUNCATED',
                     'INVALID_ID'])

BootConfig = namedtuple('BootConfig',
                        ['page_size', 'base', 'kernel_offset',
                         'ramdisk_offset', 'second_offset', 'tags_offset',
                         'unknown', 'board', 'cmdline', 'emit_id'],
                        defaults=(DEFAULT_PAGE_SIZE, DEFAULT_BASE,
                                  DEFAULT_KERNEL_OFFSET,
                                  DEFAULT_RAMDISK_OFFSET,
                                  DEFAULT_SECOND_OFFSET, DEFAULT_TAGS_OFFSET,
                                  DEFAULT_UNKNOWN, '', '', False))

Payloads = namedtuple('Payloads',
                      ['kernel', 'ramdisk', 'second', 'dt', 'signature'],
                      defaults=(None, None, None, None, None))

Segment = namedtuple('Segment', ['name', 'offset', 'size'])


class ConfigurationError(click.UsageError):
    """The requested image layout can not be represented in the header."""


class InputError(click.ClickException):
    def __init__(self, path, role, cause=None):
        self.path = path
        self.role = role
        self.cause = cause
        super().__init__("could not load {} '{}'".format(
            PAYLOAD_NAMES.get(role, role), path))


class EmissionError(click.ClickException):
    def __init__(self, path, cause):
        self.path = path
        self.cause = cause
        super().__init__("failed writing '{}': {}".format(path, cause))


def align_up(num, align):
    assert (align & (align - 1) == 0) and align != 0
    return (num + (align - 1)) & ~(align - 1)


def padding_size(page_size, itemsize):
    """Number of zero bytes needed to bring itemsize to a page boundary."""
    pagemask = page_size - 1
    if (itemsize & pagemask) == 0:
        return 0
    return page_size - (itemsize & pagemask)


def _encode(text):
    if isinstance(text, bytes):
        return text
    return text.encode('utf-8')


def split_cmdline(cmdline):
    """Split the kernel command line into the primary and extra fields.

    The primary field keeps its last byte as the terminating NUL, so it
    holds at most BOOT_ARGS_SIZE - 1 bytes of the command line and the
    rest spills into the extra field.
    """
    cmdline = _encode(cmdline)
    if len(cmdline) > BOOT_ARGS_SIZE + BOOT_EXTRA_ARGS_SIZE - 2:
        raise ConfigurationError("kernel commandline too large")
    primary = cmdline[:BOOT_ARGS_SIZE - 1]
    extra = cmdline[BOOT_ARGS_SIZE - 1:]
    return primary, extra


def check_config(config):
    if config.page_size not in PAGE_SIZES:
        raise ConfigurationError(
            "unsupported page size {}".format(config.page_size))
    for field in ('base', 'kernel_offset', 'ramdisk_offset', 'second_offset',
                  'tags_offset', 'unknown'):
        value = getattr(config, field)
        if not 0 <= value <= UINT32_MAX:
            raise ConfigurationError(
                "{} 0x{:x} does not fit in 32 bits".format(field, value))
    if len(_encode(config.board)) >= BOOT_NAME_SIZE:
        raise ConfigurationError("board name too large")
    split_cmdline(config.cmdline)


def compute_id(kernel, ramdisk=None, second=None, dt=None):
    """Fingerprint the payloads so images differ within their first page.

    The device tree is only hashed when present: an absent device tree
    must keep the id of images built before device trees were supported,
    so it is not the same as an empty one.
    """
    sha = hashlib.sha1()
    for data in (kernel, ramdisk, second):
        data = data or b''
        sha.update(data)
        sha.update(struct.pack('<I', len(data)))
    if dt is not None:
        sha.update(dt)
        sha.update(struct.pack('<I', len(dt)))
    digest = sha.digest()[:BOOT_ID_SIZE]
    return digest + bytes(BOOT_ID_SIZE - len(digest))


def format_id(image_id):
    return "0x" + image_id.hex()


class BootImgHeader(namedtuple('BootImgHeader', HEADER_ITEMS)):

    def pack(self):
        return struct.pack(HEADER_FMT, *self)

    @classmethod
    def unpack(cls, data):
        if len(data) < BOOT_IMG_HEADER_SIZE:
            raise click.UsageError("Invalid image: header truncated")
        return cls._make(struct.unpack_from(HEADER_FMT, data))

    @property
    def board(self):
        return self.name.rstrip(b'\0').decode('utf-8', 'replace')

    @property
    def full_cmdline(self):
        cmdline = self.cmdline.rstrip(b'\0') + self.extra_cmdline.rstrip(b'\0')
        return cmdline.decode('utf-8', 'replace')


def segment_layout(header):
    """List the payload segments an image with this header contains."""
    segments = []
    offset = align_up(BOOT_IMG_HEADER_SIZE, header.page_size)
    sizes = [('kernel', header.kernel_size),
             ('ramdisk', header.ramdisk_size),
             ('second', header.second_size)]
    # A zero dt_size means either no device tree or an empty one, neither
    # of which occupies any space.
    if header.dt_size:
        sizes.append(('dt', header.dt_size))
    for name, size in sizes:
        segments.append(Segment(name, offset, size))
        offset += align_up(size, header.page_size)
    return segments


class BootImage:

    def __init__(self, config=None):
        self.config = config or BootConfig()
        check_config(self.config)
        self.payloads = None
        self.header = None

    def __repr__(self):
        return "<BootImage page_size={}, base=0x{:x}, board={!r}, " \
               "kernel_size={}>".format(
                   self.config.page_size,
                   self.config.base,
                   self.config.board,
                   self.header.kernel_size if self.header else "N/A")

    def create(self, payloads):
        """Install the header for the given payloads."""
        if payloads.kernel is None:
            raise ConfigurationError("no kernel image specified")
        for role in ('kernel', 'ramdisk', 'second', 'dt'):
            data = getattr(payloads, role)
            if data is not None and len(data) > UINT32_MAX:
                raise ConfigurationError(
                    "{} too large".format(PAYLOAD_NAMES[role]))

        c = self.config
        cmdline, extra_cmdline = split_cmdline(c.cmdline)
        self.payloads = payloads
        self.header = BootImgHeader(
            magic=BOOT_MAGIC,
            kernel_size=len(payloads.kernel),
            kernel_addr=(c.base + c.kernel_offset) & UINT32_MAX,
            ramdisk_size=len(payloads.ramdisk or b''),
            ramdisk_addr=(c.base + c.ramdisk_offset) & UINT32_MAX,
            second_size=len(payloads.second or b''),
            second_addr=(c.base + c.second_offset) & UINT32_MAX,
            tags_addr=(c.base + c.tags_offset) & UINT32_MAX,
            page_size=c.page_size,
            dt_size=len(payloads.dt or b''),
            unknown=c.unknown,
            name=_encode(c.board).ljust(BOOT_NAME_SIZE, b'\0'),
            cmdline=cmdline.ljust(BOOT_ARGS_SIZE, b'\0'),
            id=compute_id(payloads.kernel, payloads.ramdisk,
                          payloads.second, payloads.dt),
            extra_cmdline=extra_cmdline.ljust(BOOT_EXTRA_ARGS_SIZE, b'\0'))
        return self.header

    def _write(self, f, data, size=None):
        if size is None:
            size = len(data)
        count = f.write(data[:size])
        if count != size:
            raise OSError("short write ({} of {} bytes)".format(count, size))

    def _write_padding(self, f, itemsize):
        count = padding_size(self.config.page_size, itemsize)
        if count:
            self._write(f, bytes(count))

    def _write_item(self, f, data):
        self._write(f, data)
        self._write_padding(f, len(data))

    def check_created(self):
        if self.header is None:
            raise click.UsageError("No payloads were added to the image")

    def emit(self, f):
        """Write the whole image to the binary file object f."""
        self.check_created()
        p = self.payloads
        self._write_item(f, self.header.pack())
        self._write_item(f, p.kernel)
        self._write_item(f, p.ramdisk or b'')
        self._write_item(f, p.second or b'')

        if self.config.emit_id:
            print(format_id(self.header.id))

        if p.dt is not None:
            self._write_item(f, p.dt)
        if p.signature is not None:
            self._write(f, p.signature, SIGNATURE_SIZE)

    def get_bytes(self):
        buf = io.BytesIO()
        try:
            self.emit(buf)
        except OSError as e:
            raise EmissionError(MEMORY_PATH, e) from e
        return buf.getvalue()

    def save(self, path):
        """Write the image to path, removing it again if any write fails."""
        self.check_created()
        try:
            f = open(path, 'wb')
        except OSError as e:
            raise EmissionError(path, e) from e
        try:
            with f:
                self.emit(f)
        except BaseException as e:
            try:
                os.remove(path)
            except FileNotFoundError:
                pass
            if isinstance(e, OSError):
                raise EmissionError(path, e) from e
            raise

    @staticmethod
    def verify(imgfile):
        try:
            with open(imgfile, 'rb') as f:
                b = f.read()
        except FileNotFoundError:
            raise click.UsageError(f"Image file {imgfile} not found")

        if len(b) < BOOT_IMG_HEADER_SIZE or not b.startswith(BOOT_MAGIC):
            return VerifyResult.INVALID_MAGIC, None
        header = BootImgHeader.unpack(b)
        if header.page_size not in PAGE_SIZES:
            return VerifyResult.INVALID_PAGE_SIZE, header

        segments = segment_layout(header)
        last = segments[-1]
        if last.offset + last.size > len(b):
            return VerifyResult.TRUNCATED, header

        data = {s.name: b[s.offset:s.offset + s.size] for s in segments}
        if 'dt' in data:
            candidates = [data['dt']]
        else:
            candidates = [None, b'']
        for dt in candidates:
            image_id = compute_id(data['kernel'], data['ramdisk'],
                                  data['second'], dt)
            if image_id == header.id:
                return VerifyResult.OK, header
        return VerifyResult.INVALID_ID, header


def build(config, payloads):
    """Return the bytes of the boot image for config and payloads."""
    img = BootImage(config)
    img.create(payloads)
    return img.get_bytes()
