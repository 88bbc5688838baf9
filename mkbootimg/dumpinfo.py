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
Parse and print header and segment layout information of a boot image.
"""
import os.path

import click
import yaml

from mkbootimg import bootimg

_LINE_LENGTH = 60
SEGMENT_TITLES = {
    'kernel': "Kernel",
    'ramdisk': "Ramdisk",
    'second': "Second stage",
    'dt': "Device tree",
}


def print_in_frame(header_text, content):
    sepc = " "
    header = "#### " + header_text + sepc
    post_header = "#" * (_LINE_LENGTH - len(header))
    print(header + post_header)

    print("|", sepc * (_LINE_LENGTH - 2), "|", sep="")
    offset = (_LINE_LENGTH - len(content)) // 2
    pre = "|" + (sepc * (offset - 1))
    post = sepc * (_LINE_LENGTH - len(pre) - len(content) - 1) + "|"
    print(pre, content, post, sep="")
    print("|", sepc * (_LINE_LENGTH - 2), "|", sep="")
    print("#" * _LINE_LENGTH)


def print_in_row(row_text):
    row_text = "#### " + row_text + " "
    fill = "#" * (_LINE_LENGTH - len(row_text))
    print(row_text + fill)


def parse_image(b):
    """Split a boot image into its header, segments and signature."""
    if not b.startswith(bootimg.BOOT_MAGIC):
        raise click.UsageError("Invalid image: magic mismatch")
    _header = bootimg.BootImgHeader.unpack(b)
    if _header.page_size not in bootimg.PAGE_SIZES:
        raise click.UsageError(
            "Invalid image: unsupported page size {}".format(
                _header.page_size))

    header = {}
    for key, value in _header._asdict().items():
        if key == "magic":
            value = value.decode('ascii', 'replace')
        elif key == "name":
            value = _header.board
        elif key in ("cmdline", "extra_cmdline"):
            value = value.rstrip(b'\0').decode('utf-8', 'replace')
        elif key == "id":
            value = bootimg.format_id(value)
        header[key] = value

    segments = []
    end = bootimg.align_up(bootimg.BOOT_IMG_HEADER_SIZE, _header.page_size)
    for seg in bootimg.segment_layout(_header):
        segments.append({"name": seg.name, "offset": seg.offset,
                         "size": seg.size})
        end = seg.offset + bootimg.align_up(seg.size, _header.page_size)
    if end > len(b):
        raise click.UsageError("Invalid image: segments exceed file size")

    trailer = {"offset": end, "size": len(b) - end,
               "signature": len(b) - end == bootimg.SIGNATURE_SIZE}
    return {"header": header, "segments": segments, "trailer": trailer}


def dump_imginfo(imgfile, outfile=None, silent=False):
    """Parse a boot image and print/save the available information."""
    try:
        with open(imgfile, "rb") as f:
            b = f.read()
    except FileNotFoundError:
        raise click.UsageError("Image file not found ({})".format(imgfile))

    imgdata = parse_image(b)

    # Generating output yaml file
    if outfile is not None:
        with open(outfile, "w") as outf:
            yaml.dump(imgdata, outf, sort_keys=False)

    if silent:
        return imgdata

    print("Printing content of boot image:", os.path.basename(imgfile), "\n")

    section_name = "Image header (offset: 0x0)"
    print_in_row(section_name)
    for key, value in imgdata["header"].items():
        if not isinstance(value, str):
            value = hex(value)
        print(key, ":", " " * (19 - len(key)), value, sep="")
    print("#" * _LINE_LENGTH)

    for seg in imgdata["segments"]:
        frame_header_text = "{} (offset: {})".format(
            SEGMENT_TITLES[seg["name"]], hex(seg["offset"]))
        frame_content = "{} (size: {} Bytes)".format(
            seg["name"], hex(seg["size"]))
        print_in_frame(frame_header_text, frame_content)

    trailer = imgdata["trailer"]
    if trailer["signature"]:
        frame_header_text = "Signature (offset: {})".format(
            hex(trailer["offset"]))
        frame_content = "signature (size: {} Bytes)".format(
            hex(trailer["size"]))
        print_in_frame(frame_header_text, frame_content)
    elif trailer["size"]:
        print("Warning: {} unexpected bytes after the last segment".format(
            hex(trailer["size"])))

    footer = "End of Image "
    print_in_row(footer)
    return imgdata
