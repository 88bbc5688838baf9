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
Load the payload files that make up a boot image.
"""

import os.path

from intelhex import IntelHex, IntelHexError

from .bootimg import ConfigurationError, InputError, Payloads

INTEL_HEX_EXT = "hex"


def load_file(path, role):
    """Read one payload file, flattening Intel HEX input to binary"""
    ext = os.path.splitext(path)[1][1:].lower()
    try:
        if ext == INTEL_HEX_EXT:
            ih = IntelHex(path)
            if len(ih) == 0:
                return b''
            return bytes(ih.tobinarray())
        with open(path, 'rb') as f:
            return f.read()
    except (OSError, IntelHexError) as e:
        raise InputError(path, role, e) from e


def load_payloads(kernel, ramdisk=None, second=None, dt=None,
                  signature=None):
    if kernel is None:
        raise ConfigurationError("no kernel image specified")
    paths = {
        'kernel': kernel,
        'ramdisk': ramdisk,
        'second': second,
        'dt': dt,
        'signature': signature,
    }
    return Payloads(**{role: load_file(path, role) if path is not None
                       else None
                       for role, path in paths.items()})
