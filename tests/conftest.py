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

import pytest

from mkbootimg import bootimg
from tests.constants import (
    blob, tmp_name, KERNEL_SIZE, RAMDISK_SIZE, SECOND_SIZE, DT_SIZE,
    SIGNATURE_SIZE)


@pytest.fixture
def payloads():
    """A full payload set whose sizes are not page multiples"""
    return bootimg.Payloads(kernel=blob(KERNEL_SIZE, 1),
                            ramdisk=blob(RAMDISK_SIZE, 2),
                            second=blob(SECOND_SIZE, 3),
                            dt=blob(DT_SIZE, 4),
                            signature=blob(SIGNATURE_SIZE, 5))


@pytest.fixture
def payload_files(tmp_path, payloads):
    """Write the payload set to files and return their paths by role"""
    paths = {}
    for role, data in payloads._asdict().items():
        path = tmp_name(tmp_path, role, ".img")
        path.write_bytes(data)
        paths[role] = str(path)
    return paths
