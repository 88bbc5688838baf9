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
from click.testing import CliRunner

from mkbootimg import bootimg
from mkbootimg.bootimg import BootConfig, BootImage, VerifyResult
from mkbootimg.main import mkbootimg
from tests.constants import tmp_name


class TestVerify:
    runner = CliRunner()

    @pytest.fixture(autouse=True)
    def setup(self, tmp_path):
        self.image = tmp_name(tmp_path, "boot", ".img")

    def save(self, payloads, config=None):
        img = BootImage(config)
        img.create(payloads)
        img.save(str(self.image))
        return img.header

    def test_verify_ok(self, payloads):
        header = self.save(payloads)
        ret, parsed = BootImage.verify(str(self.image))
        assert ret == VerifyResult.OK
        assert parsed == header

    @pytest.mark.parametrize("dt", (None, b""))
    def test_verify_without_dt(self, payloads, dt):
        self.save(payloads._replace(dt=dt, signature=None))
        ret, _ = BootImage.verify(str(self.image))
        assert ret == VerifyResult.OK

    @pytest.mark.parametrize("page_size", (2048, 16384))
    def test_verify_page_sizes(self, payloads, page_size):
        self.save(payloads, BootConfig(page_size=page_size))
        ret, _ = BootImage.verify(str(self.image))
        assert ret == VerifyResult.OK

    def test_verify_corrupted(self, payloads):
        self.save(payloads)
        b = bytearray(self.image.read_bytes())
        b[2048 + 10] ^= 0xff
        self.image.write_bytes(bytes(b))
        ret, _ = BootImage.verify(str(self.image))
        assert ret == VerifyResult.INVALID_ID

    def test_verify_bad_magic(self, payloads):
        self.save(payloads)
        b = self.image.read_bytes()
        self.image.write_bytes(b"BOOTIMG!" + b[8:])
        ret, header = BootImage.verify(str(self.image))
        assert ret == VerifyResult.INVALID_MAGIC
        assert header is None

    def test_verify_bad_page_size(self, payloads):
        self.save(payloads)
        b = bytearray(self.image.read_bytes())
        b[36:40] = (1000).to_bytes(4, "little")
        self.image.write_bytes(bytes(b))
        ret, _ = BootImage.verify(str(self.image))
        assert ret == VerifyResult.INVALID_PAGE_SIZE

    def test_verify_truncated(self, payloads):
        self.save(payloads._replace(signature=None))
        b = self.image.read_bytes()
        self.image.write_bytes(b[:-2048])
        ret, _ = BootImage.verify(str(self.image))
        assert ret == VerifyResult.TRUNCATED

    def test_verify_cmd(self, payloads):
        header = self.save(payloads)
        result = self.runner.invoke(mkbootimg, ["verify", str(self.image)])
        assert result.exit_code == 0
        assert "Image was correctly validated" in result.output
        assert "Image id: {}".format(bootimg.format_id(header.id)) \
            in result.output

    def test_verify_cmd_invalid(self, payloads):
        self.save(payloads)
        b = bytearray(self.image.read_bytes())
        b[-1] ^= 0xff
        b[2048] ^= 0xff
        self.image.write_bytes(bytes(b))
        result = self.runner.invoke(mkbootimg, ["verify", str(self.image)])
        assert result.exit_code == 1
        assert "Image id does not match its payloads" in result.output

    def test_verify_cmd_missing(self, tmp_path):
        missing = str(tmp_name(tmp_path, "missing", ".img"))
        result = self.runner.invoke(mkbootimg, ["verify", missing])
        assert result.exit_code == 2
        assert "not found" in result.output
