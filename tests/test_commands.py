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

from mkbootimg import mkbootimg_version
from mkbootimg.main import mkbootimg, create
from tests.constants import COMMANDS

CREATE_OPTIONS = [
    "--kernel", "--ramdisk", "--second", "--cmdline", "--board", "--base",
    "--kernel_offset", "--ramdisk_offset", "--second_offset", "--tags_offset",
    "--unknown", "--pagesize", "--dt", "--id", "--signature", "--output",
]

runner = CliRunner()


def test_commands_listed():
    """Commands and aliases shown by the group are the known ones"""
    assert mkbootimg.list_commands(None) == sorted(COMMANDS)

    result = runner.invoke(mkbootimg, ["-h"])
    assert result.exit_code == 0
    for cmd in COMMANDS:
        assert cmd in result.output


def test_build_alias():
    assert mkbootimg.get_command(None, "build") is create
    assert mkbootimg.get_command(None, "create") is create
    assert mkbootimg.get_command(None, "mkbootimg") is None


def test_build_alias_help():
    result_alias = runner.invoke(mkbootimg, ["build", "-h"])
    assert result_alias.exit_code == 0
    assert "Usage: mkbootimg build [OPTIONS]" in result_alias.output

    result_create = runner.invoke(mkbootimg, ["create", "--help"])
    assert result_create.exit_code == 0
    assert "Usage: mkbootimg create [OPTIONS]" in result_create.output

    # Same options, only the invoked name differs
    assert result_alias.output.replace("build", "create") == \
        result_create.output


@pytest.mark.parametrize("option", CREATE_OPTIONS)
def test_create_options(option):
    result = runner.invoke(mkbootimg, ["create", "-h"])
    assert option in result.output


def test_version():
    result = runner.invoke(mkbootimg, ["version"])
    assert result.exit_code == 0
    assert result.output == mkbootimg_version + "\n"


def test_unknown():
    result = runner.invoke(mkbootimg, ["mkbootimg"])
    assert result.exit_code != 0
    assert "No such command" in result.output


@pytest.mark.parametrize("command", ("dumpinfo", "verify"))
def test_requires_imgfile(command):
    result = runner.invoke(mkbootimg, [command])
    assert result.exit_code == 2
    assert "IMGFILE" in result.output
