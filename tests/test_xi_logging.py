# Copyright (C) 2025  Technische Universitaet Berlin
#
# This library is free software; you can redistribute it and/or
# modify it under the terms of the GNU Lesser General Public
# License as published by the Free Software Foundation; either
# version 3 of the License, or (at your option) any later version.
#
# This library is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the GNU
# Lesser General Public License for more details.
#
# You should have received a copy of the GNU Lesser General Public
# License along with this library; if not, write to the Free Software
# Foundation, Inc., 51 Franklin Street, Fifth Floor, Boston, MA  02110-1301
# USA

from xideisotope.xi_logging import log_enable, log, log_file, log_timestamp_reset, \
    progress_enable, ProgressBar
import os
import re
import time
import pytest


@pytest.fixture(autouse=True)
def reset_logging():
    yield
    log_enable(False)
    log_file(False)
    progress_enable(False)


def test_log_to_stdout(capsys):
    log("silent")
    assert capsys.readouterr().out == ""

    log_enable(True)
    log("deisotoping")
    assert re.match(r"[0-9]+\.[0-9]{3}: deisotoping\n", capsys.readouterr().out)

    log_enable(False)
    log("silent again")
    assert capsys.readouterr().out == ""


def test_log_timestamp(capsys):
    log_enable(True)
    log_timestamp_reset()
    time.sleep(1.1)
    log("after a second")
    assert re.match(r"1\.[0-9]{3}: after a second\n", capsys.readouterr().out)

    log_timestamp_reset()
    log("after reset")
    assert re.match(r"0\.[0-9]{3}: after reset\n", capsys.readouterr().out)


def test_log_file_argument():
    with pytest.raises(ValueError):
        log_file(123)
    with pytest.raises(ValueError):
        log_file(True)


def test_log_to_file(tmpdir, capsys):
    out_file = os.path.join(tmpdir, 'logs', 'deisotope.log')
    out_file2 = os.path.join(tmpdir, 'deisotope2.log')

    log_file(out_file)
    log("file only")
    assert capsys.readouterr().out == ""
    log_enable(True)
    log("file and stdout")
    assert "file and stdout" in capsys.readouterr().out

    # switching the file stops the writer of the first one
    log_file(out_file2)
    log("second file")
    log_file(False)
    log("stdout only")

    with open(out_file) as f:
        lines = f.read().splitlines()
    assert len(lines) == 2
    assert lines[0].endswith(": file only")
    assert lines[1].endswith(": file and stdout")

    with open(out_file2) as f:
        read_data = f.read()
    assert "second file" in read_data
    assert "stdout only" not in read_data


def test_progress_bar(capsys):
    log_enable(True)
    bar = ProgressBar("counting", 3)
    for _ in range(3):
        bar.next()
    bar.finish()
    captured = capsys.readouterr()
    assert re.search(r"[0-9.]+: counting\n", captured.out)
    assert re.search(r"[0-9.]+: counting finished \(3/3\)\n", captured.out)
    assert bar.count == 3
    assert bar.bar is None


def test_progress_bar_enabled():
    progress_enable(True)
    bar = ProgressBar("counting", 3)
    assert bar.bar is not None
    bar.next(2)
    assert bar.count == 2
    bar.finish()
