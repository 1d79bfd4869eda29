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

"""
Module that handles output (log messages and progress bars).

Messages are prefixed with the seconds passed since the last `log_timestamp_reset`. They go to
stdout if enabled and/or to a log file that is written by a separate process.
"""
from time import time
from progress.bar import Bar
from multiprocessing import Queue, Process
import os
from pathlib import Path


_log_enabled = False
_log_file = False
_progress_enabled = False
_start_time = time()
# queue used to forward log entries to the file-writer
_log_queue = None
# the process that is doing the writing
_log_file_process = None


def log_timestamp_reset():
    """Reset the log time to the current time."""
    global _start_time
    _start_time = time()


def log_enable(setting):
    """Enable or disable logging to stdout."""
    global _log_enabled
    _log_enabled = bool(setting)


def _log_queue_writer(file, queue):
    """Append every entry of the queue to the file until a False entry arrives."""
    parent_folder = os.path.dirname(file)
    if parent_folder:
        Path(parent_folder).mkdir(parents=True, exist_ok=True)
    with open(file, "a") as log_out:
        while True:
            entry = queue.get()
            if not entry:
                break
            log_out.write(entry)
            log_out.write("\n")
            log_out.flush()


def _stop_log_writer():
    """Send the stop signal to the current log writer and wait for it."""
    global _log_queue
    global _log_file_process
    if _log_queue is not None:
        _log_queue.put(False)
    if _log_file_process is not None:
        _log_file_process.join()
    _log_queue = None
    _log_file_process = None


def log_file(file):
    """
    Define that the log should be written out to a file.

    :param file - (str,False) if a string then it defines the output path; if False disables writing
    """
    global _log_file
    global _log_queue
    global _log_file_process

    if isinstance(file, str):
        _stop_log_writer()
        _log_file = True
        _log_queue = Queue()
        _log_file_process = Process(target=_log_queue_writer, args=(file, _log_queue),
                                    daemon=True)
        _log_file_process.start()
    elif isinstance(file, bool) and not file:
        _log_file = False
        _stop_log_writer()
    else:
        raise ValueError("log_file only accepts a file path or False as parameter")


def progress_enable(setting):
    """Enable or disable displaying progress bars."""
    global _progress_enabled
    _progress_enabled = bool(setting)


def log(message):
    """Log a message."""
    if not (_log_enabled or _log_file):
        return
    timedmessage = "%.3f: %s" % (time() - _start_time, message)
    if _log_enabled:
        print(timedmessage, flush=True)
    if _log_file:
        _log_queue.put(timedmessage)


class ProgressBar(object):
    """Bar to visualize the progression of a process."""

    class EtaBar(Bar):
        suffix = '%(index)d/%(max)d ~%(eta)ds remaining'

    def __init__(self, message, total):
        """Initialise the ProgressBar with a message and a total number."""
        self.message = message
        self.total = total
        self.count = 0
        self.bar = None
        if _progress_enabled and total > 1:
            self.bar = self.EtaBar("%.3f: %s" % (time() - _start_time, message), max=total)
            if _log_file:
                _log_queue.put("%.3f: %s" % (time() - _start_time, message))
        else:
            log(message)

    def next(self, add_to_count=1):
        """Progress the bar."""
        self.count += add_to_count
        if self.bar is not None:
            self.bar.next(add_to_count)

    def finish(self):
        """Finish the ProgressBar."""
        if self.bar is not None:
            self.bar.finish()
        log("%s finished (%i/%i)" % (self.message, self.count, self.total))
