"""
Tests for console output: where warnings and per-subdirectory outcomes go
"""
import io
import unittest
from contextlib import redirect_stderr, redirect_stdout

from disksync.utils import logging as out


class TestConsoleOutput(unittest.TestCase):

    def setUp(self):
        self.stdout = io.StringIO()
        self.stderr = io.StringIO()
        self.addCleanup(out.set_verbose, False)

    def _capture(self, fn, *args):
        with redirect_stdout(self.stdout), redirect_stderr(self.stderr):
            fn(*args)

    def test_log_goes_to_stdout_with_timestamp(self):
        self._capture(out.log, "Calling rsync")
        self.assertRegex(self.stdout.getvalue(), r"^\[\d\d:\d\d:\d\d\] Calling rsync\n$")
        self.assertEqual(self.stderr.getvalue(), "")

    def test_warn_goes_to_stderr(self):
        self._capture(out.warn, "could not start rsync")
        self.assertEqual(self.stdout.getvalue(), "")
        self.assertIn("could not start rsync", self.stderr.getvalue())

    def test_vlog_only_when_verbose(self):
        self._capture(out.vlog, "hidden")
        out.set_verbose(True)
        self._capture(out.vlog, "shown")
        self.assertNotIn("hidden", self.stdout.getvalue())
        self.assertIn("shown", self.stdout.getvalue())

    def test_outcome_tags(self):
        self._capture(out.outcome, out.OK, "Music")
        self._capture(out.outcome, out.SKIP, "Photos", "/home/u/Photos not on local disk")
        self._capture(out.outcome, out.FAIL, "Videos", "rsync exited 23")
        self.assertIn("[ OK ] Music\n", self.stdout.getvalue())
        errors = self.stderr.getvalue().splitlines()
        self.assertEqual(len(errors), 2)
        self.assertTrue(errors[0].endswith("[SKIP] Photos: /home/u/Photos not on local disk"))
        self.assertTrue(errors[1].endswith("[FAIL] Videos: rsync exited 23"))


if __name__ == "__main__":
    unittest.main()
