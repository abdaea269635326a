"""
Tests for host detection and the per-OS tables
"""
import unittest
from pathlib import Path
from unittest import mock

from disksync.core import host_probe
from disksync.core.host_probe import OsFamily, detect, os_family


def fake_which(name):
    return f"/usr/bin/{name}"


class TestOsFamily(unittest.TestCase):

    def test_platform_strings(self):
        self.assertIs(os_family("darwin"), OsFamily.MAC)
        self.assertIs(os_family("linux"), OsFamily.LINUX)
        self.assertIs(os_family("cygwin"), OsFamily.CYGWIN)
        self.assertIs(os_family("win32"), OsFamily.WINDOWS)
        self.assertIs(os_family("sunos5"), OsFamily.UNKNOWN)


class TestDetect(unittest.TestCase):

    def test_posix_user_home_and_tools(self):
        host = detect(platform="linux", environ={"USER": "u", "HOME": "/home/u"}, which=fake_which)
        self.assertIs(host.os, OsFamily.LINUX)
        self.assertEqual(host.user_id, "u")
        self.assertEqual(host.home, Path("/home/u"))
        self.assertEqual(host.rsync_path, "/usr/bin/rsync")
        self.assertEqual(host.ssh_path, "/usr/bin/ssh")
        self.assertEqual(host.default_private_key_path, Path("/home/u/.ssh/id_rsa"))

    def test_windows_environment_variables(self):
        env = {"USERNAME": "bob", "USERPROFILE": "C:\\Users\\bob", "USER": "ignored"}
        host = detect(platform="win32", environ=env, which=fake_which)
        self.assertIs(host.os, OsFamily.WINDOWS)
        self.assertEqual(host.user_id, "bob")
        self.assertEqual(host.home, Path("C:\\Users\\bob"))
        self.assertIsNone(host.volumes_dir)

    def test_missing_tools_give_empty_paths(self):
        host = detect(platform="linux", environ={"USER": "u", "HOME": "/home/u"},
                      which=lambda name: None)
        self.assertEqual(host.rsync_path, "")
        self.assertEqual(host.ssh_path, "")

    def test_unknown_os_has_no_volume_root(self):
        host = detect(platform="sunos5", environ={"USER": "u", "HOME": "/home/u"}, which=fake_which)
        self.assertIs(host.os, OsFamily.UNKNOWN)
        self.assertIsNone(host.volumes_dir)

    def test_mac_volume_root(self):
        with mock.patch.object(Path, "is_dir", autospec=True,
                               side_effect=lambda p: str(p) == "/Volumes"):
            host = detect(platform="darwin", environ={"USER": "u", "HOME": "/Users/u"},
                          which=fake_which)
        self.assertEqual(host.volumes_dir, Path("/Volumes"))

    def test_linux_prefers_per_user_media_dir(self):
        existing = {"/media/u", "/media", "/mnt"}
        with mock.patch.object(Path, "is_dir", autospec=True,
                               side_effect=lambda p: str(p) in existing):
            host = detect(platform="linux", environ={"USER": "u", "HOME": "/home/u"},
                          which=fake_which)
        self.assertEqual(host.volumes_dir, Path("/media/u"))

    def test_linux_without_mount_dirs(self):
        with mock.patch.object(Path, "is_dir", autospec=True, return_value=False):
            host = detect(platform="linux", environ={"USER": "u", "HOME": "/home/u"},
                          which=fake_which)
        self.assertIsNone(host.volumes_dir)


class TestEscapePath(unittest.TestCase):

    def _host(self, platform):
        return detect(platform=platform, environ={"USER": "u", "USERNAME": "u", "HOME": "/h",
                                                  "USERPROFILE": "/h"}, which=fake_which)

    def test_posix_quotes_spaces(self):
        host = self._host("linux")
        self.assertEqual(host.escape_path("/home/u/My Music/"), "'/home/u/My Music/'")
        self.assertEqual(host.escape_path("/home/u/Docs/"), "/home/u/Docs/")
        self.assertEqual(host.escape_path("nas.home.test:Music"), "nas.home.test:Music")

    def test_windows_double_quotes(self):
        host = self._host("win32")
        self.assertEqual(host.escape_path("C:/My Music"), '"C:/My Music"')

    def test_every_os_has_an_escape_rule(self):
        for family in OsFamily:
            self.assertIn(family, host_probe._PATH_ESCAPE)


if __name__ == "__main__":
    unittest.main()
