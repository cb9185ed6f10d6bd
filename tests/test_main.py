"""End-to-end tests for the command line entry point."""

import io
import os
import tempfile
import unittest
from contextlib import redirect_stdout
from unittest.mock import MagicMock, patch

from coreos_metadata.errors import FetchError
from coreos_metadata.main import EXIT_FAILURE, EXIT_OK, EXIT_USAGE, VERSION_STRING, main
from coreos_metadata.providers import PROVIDERS, Metadata

from tests.helpers import fake_user

GETPWNAM = "coreos_metadata.ssh_keys.pwd.getpwnam"


class TestMain(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.home = os.path.join(self.tmp.name, "home", "core")
        os.makedirs(self.home)
        self.user = fake_user(self.home)
        self.out = os.path.join(self.tmp.name, "out")
        self.fetchers = {name: MagicMock(name=name) for name in PROVIDERS}
        self.providers = patch.dict(PROVIDERS, self.fetchers)
        self.providers.start()

    def tearDown(self):
        self.providers.stop()
        self.tmp.cleanup()

    def test_version(self):
        buf = io.StringIO()
        with redirect_stdout(buf):
            code = main(["--version", "--provider=foo", "--attributes", self.out])
        self.assertEqual(code, EXIT_OK)
        self.assertEqual(buf.getvalue().strip(), VERSION_STRING)
        self.assertFalse(os.path.exists(self.out))

    def test_end_to_end(self):
        self.fetchers["ec2"].return_value = Metadata(
            attributes={"REGION": "us-east-1"},
            ssh_keys=["ssh-ed25519 AAAA... key1"],
        )
        with patch(GETPWNAM, return_value=self.user) as mock_getpwnam:
            code = main(["--provider=ec2", f"--attributes={self.out}", "--ssh-keys=core"])

        self.assertEqual(code, EXIT_OK)
        mock_getpwnam.assert_called_once_with("core")
        with open(self.out) as f:
            self.assertEqual(f.read(), "COREOS_REGION=us-east-1\n")
        with open(os.path.join(self.home, ".ssh", "authorized_keys")) as f:
            self.assertEqual(f.read(), "ssh-ed25519 AAAA... key1\n")

    def test_invalid_provider(self):
        with patch(GETPWNAM) as mock_getpwnam:
            code = main(["--provider=foo", f"--attributes={self.out}", "--ssh-keys=core"])
        self.assertEqual(code, EXIT_USAGE)
        for f in self.fetchers.values():
            f.assert_not_called()
        mock_getpwnam.assert_not_called()
        self.assertFalse(os.path.exists(self.out))

    def test_bad_config_value_is_usage_error(self):
        cfg = os.path.join(self.tmp.name, "coreos-metadata.yaml")
        with open(cfg, "w") as f:
            f.write("provider: ec2\nattributes: 5\n")
        self.assertEqual(main(["--config", cfg]), EXIT_USAGE)
        for f in self.fetchers.values():
            f.assert_not_called()

    def test_missing_provider(self):
        self.assertEqual(main([]), EXIT_USAGE)

    def test_unknown_flag_is_usage_error(self):
        with patch("sys.stderr", new_callable=io.StringIO):
            with self.assertRaises(SystemExit) as ctx:
                main(["--bogus"])
        self.assertEqual(ctx.exception.code, EXIT_USAGE)

    def test_fetch_failure(self):
        self.fetchers["gce"].side_effect = FetchError("metadata server unreachable")
        code = main(["--provider=gce", f"--attributes={self.out}"])
        self.assertEqual(code, EXIT_FAILURE)
        self.assertFalse(os.path.exists(self.out))

    def test_attributes_failure(self):
        blocker = os.path.join(self.tmp.name, "blocker")
        with open(blocker, "w") as f:
            f.write("")
        self.fetchers["ec2"].return_value = Metadata(attributes={"A": "1"})
        code = main(["--provider=ec2", f"--attributes={blocker}/sub/attrs"])
        self.assertEqual(code, EXIT_FAILURE)

    def test_unknown_user(self):
        self.fetchers["packet"].return_value = Metadata(attributes={}, ssh_keys=["ssh-rsa A"])
        with patch(GETPWNAM, side_effect=KeyError("nope")):
            code = main(["--provider=packet", "--ssh-keys=ghost"])
        self.assertEqual(code, EXIT_FAILURE)

    def test_absent_keys_skip_install(self):
        self.fetchers["azure"].return_value = Metadata(attributes={"AZURE_IPV4_DYNAMIC": "10.0.0.4"})
        with patch(GETPWNAM) as mock_getpwnam:
            code = main(["--provider=azure", "--ssh-keys=core"])
        self.assertEqual(code, EXIT_OK)
        mock_getpwnam.assert_not_called()

    def test_cmdline_provider(self):
        cmdline = os.path.join(self.tmp.name, "cmdline")
        with open(cmdline, "w") as f:
            f.write("console=ttyS0 coreos.oem.id=packet\n")
        self.fetchers["packet"].return_value = Metadata(attributes={"PACKET_HOSTNAME": "box"})

        from coreos_metadata.env import Paths
        with patch("coreos_metadata.cmdline.PATHS", Paths(cmdline=cmdline)):
            code = main(["--cmdline", f"--attributes={self.out}"])

        self.assertEqual(code, EXIT_OK)
        self.fetchers["packet"].assert_called_once_with()
        with open(self.out) as f:
            self.assertEqual(f.read(), "COREOS_PACKET_HOSTNAME=box\n")

    def test_unreadable_cmdline(self):
        from coreos_metadata.env import Paths
        with patch("coreos_metadata.cmdline.PATHS", Paths(cmdline=os.path.join(self.tmp.name, "nope"))):
            self.assertEqual(main(["--cmdline"]), EXIT_USAGE)
        for f in self.fetchers.values():
            f.assert_not_called()


if __name__ == "__main__":
    unittest.main()
