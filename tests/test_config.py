import os
import tempfile
import unittest
from unittest.mock import patch, sentinel

from imapstream.config import connection_from_config, parse_config_file
from imapstream.interact import command_line


class ConfigFileTest(unittest.TestCase):
    def write_config(self, text):
        fd, path = tempfile.mkstemp(suffix=".ini")
        with os.fdopen(fd, "w") as f:
            f.write(text)
        self.addCleanup(os.remove, path)
        return path


class TestParseConfigFile(ConfigFileTest):
    def test_full(self):
        path = self.write_config(
            "[DEFAULT]\n"
            "host = imap.example.com\n"
            "port = 1143\n"
            "ssl = false\n"
            "username = fred\n"
            "password = secret\n"
            "timeout = 12.5\n"
            "tag_prefix = T\n"
        )
        conf = parse_config_file(path)
        self.assertEqual(conf.host, "imap.example.com")
        self.assertEqual(conf.port, 1143)
        self.assertFalse(conf.ssl)
        self.assertEqual(conf.username, "fred")
        self.assertEqual(conf.password, "secret")
        self.assertEqual(conf.timeout, 12.5)
        self.assertEqual(conf.tag_prefix, "T")

    def test_defaults(self):
        conf = parse_config_file(self.write_config("[DEFAULT]\nhost = imap.example.com\n"))
        self.assertTrue(conf.ssl)
        self.assertEqual(conf.port, 993)
        self.assertIsNone(conf.username)
        self.assertIsNone(conf.timeout)
        self.assertEqual(conf.tag_prefix, "a")

    def test_plain_default_port(self):
        conf = parse_config_file(self.write_config("[DEFAULT]\nhost = h\nssl = no\n"))
        self.assertEqual(conf.port, 143)

    def test_missing_default_section(self):
        path = self.write_config("[other]\nhost = h\n")
        self.assertRaises(ValueError, parse_config_file, path)

    def test_missing_host(self):
        path = self.write_config("[DEFAULT]\nport = 143\n")
        self.assertRaises(ValueError, parse_config_file, path)

    def test_username_without_password(self):
        path = self.write_config("[DEFAULT]\nhost = h\nusername = fred\n")
        self.assertRaises(ValueError, parse_config_file, path)


@patch("imapstream.config.IMAPConnection")
class TestConnectionFromConfig(ConfigFileTest):
    def test_login(self, connection):
        conf = parse_config_file(
            self.write_config("[DEFAULT]\nhost = h\nusername = fred\npassword = pw\n")
        )
        conn = connection_from_config(conf, ssl_context=sentinel.context)
        connection.assert_called_once_with(
            "h", port=993, ssl=True, ssl_context=sentinel.context, timeout=None, tag_prefix="a"
        )
        conn.login.assert_called_once_with("fred", "pw")

    def test_no_login(self, connection):
        conf = parse_config_file(self.write_config("[DEFAULT]\nhost = h\n"))
        connection_from_config(conf).login.assert_not_called()


class TestCommandLine(ConfigFileTest):
    def test_options(self):
        args = command_line(["-H", "imap.example.com", "-u", "fred", "-p", "pw", "-s"])
        self.assertEqual(args.host, "imap.example.com")
        self.assertEqual(args.port, 993)
        self.assertTrue(args.ssl)

    def test_file(self):
        path = self.write_config("[DEFAULT]\nhost = imap.example.com\nssl = no\n")
        args = command_line(["-f", path])
        self.assertEqual(args.host, "imap.example.com")
        self.assertEqual(args.port, 143)

    def test_file_and_options(self):
        path = self.write_config("[DEFAULT]\nhost = h\n")
        with patch("sys.stderr"):
            self.assertRaises(SystemExit, command_line, ["-f", path, "-H", "other"])

    def test_host_required(self):
        with patch("sys.stderr"):
            self.assertRaises(SystemExit, command_line, [])
