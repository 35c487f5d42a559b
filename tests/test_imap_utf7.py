import unittest

from imapstream.imap_utf7 import encode


class TestEncode(unittest.TestCase):
    def test_ascii_unchanged(self):
        for name in ("INBOX", "Sent Items", "[Gmail]/All Mail", ""):
            self.assertEqual(encode(name), name)

    def test_ampersand(self):
        self.assertEqual(encode("a&b"), "a&-b")
        self.assertEqual(encode("&"), "&-")

    def test_latin1(self):
        self.assertEqual(encode("Entwürfe"), "Entw&APw-rfe")
        self.assertEqual(encode("Hello\xffworld"), "Hello&AP8-world")

    def test_comma_replaces_slash(self):
        self.assertEqual(encode("Ͽ"), "&A,8-")

    def test_rfc3501_example(self):
        self.assertEqual(
            encode("~peter/mail/台北/日本語"),
            "~peter/mail/&U,BTFw-/&ZeVnLIqe-",
        )

    def test_astral(self):
        self.assertEqual(encode("\U0001f600"), "&2D3eAA-")

    def test_result_is_ascii(self):
        self.assertTrue(encode("Entwürfe & 日本").isascii())
