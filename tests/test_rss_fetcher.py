import unittest
from unittest import mock

import requests

from news_digest.core.rss_fetcher import RSSFetcher, decode_document
from news_digest.exceptions import FeedFetchError
from news_digest.utils import create_http_session


def fake_response(status_code=200, content=b"", content_type="application/rss+xml"):
    response = mock.Mock()
    response.status_code = status_code
    response.content = content
    response.headers = {"Content-Type": content_type}
    return response


class RSSFetcherTests(unittest.TestCase):
    def make_fetcher(self, **get_kwargs):
        session = mock.Mock(spec=requests.Session)
        session.get = mock.Mock(**get_kwargs)
        return RSSFetcher(timeout=5, max_redirects=3, session=session), session

    def test_returns_body_on_200(self):
        fetcher, session = self.make_fetcher(return_value=fake_response(content=b"<rss></rss>"))

        self.assertEqual(fetcher.fetch("https://example.com/feed"), "<rss></rss>")
        session.get.assert_called_once_with("https://example.com/feed", timeout=5)

    def test_non_200_status_is_an_error(self):
        for status in (404, 500, 204, 301):
            with self.subTest(status=status):
                fetcher, _ = self.make_fetcher(return_value=fake_response(status_code=status))
                with self.assertRaises(FeedFetchError) as ctx:
                    fetcher.fetch("https://example.com/feed")
                self.assertEqual(str(ctx.exception), f"HTTP {status} for https://example.com/feed")

    def test_timeout(self):
        fetcher, _ = self.make_fetcher(side_effect=requests.exceptions.ReadTimeout("slow"))
        with self.assertRaises(FeedFetchError) as ctx:
            fetcher.fetch("https://example.com/feed")
        self.assertEqual(str(ctx.exception), "Timeout: https://example.com/feed")

    def test_too_many_redirects(self):
        fetcher, _ = self.make_fetcher(side_effect=requests.exceptions.TooManyRedirects("loop"))
        with self.assertRaises(FeedFetchError) as ctx:
            fetcher.fetch("https://example.com/feed")
        self.assertIn("Exceeded 3 redirects", str(ctx.exception))

    def test_transport_error(self):
        fetcher, _ = self.make_fetcher(side_effect=requests.exceptions.ConnectionError("refused"))
        with self.assertRaises(FeedFetchError) as ctx:
            fetcher.fetch("https://example.com/feed")
        self.assertIn("refused", str(ctx.exception))

    def test_session_is_bounded(self):
        session = create_http_session(max_redirects=2, user_agent="news-digest/test")
        self.assertEqual(session.max_redirects, 2)
        self.assertEqual(session.headers["User-Agent"], "news-digest/test")
        self.assertEqual(session.get_adapter("https://example.com").max_retries.total, 0)


class DecodeDocumentTests(unittest.TestCase):
    def test_header_charset_wins(self):
        body = "<rss>café</rss>".encode("iso-8859-1")
        self.assertEqual(decode_document(body, "text/xml; charset=ISO-8859-1"), "<rss>café</rss>")

    def test_xml_prolog_encoding(self):
        body = '<?xml version="1.0" encoding="windows-1252"?><rss>“hi”</rss>'.encode("cp1252")
        self.assertIn("“hi”", decode_document(body, "application/xml"))

    def test_defaults_to_utf8_and_strips_bom(self):
        body = "\ufeff<rss>naïve</rss>".encode("utf-8")
        self.assertEqual(decode_document(body, "text/xml"), "<rss>naïve</rss>")

    def test_invalid_bytes_are_replaced(self):
        self.assertEqual(decode_document(b"<rss>\xff</rss>", ""), "<rss>\ufffd</rss>")

    def test_unknown_encoding_falls_back_to_utf8(self):
        self.assertEqual(decode_document("<rss>ok</rss>".encode(), "text/xml; charset=bogus-enc"), "<rss>ok</rss>")


if __name__ == "__main__":
    unittest.main()
