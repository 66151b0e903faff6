import os
import unittest
from unittest.mock import patch

from pydantic import ValidationError

from quote_scraper.config.settings import (
    DEFAULT_FALLBACK_PROXIES,
    DEFAULT_SETTINGS,
    Settings,
    get_settings,
)


class TestQuoteSettings(unittest.TestCase):
    def test_defaults(self):
        self.assertEqual(DEFAULT_SETTINGS.base_url, "https://www.google.com/finance/quote")
        self.assertEqual(DEFAULT_SETTINGS.proxy_url, "https://corsproxy.io/?")
        self.assertEqual(DEFAULT_SETTINGS.fallback_proxies, DEFAULT_FALLBACK_PROXIES)
        self.assertEqual(DEFAULT_SETTINGS.timeout_ms, 10_000)
        self.assertEqual(DEFAULT_SETTINGS.timeout_sec, 10.0)
        self.assertTrue(DEFAULT_SETTINGS.use_proxy)
        self.assertFalse(DEFAULT_SETTINGS.use_mock_data)
        self.assertFalse(DEFAULT_SETTINGS.enable_mock_fallback)
        self.assertFalse(DEFAULT_SETTINGS.mock_price_movement)

    def test_settings_are_immutable(self):
        with self.assertRaises(ValidationError):
            DEFAULT_SETTINGS.timeout_ms = 1

    def test_non_positive_timeout_fails_validation(self):
        with self.assertRaises(ValidationError):
            Settings(timeout_ms=0)

    def test_from_env_without_overrides_keeps_defaults(self):
        with patch.dict(os.environ, {}, clear=True):
            settings = Settings.from_env()

        self.assertEqual(settings, DEFAULT_SETTINGS)

    def test_from_env_reads_url_overrides(self):
        env = {
            "QUOTE_BASE_URL": "https://finance.example.test/quote/",
            "QUOTE_PROXY_URL": "https://proxy.example.test/?url=",
            "QUOTE_FALLBACK_PROXIES": " https://a.test/ , ,https://b.test/?q= ",
        }
        with patch.dict(os.environ, env, clear=True):
            settings = Settings.from_env()

        self.assertEqual(settings.base_url, "https://finance.example.test/quote")
        self.assertEqual(settings.proxy_url, "https://proxy.example.test/?url=")
        self.assertEqual(settings.fallback_proxies, ("https://a.test/", "https://b.test/?q="))

    def test_get_settings_is_cached(self):
        get_settings.cache_clear()
        try:
            with patch.dict(os.environ, {"QUOTE_PROXY_URL": "https://cached.test/?"}, clear=True):
                first = get_settings()
            second = get_settings()
        finally:
            get_settings.cache_clear()

        self.assertIs(first, second)
        self.assertEqual(second.proxy_url, "https://cached.test/?")


if __name__ == "__main__":
    unittest.main()
