import tempfile
import unittest
from pathlib import Path

from app_config import ServerSettings
from asset_server.config import (
    DEFAULT_PORT,
    ServerConfigurationError,
    StaticServerConfig,
    default_root_dir,
    parse_port,
)


class ParsePortTests(unittest.TestCase):
    def test_missing_or_non_numeric_uses_default(self) -> None:
        self.assertEqual(DEFAULT_PORT, parse_port(None))
        self.assertEqual(DEFAULT_PORT, parse_port(""))
        self.assertEqual(DEFAULT_PORT, parse_port("abc"))

    def test_non_ascii_digits_use_default(self) -> None:
        self.assertEqual(DEFAULT_PORT, parse_port("\uff18\uff10\uff18\uff10"))

    def test_zero_uses_default(self) -> None:
        self.assertEqual(DEFAULT_PORT, parse_port("0"))

    def test_leading_digits_are_parsed(self) -> None:
        self.assertEqual(8080, parse_port("8080"))
        self.assertEqual(8080, parse_port(" 8080abc"))

    def test_custom_default(self) -> None:
        self.assertEqual(9000, parse_port("nope", default=9000))


class StaticServerConfigTests(unittest.TestCase):
    def test_from_settings_defaults_to_project_layout(self) -> None:
        config = StaticServerConfig.from_settings(ServerSettings(), environ={})

        root = default_root_dir()
        self.assertEqual("0.0.0.0", config.host)
        self.assertEqual(3000, config.port)
        self.assertEqual((root / "public", root), config.base_dirs)
        self.assertTrue(config.confine_to_base_dirs)

    def test_port_env_overrides_settings(self) -> None:
        settings = ServerSettings(port=4000)

        self.assertEqual(
            8080,
            StaticServerConfig.from_settings(settings, environ={"PORT": "8080"}).port,
        )
        self.assertEqual(
            4000,
            StaticServerConfig.from_settings(settings, environ={"PORT": "abc"}).port,
        )

    def test_explicit_directories_are_kept(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            root = Path(temp_dir)
            settings = ServerSettings(public_dir=str(root / "static"), root_dir=str(root))

            config = StaticServerConfig.from_settings(settings, environ={})

            self.assertEqual((root / "static", root), config.base_dirs)

    def test_rejects_out_of_range_port(self) -> None:
        with self.assertRaises(ServerConfigurationError):
            StaticServerConfig(port=70000, public_dir="public", root_dir=".")

    def test_rejects_non_positive_chunk_size(self) -> None:
        with self.assertRaises(ServerConfigurationError):
            StaticServerConfig(chunk_size=0, public_dir="public", root_dir=".")

    def test_rejects_file_as_base_dir(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            not_a_dir = Path(temp_dir) / "file.txt"
            not_a_dir.write_text("x", encoding="utf-8")

            with self.assertRaises(ServerConfigurationError):
                StaticServerConfig(public_dir=str(not_a_dir), root_dir=temp_dir)


if __name__ == "__main__":
    unittest.main()
