import socket
import tempfile
import unittest
import urllib.error
import urllib.request
from pathlib import Path

from asset_server import StaticAssetServer, StaticServerConfig


class StaticAssetServerTests(unittest.TestCase):
    def setUp(self) -> None:
        temp_dir = tempfile.TemporaryDirectory()
        self.addCleanup(temp_dir.cleanup)
        root = Path(temp_dir.name)
        self.root = root
        public = root / "public"
        public.mkdir()
        (public / "styles.css").write_text("body{}", encoding="utf-8")

        self.server = StaticAssetServer(
            StaticServerConfig(
                host="127.0.0.1",
                port=0,
                public_dir=str(public),
                root_dir=str(root),
            )
        )
        self.addCleanup(self.server.stop)

    def _url(self, path: str) -> str:
        return f"http://127.0.0.1:{self.server.port}{path}"

    def test_serves_files_until_stopped(self) -> None:
        with self.assertLogs("asset_server", level="INFO") as logs:
            self.server.start()

        self.assertTrue(self.server.is_running)
        self.assertNotEqual(0, self.server.port)
        self.assertTrue(
            any("Server listening on port" in line for line in logs.output)
        )

        with urllib.request.urlopen(self._url("/styles.css"), timeout=5) as resp:
            self.assertEqual(200, resp.status)
            self.assertEqual("text/css; charset=utf-8", resp.headers["Content-Type"])
            self.assertEqual(b"body{}", resp.read())

        with self.assertRaises(urllib.error.HTTPError) as context:
            urllib.request.urlopen(self._url("/nope.js"), timeout=5)
        self.assertEqual(404, context.exception.code)
        self.assertEqual(b"Not Found", context.exception.read())
        context.exception.close()

        self.server.stop()
        self.assertFalse(self.server.is_running)

    def test_start_twice_is_a_no_op(self) -> None:
        self.server.start()
        port = self.server.port

        self.server.start()

        self.assertEqual(port, self.server.port)
        self.assertTrue(self.server.is_running)

    def test_start_fails_when_port_is_taken(self) -> None:
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as blocker:
            blocker.bind(("127.0.0.1", 0))
            blocker.listen()
            taken_port = blocker.getsockname()[1]
            server = StaticAssetServer(
                StaticServerConfig(
                    host="127.0.0.1",
                    port=taken_port,
                    public_dir=str(self.root / "public"),
                    root_dir=str(self.root),
                )
            )
            self.addCleanup(server.stop)

            with self.assertLogs("asset_server", level="ERROR"):
                with self.assertRaises(RuntimeError) as context:
                    server.start()

        self.assertIn(f"Could not serve on port {taken_port}", str(context.exception))
        self.assertFalse(server.is_running)


if __name__ == "__main__":
    unittest.main()
