import tempfile
import unittest
from pathlib import Path

from pydantic import ValidationError

from pinger.registry import load_targets


class RegistryTests(unittest.TestCase):
    def _write(self, td: str, text: str) -> Path:
        path = Path(td) / "targets.yml"
        path.write_text(text)
        return path

    def test_mixed_entries_keep_order(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            path = self._write(
                td,
                "targets:\n"
                "  - https://a.example/health\n"
                "  - url: https://b.example/ping\n"
                "  - https://a.example/health\n",
            )
            self.assertEqual(
                load_targets(path),
                [
                    "https://a.example/health",
                    "https://b.example/ping",
                    "https://a.example/health",
                ],
            )

    def test_empty_file_has_no_targets(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            self.assertEqual(load_targets(self._write(td, "")), [])

    def test_missing_file(self) -> None:
        with self.assertRaises(FileNotFoundError):
            load_targets(Path("/nonexistent/targets.yml"))

    def test_entry_without_url_rejected(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            path = self._write(td, "targets:\n  - name: api\n")
            with self.assertRaises(ValidationError):
                load_targets(path)


if __name__ == "__main__":
    unittest.main()
