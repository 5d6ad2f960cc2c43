import io
import unittest

from submodule_sync.src.console import BufferedConsole, SyncConsole, TerminalConsole
from submodule_sync.src.errors import (
    ConfigurationError,
    GitActionError,
    InvalidShaError,
    RepositoryStateError,
    SyncError,
    describe_error,
)


class TerminalConsoleTests(unittest.TestCase):
    def setUp(self):
        self.stdout = io.StringIO()
        self.stderr = io.StringIO()

    def test_levels_and_prefixes(self):
        console = TerminalConsole(stdout=self.stdout, stderr=self.stderr)
        console.debug("hidden debug")
        console.verbose("hidden verbose")
        console.info("hello")
        console.dry("would fetch")
        console.warn("careful")
        console.error("broken")
        self.assertEqual(self.stdout.getvalue(), "hello\n[dry-run] would fetch\n")
        self.assertEqual(self.stderr.getvalue(), "Warning: careful\nError: broken\n")

    def test_debug_implies_verbose(self):
        console = TerminalConsole(debug=True, stdout=self.stdout, stderr=self.stderr)
        console.debug("d")
        console.verbose("v")
        self.assertEqual(self.stdout.getvalue(), "[debug] d\nv\n")

    def test_buffer_flushes_as_block(self):
        console = TerminalConsole(verbose=True, stdout=self.stdout, stderr=self.stderr)
        buffer = BufferedConsole(prefix="[lib] ")
        buffer.verbose("fetching")
        buffer.debug("not shown")
        buffer.warn("diverged")
        buffer.flush_to(console)
        self.assertEqual(self.stdout.getvalue(), "[lib] fetching\n")
        self.assertEqual(self.stderr.getvalue(), "Warning: [lib] diverged\n")
        self.assertEqual(buffer.entries, [])

    def test_protocol(self):
        self.assertIsInstance(TerminalConsole(), SyncConsole)
        self.assertIsInstance(BufferedConsole(), SyncConsole)


class BufferedConsoleTests(unittest.TestCase):
    def test_records_levels(self):
        buffer = BufferedConsole()
        buffer.info("a")
        buffer.error("b")
        self.assertEqual(buffer.pairs(), [("info", "a"), ("error", "b")])
        self.assertEqual(buffer.messages("error"), ["b"])

    def test_flush_to_another_buffer(self):
        source = BufferedConsole(prefix="[x] ")
        target = BufferedConsole()
        source.dry("would update")
        source.flush_to(target)
        self.assertEqual(target.pairs(), [("dry", "[x] would update")])


class ErrorTests(unittest.TestCase):
    def test_hierarchy(self):
        for cls in (RepositoryStateError, GitActionError, ConfigurationError, InvalidShaError):
            self.assertTrue(issubclass(cls, SyncError))
        self.assertTrue(issubclass(InvalidShaError, ConfigurationError))

    def test_to_dict_includes_cause(self):
        try:
            try:
                raise OSError("disk full")
            except OSError as exc:
                raise GitActionError("checkout failed", step="detached-checkout", path="lib") from exc
        except GitActionError as error:
            payload = error.to_dict()
        self.assertEqual(payload["type"], "GitActionError")
        self.assertEqual(payload["details"], {"step": "detached-checkout", "path": "lib"})
        self.assertEqual(payload["cause"], "disk full")

    def test_describe_error(self):
        self.assertEqual(describe_error(SyncError("first\nsecond", suggestions=["try this"])), "first (hint: try this)")
        self.assertEqual(describe_error(ValueError("plain")), "plain")
        self.assertEqual(describe_error(KeyError()), "KeyError")


if __name__ == "__main__":
    unittest.main()
