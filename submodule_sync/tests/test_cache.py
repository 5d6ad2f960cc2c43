import threading
import unittest
from unittest.mock import Mock

from submodule_sync.src.cache import RepositoryCache


class RepositoryCacheTests(unittest.TestCase):
    def test_get_or_compute_probes_once(self):
        cache = RepositoryCache()
        probe = Mock(return_value=True)
        self.assertTrue(cache.get_or_compute("/work/lib", probe))
        self.assertTrue(cache.get_or_compute("/work/lib/", probe))
        probe.assert_called_once()
        self.assertEqual(len(cache), 1)

    def test_negative_results_are_cached(self):
        cache = RepositoryCache()
        probe = Mock(return_value=False)
        cache.get_or_compute("/work/missing", probe)
        self.assertFalse(cache.get_or_compute("/work/missing", probe))
        probe.assert_called_once()

    def test_unknown_path(self):
        self.assertIsNone(RepositoryCache().get("/nowhere"))

    def test_concurrent_access(self):
        cache = RepositoryCache()

        def worker(offset):
            for i in range(100):
                cache.get_or_compute(f"/work/{(i + offset) % 20}", lambda path: True)

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(6)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        self.assertEqual(len(cache), 20)
        cache.clear()
        self.assertEqual(len(cache), 0)


if __name__ == "__main__":
    unittest.main()
