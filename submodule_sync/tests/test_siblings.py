import unittest
from pathlib import Path

from submodule_sync.src.actions import GitActions
from submodule_sync.src.cache import RepositoryCache
from submodule_sync.src.console import BufferedConsole
from submodule_sync.src.models import CommitSha
from submodule_sync.src.siblings import candidate_paths, find_sibling_repository

from .fixtures import GitWorkspaceTest


class CandidatePathTests(unittest.TestCase):
    def test_url_name_then_path_name(self):
        candidates = candidate_paths(
            Path("/work/super/libs/shared"),
            "https://github.com/org/shared-utils.git",
            Path("/work/super"),
        )
        self.assertEqual(
            candidates,
            [("shared-utils", Path("/work/shared-utils")), ("shared", Path("/work/shared"))],
        )

    def test_same_name_is_listed_once(self):
        candidates = candidate_paths(Path("/work/super/libs/shared"), "git@host:org/shared.git", Path("/work/super"))
        self.assertEqual(candidates, [("shared", Path("/work/shared"))])

    def test_superproject_itself_is_never_a_candidate(self):
        candidates = candidate_paths(Path("/work/super/super"), "git@host:org/super.git", Path("/work/super"))
        self.assertEqual(candidates, [])


class FindSiblingRepositoryTests(GitWorkspaceTest):
    def _find(self, url=None, branch="main", cache=None):
        return find_sibling_repository(
            self.submodule_path,
            url or str(self.upstream_path),
            branch,
            self.super_path,
            actions=GitActions(cache=cache or RepositoryCache()),
            console=BufferedConsole(),
        )

    def test_finds_sibling_and_its_branch_head(self):
        self.make_workspace(with_sibling=True)
        unpushed = self.commit_file(self.sibling, "lib.txt", "local", "unpushed")
        sibling = self._find()
        self.assertIsNotNone(sibling)
        self.assertEqual(sibling.name, "shared")
        self.assertEqual(sibling.path, self.sibling_path)
        self.assertTrue(sibling.is_valid)
        self.assertEqual(sibling.commit_sha, CommitSha(unpushed))

    def test_missing_branch_gives_no_sha(self):
        self.make_workspace(with_sibling=True)
        sibling = self._find(branch="release")
        self.assertIsNotNone(sibling)
        self.assertIsNone(sibling.commit_sha)

    def test_no_sibling_directory(self):
        self.make_workspace(with_sibling=False)
        self.assertIsNone(self._find())

    def test_unrelated_repository_is_ignored(self):
        self.make_workspace(with_sibling=False)
        other = self.make_repo(self.workspace / "shared")
        other.add_remote("origin", "git@example.com:someone/else.git")
        self.assertIsNone(self._find())

    def test_plain_directory_is_ignored_and_cached(self):
        self.make_workspace(with_sibling=False)
        (self.workspace / "shared").mkdir()
        cache = RepositoryCache()
        self.assertIsNone(self._find(cache=cache))
        self.assertFalse(cache.get(self.workspace / "shared"))


if __name__ == "__main__":
    unittest.main()
