import unittest
from pathlib import Path
from unittest.mock import Mock

from submodule_sync.src.errors import GitActionError
from submodule_sync.src.models import CommitSha, CommitSource, NoCandidate, Selected
from submodule_sync.src.strategies import (
    REASON_ANCESTRY_UNKNOWN,
    REASON_DIVERGED,
    REASON_EQUAL,
    REASON_FORCED,
    REASON_LOCAL_AHEAD,
    REASON_REMOTE_AHEAD,
    REASON_SINGLE,
    select_commit_smart,
)

LOCAL = CommitSha("1111111aaaa")
REMOTE = CommitSha("2222222bbbb")
REPO = Path("/work/super/lib")


def ancestry(pairs):
    """Ancestry oracle answering True only for (ancestor, descendant) in ``pairs``."""
    return Mock(side_effect=lambda a, d, path: (a, d) in pairs)


class SelectCommitSmartTests(unittest.TestCase):
    def _select(self, local, remote, *, force_remote=False, is_ancestor=None):
        return select_commit_smart(
            local,
            remote,
            force_remote=force_remote,
            repo_path=REPO,
            is_ancestor=is_ancestor or ancestry(set()),
            local_path=Path("/work/lib"),
        )

    def test_nothing_available(self):
        for force in (False, True):
            with self.subTest(force_remote=force):
                outcome = self._select(None, None, force_remote=force)
                self.assertIsInstance(outcome, NoCandidate)

    def test_force_remote_wins_regardless_of_ancestry(self):
        oracle = ancestry({(REMOTE, LOCAL)})
        outcome = self._select(LOCAL, REMOTE, force_remote=True, is_ancestor=oracle)
        self.assertIsInstance(outcome, Selected)
        self.assertEqual(outcome.selection.source, CommitSource.REMOTE)
        self.assertEqual(outcome.selection.sha, REMOTE)
        self.assertEqual(outcome.selection.reason, REASON_FORCED)
        oracle.assert_not_called()

    def test_force_remote_without_remote_uses_local(self):
        outcome = self._select(LOCAL, None, force_remote=True)
        self.assertEqual(outcome.selection.source, CommitSource.LOCAL)
        self.assertEqual(outcome.selection.reason, REASON_SINGLE)

    def test_only_remote(self):
        outcome = self._select(None, REMOTE)
        self.assertEqual(outcome.selection.source, CommitSource.REMOTE)
        self.assertEqual(outcome.selection.reason, REASON_SINGLE)
        self.assertIsNone(outcome.selection.local_path)

    def test_only_local_records_sibling_path(self):
        outcome = self._select(LOCAL, None)
        self.assertEqual(outcome.selection.source, CommitSource.LOCAL)
        self.assertEqual(outcome.selection.sha, LOCAL)
        self.assertEqual(outcome.selection.local_path, Path("/work/lib"))

    def test_equal_commits_skip_ancestry(self):
        oracle = ancestry(set())
        outcome = self._select(LOCAL, CommitSha(LOCAL.value.upper()), is_ancestor=oracle)
        self.assertEqual(outcome.selection.sha, LOCAL)
        self.assertEqual(outcome.selection.reason, REASON_EQUAL)
        oracle.assert_not_called()

    def test_local_behind_remote_selects_remote(self):
        outcome = self._select(LOCAL, REMOTE, is_ancestor=ancestry({(LOCAL, REMOTE)}))
        self.assertEqual(outcome.selection.source, CommitSource.REMOTE)
        self.assertEqual(outcome.selection.reason, REASON_REMOTE_AHEAD)
        self.assertFalse(outcome.selection.diverged)

    def test_local_ahead_of_remote_selects_local(self):
        outcome = self._select(LOCAL, REMOTE, is_ancestor=ancestry({(REMOTE, LOCAL)}))
        self.assertEqual(outcome.selection.source, CommitSource.LOCAL)
        self.assertEqual(outcome.selection.sha, LOCAL)
        self.assertEqual(outcome.selection.reason, REASON_LOCAL_AHEAD)

    def test_diverged_selects_remote_and_flags_it(self):
        outcome = self._select(LOCAL, REMOTE, is_ancestor=ancestry(set()))
        self.assertEqual(outcome.selection.source, CommitSource.REMOTE)
        self.assertTrue(outcome.selection.diverged)
        self.assertEqual(outcome.selection.reason, REASON_DIVERGED)

    def test_ancestry_failure_is_treated_as_divergence(self):
        oracle = Mock(side_effect=GitActionError("Commit missing", step="ancestry"))
        outcome = self._select(LOCAL, REMOTE, is_ancestor=oracle)
        self.assertEqual(outcome.selection.source, CommitSource.REMOTE)
        self.assertEqual(outcome.selection.sha, REMOTE)
        self.assertTrue(outcome.selection.diverged)
        self.assertTrue(outcome.selection.reason.startswith(REASON_ANCESTRY_UNKNOWN))
        self.assertIn("Commit missing", outcome.selection.reason)

    def test_ancestry_queries_run_in_repo_path(self):
        oracle = ancestry(set())
        self._select(LOCAL, REMOTE, is_ancestor=oracle)
        for call in oracle.call_args_list:
            self.assertEqual(call.args[2], REPO)


if __name__ == "__main__":
    unittest.main()
