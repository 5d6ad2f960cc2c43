"""Temporary git workspaces for tests that need a real ``git``."""
import os
import shutil
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from core.command_runner import SubprocessCommandRunner
from core.git_api import GitRepository

# Applies to every git child process, including the clones made by
# ``git submodule update`` which do not read the superproject's config.
GIT_TEST_ENV = {
    "GIT_CONFIG_COUNT": "4",
    "GIT_CONFIG_KEY_0": "protocol.file.allow",
    "GIT_CONFIG_VALUE_0": "always",
    "GIT_CONFIG_KEY_1": "core.hooksPath",
    "GIT_CONFIG_VALUE_1": "/dev/null",
    "GIT_CONFIG_KEY_2": "user.name",
    "GIT_CONFIG_VALUE_2": "Test User",
    "GIT_CONFIG_KEY_3": "user.email",
    "GIT_CONFIG_VALUE_3": "test@example.com",
}


class GitWorkspaceTest(unittest.TestCase):
    """
    Layout built by :meth:`make_workspace`::

        <tmp>/upstream/shared    "remote" repository
        <tmp>/super              superproject, submodule at libs/shared
        <tmp>/shared             sibling clone of upstream (optional)
    """

    def setUp(self):
        self.workspace = Path(tempfile.mkdtemp()).resolve()
        self.addCleanup(shutil.rmtree, self.workspace)
        env_patch = patch.dict(os.environ, GIT_TEST_ENV)
        env_patch.start()
        self.addCleanup(env_patch.stop)

    def make_repo(self, path: Path) -> GitRepository:
        repo = GitRepository.init(path)
        repo.set_config("core.hooksPath", "/dev/null")
        repo.set_config("user.name", "Test User")
        repo.set_config("user.email", "test@example.com")
        return repo

    def commit_file(self, repo: GitRepository, filename: str, content: str, msg: str = "msg") -> str:
        file_path = repo.root_dir / filename
        file_path.parent.mkdir(parents=True, exist_ok=True)
        file_path.write_text(content)
        repo.add([str(file_path)])
        repo.commit(msg)
        return repo.get_head_commit()

    def clone(self, source: Path, target: Path) -> GitRepository:
        SubprocessCommandRunner().run(["git", "clone", "-q", str(source), str(target)])
        clone = GitRepository(target)
        clone.set_config("core.hooksPath", "/dev/null")
        return clone

    def make_workspace(self, *, with_sibling: bool = False, submodule_path: str = "libs/shared"):
        self.upstream_path = self.workspace / "upstream" / "shared"
        self.upstream = self.make_repo(self.upstream_path)
        self.base_sha = self.commit_file(self.upstream, "lib.txt", "v1", "base")

        self.super_path = self.workspace / "super"
        self.superproject = self.make_repo(self.super_path)
        self.commit_file(self.superproject, "README", "super", "init")
        self.superproject.run_git_cmd(["submodule", "add", str(self.upstream_path), submodule_path])
        self.superproject.commit("add shared")
        self.submodule_path = self.super_path / submodule_path

        if with_sibling:
            self.sibling_path = self.workspace / "shared"
            self.sibling = self.clone(self.upstream_path, self.sibling_path)
        return self.super_path
