"""
Git Adapter

Architectural Intent:
- Infrastructure adapter implementing VersionControlPort with the git CLI
- Branches are created, moved and deleted on the remote by pushing refs from a
  local working copy that already contains the revision
- Uses subprocess for git operations wrapped in async
"""

import asyncio
import logging
import subprocess
from functools import partial
from factroll.domain.ports.version_control_port import VersionControlPort

logger = logging.getLogger(__name__)


class GitCommandError(Exception):
    pass


class GitAdapter(VersionControlPort):
    def __init__(self, workdir: str, timeout: int = 120):
        self.workdir = workdir
        self.timeout = timeout

    def _git(self, *args: str) -> str:
        cmd = ["git", *args]
        logger.debug("Running %s in %s", " ".join(cmd), self.workdir)
        try:
            result = subprocess.run(
                cmd,
                cwd=self.workdir,
                capture_output=True,
                text=True,
                check=True,
                timeout=self.timeout,
            )
        except subprocess.CalledProcessError as e:
            raise GitCommandError(
                f"git {' '.join(args)} failed: {(e.stderr or '').strip()}"
            ) from e
        except subprocess.TimeoutExpired as e:
            raise GitCommandError(
                f"git {' '.join(args)} timed out after {self.timeout}s"
            ) from e
        return result.stdout.strip()

    async def _run(self, *args: str) -> str:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, partial(self._git, *args))

    async def branch_exists(self, repo: str, name: str) -> bool:
        output = await self._run("ls-remote", "--heads", repo, f"refs/heads/{name}")
        return bool(output)

    async def create_branch(
        self, repo: str, name: str, revision: str, from_existing: bool = False
    ) -> None:
        if from_existing and await self.branch_exists(repo, name):
            logger.info("Branch %s already exists on %s, reusing it", name, repo)
            return
        await self._run("push", repo, f"{revision}:refs/heads/{name}")
        logger.info("Created branch %s on %s at %s", name, repo, revision[:8])

    async def delete_branch(self, repo: str, name: str) -> None:
        await self._run("push", repo, "--delete", f"refs/heads/{name}")
        logger.info("Deleted branch %s on %s", name, repo)

    async def update_branch(self, repo: str, name: str, revision: str) -> None:
        await self._run("push", "--force", repo, f"{revision}:refs/heads/{name}")
        logger.info("Moved branch %s on %s to %s", name, repo, revision[:8])
