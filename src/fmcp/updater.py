"""Updater — periodic version check and optional self-install.

When an update is applied the process exits right after ``pip`` succeeds and
relies on its supervisor (the MCP client that spawned it) to start the new
version.  No in-process reload is attempted.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import os
import re
import sys
from collections.abc import Callable
from typing import TYPE_CHECKING

from fmcp import DIST_NAME

if TYPE_CHECKING:
    from fmcp.api.client import ApiClient
    from fmcp.api.models import UpdateInfo

logger = logging.getLogger(__name__)

_VERSION_RE = re.compile(r"^v?(\d+(?:\.\d+)*)")


def parse_version(version: str) -> tuple[int, int, int]:
    """Parse ``[v]MAJOR[.MINOR[.PATCH]]``; pre-release and build suffixes are ignored.

    Raises:
        ValueError: *version* does not start with a numeric release.
    """
    match = _VERSION_RE.match(version.strip())
    if match is None:
        msg = f"Invalid version: {version!r}"
        raise ValueError(msg)
    parts = [int(p) for p in match.group(1).split(".")][:3]
    parts += [0] * (3 - len(parts))
    return parts[0], parts[1], parts[2]


def compare_versions(a: str, b: str) -> int:
    """Return ``-1``, ``0`` or ``1`` as *a* is older than, equal to or newer than *b*."""
    left, right = parse_version(a), parse_version(b)
    return (left > right) - (left < right)


def is_newer(latest: str, current: str) -> bool:
    """Return ``True`` if *latest* is a newer release than *current*.

    Unparseable version strings count as newer, deferring to whoever
    reported the update.
    """
    try:
        return compare_versions(latest, current) > 0
    except ValueError:
        return True


class Updater:
    """Owns the background update-check task.

    ``start()`` is idempotent: it always cancels the previous task first.
    """

    def __init__(
        self,
        client: ApiClient,
        current_version: str,
        *,
        auto_update: bool,
        interval: float,
        exit_process: Callable[[int], None] = os._exit,
    ) -> None:
        self._client = client
        self._current_version = current_version
        self._auto_update = auto_update
        self._interval = interval
        self._exit_process = exit_process
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """(Re)start the periodic check; does nothing unless auto-update is on."""
        self.stop()
        if not self._auto_update:
            logger.debug("Auto-update disabled, update checker not started")
            return
        self._task = asyncio.get_running_loop().create_task(self._run(), name="fmcp-updater")

    def stop(self) -> None:
        if self._task is not None:
            self._task.cancel()
            self._task = None

    async def cleanup(self) -> None:
        """Stop the checker and wait for the task to unwind."""
        task, self._task = self._task, None
        if task is not None:
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task

    async def _run(self) -> None:
        # A failed check never stops the schedule; the next tick retries.
        while True:
            try:
                await self.check_for_updates()
            except Exception:
                logger.exception("Update check failed")
            await asyncio.sleep(self._interval)

    async def check_for_updates(self) -> bool:
        """Ask the backend for a newer release; return ``True`` if one exists."""
        result = await self._client.check_for_updates(self._current_version)
        if not result.success:
            logger.warning("Update check failed: %s", result.error)
            return False

        info: UpdateInfo = result.data
        if not info.has_update or not self._is_newer(info.latest_version):
            logger.debug("No update available (current %s)", self._current_version)
            return False

        logger.info("Update available: %s -> %s", self._current_version, info.latest_version)
        if info.release_notes:
            logger.info("Release notes: %s", info.release_notes)

        if self._auto_update:
            await self.apply_update(info.download_url, info.latest_version)
        else:
            logger.info(
                "To update, run: pip install --upgrade %s",
                _install_target(info.download_url, info.latest_version),
            )
        return True

    async def apply_update(self, download_url: str | None, new_version: str) -> bool:
        """Install *new_version* with pip, then terminate the process.

        Returns ``False`` if the install fails; the process keeps running.
        """
        target = _install_target(download_url, new_version)
        cmd = [sys.executable, "-m", "pip", "install", "--upgrade", target]
        logger.info("Installing update: %s", " ".join(cmd))
        try:
            proc = await asyncio.create_subprocess_exec(
                *cmd,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            logger.error("Failed to launch installer: %s", exc)
            return False

        try:
            _, stderr = await proc.communicate()
        except asyncio.CancelledError:
            logger.warning("Update to %s cancelled, stopping installer", new_version)
            with contextlib.suppress(ProcessLookupError):
                proc.kill()
            await proc.wait()
            raise

        if proc.returncode != 0:
            logger.error(
                "Update to %s failed (exit %s): %s",
                new_version,
                proc.returncode,
                stderr.decode(errors="replace").strip(),
            )
            return False

        logger.info("Updated to %s, exiting for restart", new_version)
        for handler in logging.getLogger().handlers:
            handler.flush()
        self._exit_process(0)
        return True

    def _is_newer(self, latest: str) -> bool:
        return is_newer(latest, self._current_version)


def _install_target(download_url: str | None, version: str) -> str:
    return download_url or f"{DIST_NAME}=={version}"
