"""User hooks for taskmgr notifications.

Hooks run shell commands whenever a notification is emitted.
Configured via hooks.yaml in the workspace root:

    on_notification:
      - "notify-send taskmgr"
    on_task_overdue:
      - command: "./page-me.sh"
        timeout: 10

`on_notification` runs for every event; `on_<kind>` runs for one kind.
"""

from __future__ import annotations

import json
import logging
import queue
import subprocess
import threading
from pathlib import Path
from typing import Any

import yaml

from core.fileio import read_yaml
from core.models import Notification
from core.notify import NOTIFICATION_KINDS
from core.workspace import hooks_config_path, workspace_root

logger = logging.getLogger(__name__)

VALID_HOOK_POINTS = {"on_notification"} | {f"on_{kind}" for kind in NOTIFICATION_KINDS}

DEFAULT_TIMEOUT = 30
OUTPUT_CAP = 4096


def load_hooks_config(root: Path | None = None) -> dict[str, Any]:
    """Load hooks configuration from hooks.yaml."""
    if root is None:
        root = workspace_root()
    path = hooks_config_path(root)
    if not path.exists():
        return {}
    try:
        return read_yaml(path)
    except (OSError, yaml.YAMLError):
        logger.warning("Ignoring unreadable hooks file %s", path, exc_info=True)
        return {}


def run_hooks(
    hook_point: str,
    context: dict[str, Any],
    root: Path | None = None,
    config: dict[str, Any] | None = None,
) -> list[dict[str, Any]]:
    """Run all hooks registered for a given hook point.

    Context is passed as JSON via stdin to each hook subprocess.
    Returns list of results with stdout/stderr and exit codes.
    """
    if hook_point not in VALID_HOOK_POINTS:
        return []

    if root is None:
        root = workspace_root()
    if config is None:
        config = load_hooks_config(root)

    hooks = config.get(hook_point, [])
    if not hooks or not isinstance(hooks, list):
        return []

    results = []
    context_json = json.dumps(context, ensure_ascii=False)

    for hook in hooks:
        if isinstance(hook, str):
            command = hook
            timeout = DEFAULT_TIMEOUT
        elif isinstance(hook, dict):
            command = hook.get("command", "")
            timeout = hook.get("timeout", DEFAULT_TIMEOUT)
        else:
            continue

        if not command:
            continue

        result: dict[str, Any] = {"command": command, "hook_point": hook_point}
        try:
            proc = subprocess.run(
                command,
                shell=True,
                input=context_json,
                capture_output=True,
                text=True,
                timeout=timeout,
                cwd=str(root),
            )
            result["exit_code"] = proc.returncode
            result["stdout"] = proc.stdout[:OUTPUT_CAP]
            result["stderr"] = proc.stderr[:OUTPUT_CAP]
            if proc.returncode != 0:
                logger.warning("Hook %r at %s exited %s", command, hook_point, proc.returncode)
        except subprocess.TimeoutExpired:
            result["exit_code"] = -1
            result["error"] = f"Hook timed out after {timeout}s"
            logger.warning("Hook %r at %s timed out after %ss", command, hook_point, timeout)
        except OSError as e:
            result["exit_code"] = -1
            result["error"] = str(e)
            logger.error("Hook %r at %s failed to start: %s", command, hook_point, e)

        results.append(result)

    return results


class HookSink:
    """Notification sink that fans each event out to configured hooks.

    Hooks run on a background worker thread, one event at a time and in
    emission order, so a slow hook never stalls the caller's event loop.
    The hooks file is read once at construction; call reload() after editing it.
    """

    def __init__(self, root: Path | None = None) -> None:
        self.root = root if root is not None else workspace_root()
        self.config = load_hooks_config(self.root)
        self._queue: queue.Queue[tuple[Notification, dict[str, Any]] | None] = queue.Queue()
        self._worker: threading.Thread | None = None
        self._lock = threading.Lock()
        self._stopped = False

    def reload(self) -> None:
        self.config = load_hooks_config(self.root)

    def __call__(self, notification: Notification) -> None:
        if not self.config or self._stopped:
            return
        self._ensure_worker()
        # Snapshot the config so a reload() only affects later events.
        self._queue.put((notification, self.config))

    def _ensure_worker(self) -> None:
        with self._lock:
            if self._worker is None:
                self._worker = threading.Thread(target=self._run, name="taskmgr-hooks", daemon=True)
                self._worker.start()

    def _run(self) -> None:
        while True:
            item = self._queue.get()
            try:
                if item is None:
                    return
                notification, config = item
                context = notification.to_dict()
                run_hooks(f"on_{notification.kind}", context, self.root, config)
                run_hooks("on_notification", context, self.root, config)
            except Exception:
                logger.exception("Hook dispatch failed")
            finally:
                self._queue.task_done()

    def wait_all(self) -> None:
        """Block until every queued event has been handed to its hooks."""
        if self._worker is not None:
            self._queue.join()

    def shutdown(self, timeout: float = 2.0) -> None:
        """Stop accepting events and let the worker finish what is queued."""
        if self._stopped:
            return
        self._stopped = True
        if self._worker is None:
            return
        self._queue.put(None)
        self._worker.join(timeout=timeout)
        if self._worker.is_alive():
            logger.warning("Hook worker still running after %ss; leaving it to exit with the process", timeout)
