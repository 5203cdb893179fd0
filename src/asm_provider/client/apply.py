"""Boundaries to the external apply engine, deployment storage and ESXCLI."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Callable, Protocol

logger = logging.getLogger(__name__)

Resources = dict[str, dict[str, dict[str, Any]]]

# ``(command, endpoint) -> output``; endpoint carries host, user and password.
EsxCli = Callable[[list[str], dict[str, str]], str]


class ApplyEngine(Protocol):
    """The configuration-management runtime that enforces resource sets.

    Success is signalled by returning; any failure raises.
    """

    def process_generic(
        self,
        certname: str,
        resources: Resources,
        run_type: str,
        update_inventory: bool = True,
        callback: Callable[..., Any] | None = None,
        guid: str | None = None,
    ) -> Any:
        ...


class DeploymentFiles:
    """Deployment scoped file store.

    Args:
        deployment_dir: Directory files of the current deployment are written to.
    """

    def __init__(self, deployment_dir: str | Path = "./deployments") -> None:
        self.deployment_dir = Path(deployment_dir)

    def save_file(self, contents: str, name: str) -> str:
        """Write *contents* to *name* under the deployment directory.

        Returns:
            The absolute path of the written file.
        """
        self.deployment_dir.mkdir(parents=True, exist_ok=True)
        path = self.deployment_dir / name
        path.write_text(contents, encoding="utf-8")
        logger.debug("Saved %d bytes to %s", len(contents), path)
        return str(path.resolve())
