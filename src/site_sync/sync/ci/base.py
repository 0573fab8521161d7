"""Common contract for CI workflow configurators."""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import ClassVar

from ...file_handler import write_file

logger = logging.getLogger(__name__)

DEFAULT_HUGO_VERSION = "0.81.0"


@dataclass(frozen=True)
class WorkflowOptions:
    """Values interpolated into a workflow file.

    Attributes:
        branch: Branch whose pushes trigger the build.
        hugo_version: Hugo extended release to build with.
        override_base_url: Passed as ``--baseURL`` when set.
    """

    branch: str = "main"
    hugo_version: str = DEFAULT_HUGO_VERSION
    override_base_url: str | None = None

    @property
    def build_command(self) -> str:
        if self.override_base_url:
            return f"hugo --minify --baseURL {self.override_base_url}"
        return "hugo --minify"


class CIConfigurator(ABC):
    """Renders and writes one git provider's Hugo build workflow.

    Rendering is a pure function of ``WorkflowOptions``.
    """

    name: ClassVar[str]
    workflow_path: ClassVar[PurePosixPath]

    def get_name(self) -> str:
        return self.name

    @abstractmethod
    def render(self, options: WorkflowOptions) -> str:
        """Return the workflow file text."""

    def write_workflow(
        self, destination: Path, options: WorkflowOptions | None = None
    ) -> Path:
        """Write the workflow under *destination* and return its path."""
        target = Path(destination).joinpath(*self.workflow_path.parts)
        write_file(target, self.render(options or WorkflowOptions()))
        logger.info("Wrote %s workflow: %s", self.name, target)
        return target
