"""CI workflow configurators, one per git hosting provider."""

from .base import DEFAULT_HUGO_VERSION, CIConfigurator, WorkflowOptions
from .forgejo import ForgejoActionsConfigurator
from .github import GitHubActionsConfigurator
from .gitlab import GitLabCIConfigurator

_CONFIGURATORS: dict[str, type[CIConfigurator]] = {
    "github": GitHubActionsConfigurator,
    "gitlab": GitLabCIConfigurator,
    "forgejo": ForgejoActionsConfigurator,
}


def get_ci_configurator(provider: str | None) -> CIConfigurator | None:
    """Return the configurator for *provider*.

    ``generic`` and unknown providers get ``None``: no CI file is written.
    """
    cls = _CONFIGURATORS.get(provider or "")
    return cls() if cls is not None else None


__all__ = [
    "DEFAULT_HUGO_VERSION",
    "CIConfigurator",
    "ForgejoActionsConfigurator",
    "GitHubActionsConfigurator",
    "GitLabCIConfigurator",
    "WorkflowOptions",
    "get_ci_configurator",
]
