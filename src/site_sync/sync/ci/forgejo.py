from pathlib import PurePosixPath

from .base import CIConfigurator, WorkflowOptions

_TEMPLATE = """\
name: hugo build

on:
  push:
    branches:
      - {branch}

jobs:
  build:
    runs-on: docker
    container:
      image: klakegg/hugo:{hugo_version}-ext-alpine
    steps:
      - name: Checkout
        uses: actions/checkout@v4
        with:
          submodules: true
          fetch-depth: 0

      - name: Build
        run: {build_command}

      - name: Upload pages artifact
        uses: actions/upload-artifact@v3
        with:
          name: pages
          path: public
"""


class ForgejoActionsConfigurator(CIConfigurator):
    """Forgejo/Gitea Actions: container job, uploads a ``pages`` artifact."""

    name = "Forgejo Actions"
    workflow_path = PurePosixPath(".forgejo/workflows/hugo-build.yml")

    def render(self, options: WorkflowOptions) -> str:
        return _TEMPLATE.format(
            branch=options.branch,
            hugo_version=options.hugo_version,
            build_command=options.build_command,
        )
