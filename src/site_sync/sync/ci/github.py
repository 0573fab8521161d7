from pathlib import PurePosixPath

from .base import CIConfigurator, WorkflowOptions

_TEMPLATE = """\
name: github pages

on:
  push:
    branches:
      - {branch}

permissions:
  contents: write

jobs:
  deploy:
    runs-on: ubuntu-latest
    steps:
      - uses: actions/checkout@v4
        with:
          submodules: true
          fetch-depth: 0

      - name: Setup Hugo
        uses: peaceiris/actions-hugo@v2
        with:
          hugo-version: '{hugo_version}'
          extended: true

      - name: Build
        run: {build_command}

      - name: Deploy
        uses: peaceiris/actions-gh-pages@v3
        with:
          github_token: ${{{{ secrets.GITHUB_TOKEN }}}}
          publish_dir: ./public
"""


class GitHubActionsConfigurator(CIConfigurator):
    """GitHub Actions: build with Hugo extended, deploy ``./public`` to GitHub Pages."""

    name = "GitHub Actions"
    workflow_path = PurePosixPath(".github/workflows/hugo-build.yml")

    def render(self, options: WorkflowOptions) -> str:
        return _TEMPLATE.format(
            branch=options.branch,
            hugo_version=options.hugo_version,
            build_command=options.build_command,
        )
