"""Render the CI workflow files that drive tagsync.

The hosted CI still owns scheduling, fan-out and secrets; the workflows only
set up the runner and call the CLI. The sync workflow runs on a schedule and
calls the release workflow when tags were synced. The release workflow also
runs on manual dispatch and on tag pushes.
"""

from __future__ import annotations

from pathlib import Path

from tagsync.core.config import Config
from tagsync.core.result import Err, Ok, Result
from tagsync.services.errors import ServiceError
from tagsync.services.publish.matrix import RELEASE_MATRIX
from tagsync.services.publish.trigger import PUSH_TAG_PATTERN

SYNC_WORKFLOW_FILE = "sync-upstream-tags.yml"

# Every 12 hours, 10 minutes past the hour.
SYNC_SCHEDULE_CRON = "10 */12 * * *"

PYTHON_VERSION = "3.12"

# Checkout ref: the explicit tag input when present, else the pushed ref.
_REF_EXPR = "${{ inputs.tag && format('refs/tags/{0}', inputs.tag) || github.ref }}"

_SYNC_TEMPLATE = """\
name: Sync Tags
on:
  schedule:
    - cron: '@CRON@'
  workflow_dispatch:

jobs:
  sync:
    runs-on: ubuntu-latest
    outputs:
      synced_tags: ${{ steps.sync_tags.outputs.synced_tags }}
      has_new_tags: ${{ steps.sync_tags.outputs.has_new_tags }}
      latest_tag: ${{ steps.sync_tags.outputs.latest_tag }}
    steps:
      - uses: actions/checkout@v4
        with:
          fetch-depth: 0
          token: ${{ secrets.@PUSH_TOKEN@ }}
      - uses: actions/setup-python@v5
        with:
          python-version: '@PYTHON@'
      - run: pip install "@INSTALL@"
      - id: sync_tags
        run: tagsync sync
        env:
          @PUSH_TOKEN@: ${{ secrets.@PUSH_TOKEN@ }}

  trigger-release:
    needs: sync
    if: needs.sync.outputs.has_new_tags == 'true'
    uses: ./.github/workflows/@RELEASE_WORKFLOW@
    with:
      tag: ${{ needs.sync.outputs.latest_tag }}
    secrets: inherit
"""

_RELEASE_TEMPLATE = """\
name: Release

on:
  workflow_call:
    inputs:
      tag:
        description: Release Tag
        required: true
        type: string
  workflow_dispatch:
    inputs:
      tag:
        description: Release Tag
        required: true
        type: string
  push:
    tags:
      - '@PUSH_PATTERN@'

jobs:
  create-release:
    runs-on: ubuntu-latest
    steps:
      - uses: actions/checkout@v4
        with:
          ref: @REF@
      - uses: actions/setup-python@v5
        with:
          python-version: '@PYTHON@'
      - run: pip install "@INSTALL@"
      - run: tagsync release create --tag "${{ inputs.tag }}"
        env:
          @RELEASE_TOKEN@: ${{ secrets.@RELEASE_TOKEN@ }}

  upload-binaries:
    needs: create-release
    strategy:
      fail-fast: false
      matrix:
        include:
@MATRIX@
    runs-on: ${{ matrix.os }}
    steps:
      - uses: actions/checkout@v4
        with:
          ref: @REF@
      - uses: actions/setup-python@v5
        with:
          python-version: '@PYTHON@'
      - uses: dtolnay/rust-toolchain@stable
        with:
          targets: ${{ matrix.target }}
      - if: matrix.target == 'aarch64-unknown-linux-gnu'
        uses: taiki-e/install-action@cross
      - run: pip install "@INSTALL@"
      - run: >-
          tagsync release build --tag "${{ inputs.tag }}"
          --target ${{ matrix.target }} --no-checkout
        env:
          @RELEASE_TOKEN@: ${{ secrets.@RELEASE_TOKEN@ }}
"""


def _fill(template: str, values: dict[str, str]) -> str:
    out = template
    for key, value in values.items():
        out = out.replace(f"@{key}@", value)
    return out


def _matrix_block() -> str:
    lines: list[str] = []
    for entry in RELEASE_MATRIX:
        lines.append(f"          - target: {entry.target}")
        lines.append(f"            os: {entry.host.runner}")
    return "\n".join(lines)


def install_requirement(config: Config) -> Result[str, ServiceError]:
    """The pip requirement the rendered jobs install tagsync from."""
    if config.ci.install is None:
        return Err(
            ServiceError(
                kind="invalid_input",
                message="no install source for tagsync in the workflows",
                hint=(
                    'Set [ci] install = "tagsync @ git+https://github.com/<owner>/tagsync@<rev>"'
                    " in tagsync.toml."
                ),
            )
        )
    return Ok(config.ci.install)


def render_sync_workflow(config: Config, install: str) -> str:
    return _fill(
        _SYNC_TEMPLATE,
        {
            "CRON": SYNC_SCHEDULE_CRON,
            "PUSH_TOKEN": config.tokens.push,
            "PYTHON": PYTHON_VERSION,
            "INSTALL": install,
            "RELEASE_WORKFLOW": config.release.workflow,
        },
    )


def render_release_workflow(config: Config, install: str) -> str:
    return _fill(
        _RELEASE_TEMPLATE,
        {
            "PUSH_PATTERN": PUSH_TAG_PATTERN,
            "REF": _REF_EXPR,
            "PYTHON": PYTHON_VERSION,
            "INSTALL": install,
            "RELEASE_TOKEN": config.tokens.release,
            "MATRIX": _matrix_block(),
        },
    )


def render_workflows(config: Config) -> Result[dict[str, str], ServiceError]:
    """Workflow file name -> content."""
    install = install_requirement(config)
    if isinstance(install, Err):
        return install
    return Ok(
        {
            SYNC_WORKFLOW_FILE: render_sync_workflow(config, install.value),
            config.release.workflow: render_release_workflow(config, install.value),
        }
    )


def write_workflows(
    out_dir: Path,
    config: Config,
    *,
    force: bool = False,
) -> Result[list[Path], ServiceError]:
    """Write both workflow files; existing files are kept unless ``force``."""
    rendered = render_workflows(config)
    if isinstance(rendered, Err):
        return rendered
    files = rendered.value
    if not force:
        existing = [name for name in files if (out_dir / name).exists()]
        if existing:
            return Err(
                ServiceError(
                    kind="output_failed",
                    message=f"workflow file exists: {out_dir / existing[0]}",
                    hint="Pass --force to overwrite.",
                )
            )

    written: list[Path] = []
    try:
        out_dir.mkdir(parents=True, exist_ok=True)
        for name, content in files.items():
            path = out_dir / name
            path.write_text(content, encoding="utf-8")
            written.append(path)
    except OSError as e:
        return Err(
            ServiceError(
                kind="output_failed",
                message=f"failed to write workflows to {out_dir}",
                hint=str(e),
            )
        )
    return Ok(written)
