from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path

import pytest
import typer

from tagsync.cli.context import CLIContext
from tagsync.core.config import Config
from tagsync.core.errors import ErrorCode
from tagsync.core.result import Err, Ok, Result
from tagsync.output.console import MockConsole
from tagsync.services.errors import ServiceError
from tagsync.services.publish.matrix import RELEASE_MATRIX
from tagsync.services.publish.model import CreatedRelease, MatrixReport, TargetResult
from tagsync.services.publish.trigger import AmbientRef, ExplicitTag, TriggerSource


def _ctx(tmp_path: Path, console: MockConsole, environ: Mapping[str, str]) -> CLIContext:
    return CLIContext(root=tmp_path, config=Config(), console=console, environ=environ)


def _report(*failures: ServiceError) -> MatrixReport:
    results: list[TargetResult] = []
    for i, entry in enumerate(RELEASE_MATRIX):
        if i < len(failures):
            results.append(TargetResult(entry=entry, status="failed", error=failures[i]))
        else:
            results.append(TargetResult(entry=entry, status="success", assets=("a.tar.gz",)))
    return MatrixReport(tag="0.5.0", results=tuple(results))


class FakePublisher:
    instances: list[FakePublisher] = []

    def __init__(self, **kwargs: object) -> None:
        self.kwargs = kwargs
        self.ready_checked = False
        self.sources: list[TriggerSource] = []
        self.create_result: Result[CreatedRelease, ServiceError] = Ok(
            CreatedRelease(tag="0.5.0", ref="refs/tags/0.5.0", url=None, prerelease=False)
        )
        self.build_result: Result[MatrixReport, ServiceError] = Ok(_report())
        FakePublisher.instances.append(self)

    def ensure_ready(self) -> Result[None, ServiceError]:
        self.ready_checked = True
        return Ok(None)

    def create(
        self, source: TriggerSource, *, dry_run: bool = False
    ) -> Result[CreatedRelease, ServiceError]:
        self.sources.append(source)
        return self.create_result

    def build(self, source: TriggerSource, **_: object) -> Result[MatrixReport, ServiceError]:
        self.sources.append(source)
        return self.build_result

    def publish(
        self, source: TriggerSource, **_: object
    ) -> Result[tuple[CreatedRelease, MatrixReport], ServiceError]:
        created = self.create(source)
        if isinstance(created, Err):
            return created
        built = self.build(source)
        if isinstance(built, Err):
            return built
        return Ok((created.value, built.value))


def _install(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Path,
    *,
    environ: Mapping[str, str] | None = None,
    create: Result[CreatedRelease, ServiceError] | None = None,
    build: Result[MatrixReport, ServiceError] | None = None,
) -> MockConsole:
    import tagsync.cli.commands.release as release_cmd

    class Configured(FakePublisher):
        def __init__(self, **kwargs: object) -> None:
            super().__init__(**kwargs)
            if create is not None:
                self.create_result = create
            if build is not None:
                self.build_result = build

    FakePublisher.instances = []
    console = MockConsole()
    monkeypatch.setattr(
        release_cmd, "build_context", lambda: _ctx(tmp_path, console, environ or {})
    )
    monkeypatch.setattr(release_cmd, "ReleasePublisher", Configured)
    return console


def test_create_ok(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    import tagsync.cli.commands.release as release_cmd

    _install(monkeypatch, tmp_path)

    release_cmd.create(tag="0.5.0", dry_run=False)

    publisher = FakePublisher.instances[0]
    assert publisher.ready_checked
    assert publisher.sources == [ExplicitTag(name="0.5.0")]


def test_create_existing_release_is_user_error(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    import tagsync.cli.commands.release as release_cmd

    error = ServiceError(kind="release_exists", message="release already exists: 0.5.0")
    console = _install(monkeypatch, tmp_path, create=Err(error))

    with pytest.raises(typer.Exit) as exc:
        release_cmd.create(tag="0.5.0", dry_run=False)

    assert exc.value.exit_code == int(ErrorCode.USER_ERROR)
    assert console.find("release already exists: 0.5.0")


def test_dispatch_without_tag_is_user_error(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    import tagsync.cli.commands.release as release_cmd

    _install(monkeypatch, tmp_path, environ={"GITHUB_EVENT_NAME": "workflow_dispatch"})

    with pytest.raises(typer.Exit) as exc:
        release_cmd.create(tag=None, dry_run=False)

    assert exc.value.exit_code == int(ErrorCode.USER_ERROR)


def test_tag_push_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    import tagsync.cli.commands.release as release_cmd

    _install(
        monkeypatch,
        tmp_path,
        environ={"GITHUB_EVENT_NAME": "push", "GITHUB_REF": "refs/tags/0.5.0"},
    )

    release_cmd.create(tag=None, dry_run=True)

    publisher = FakePublisher.instances[0]
    assert not publisher.ready_checked
    assert publisher.sources == [AmbientRef(ref="refs/tags/0.5.0")]


def _build(release_cmd: object) -> None:
    release_cmd.build(  # type: ignore[attr-defined]
        tag="0.5.0",
        target=None,
        all_hosts=False,
        clobber=False,
        checksum=False,
        checkout=True,
        out_dir=None,
        dry_run=False,
    )


def test_build_all_targets_ok(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    import tagsync.cli.commands.release as release_cmd

    console = _install(monkeypatch, tmp_path)

    _build(release_cmd)

    assert not console.has_error()
    assert FakePublisher.instances[0].kwargs["out_dir"] == tmp_path / "dist"


def test_build_failure_exits_with_build_error(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    import tagsync.cli.commands.release as release_cmd

    failure = ServiceError(kind="build_failed", message="cargo build failed")
    console = _install(monkeypatch, tmp_path, build=Ok(_report(failure)))

    with pytest.raises(typer.Exit) as exc:
        _build(release_cmd)

    assert exc.value.exit_code == int(ErrorCode.BUILD_ERROR)
    assert console.find("1 of 4 targets failed")


def test_upload_failure_exits_with_network_error(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    import tagsync.cli.commands.release as release_cmd

    failure = ServiceError(kind="upload_failed", message="failed to upload")
    _install(monkeypatch, tmp_path, build=Ok(_report(failure)))

    with pytest.raises(typer.Exit) as exc:
        _build(release_cmd)

    assert exc.value.exit_code == int(ErrorCode.NETWORK_ERROR)


def test_publish_stops_when_create_fails(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    import tagsync.cli.commands.release as release_cmd

    error = ServiceError(kind="release_exists", message="release already exists: 0.5.0")
    _install(monkeypatch, tmp_path, create=Err(error))

    with pytest.raises(typer.Exit) as exc:
        release_cmd.publish_tag(
            release_cmd.build_context(), ExplicitTag(name="0.5.0"), dry_run=True
        )

    assert exc.value.exit_code == int(ErrorCode.USER_ERROR)
    assert len(FakePublisher.instances[0].sources) == 1


def test_matrix_exit_code() -> None:
    import tagsync.cli.commands.release as release_cmd

    assert release_cmd.matrix_exit_code(_report()) == ErrorCode.OK
    archive_error = ServiceError(kind="archive_failed", message="x")
    assert release_cmd.matrix_exit_code(_report(archive_error)) == ErrorCode.IO_ERROR
