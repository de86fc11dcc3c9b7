from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path

from tagsync.core.config import Config
from tagsync.core.result import Err, Ok, Result
from tagsync.git.repository import Repository
from tagsync.output.console import ConsoleProtocol, Style
from tagsync.platform.detection import detect_host
from tagsync.services.errors import ServiceError
from tagsync.services.gh import (
    create_release,
    ensure_gh_auth,
    ensure_gh_available,
    upload_release_assets,
    view_release,
)
from tagsync.services.publish.archive import package_archive, write_checksum
from tagsync.services.publish.build import build_binaries
from tagsync.services.publish.matrix import (
    RELEASE_MATRIX,
    MatrixEntry,
    archive_filename,
    find_entry,
    select_entries,
)
from tagsync.services.publish.model import CreatedRelease, MatrixReport, TargetResult
from tagsync.services.publish.trigger import TriggerSource, is_prerelease, resolve_ref, tag_name


class ReleasePublisher:
    """Creates the release for a tag and attaches the per-target archives.

    Creation never overwrites: an existing release is a conflict. Archive
    uploads are resumable: a rerun skips targets whose archive is already
    attached, unless ``clobber`` asks to replace them.
    """

    def __init__(
        self,
        *,
        repo: Repository,
        config: Config,
        console: ConsoleProtocol,
        out_dir: Path,
        repo_slug: str | None = None,
        gh_env: Mapping[str, str] | None = None,
    ) -> None:
        self._repo = repo
        self._config = config
        self._console = console
        self._out_dir = out_dir
        self._slug = repo_slug
        self._gh_env = dict(gh_env) if gh_env else None

    def ensure_ready(self) -> Result[None, ServiceError]:
        ok = ensure_gh_available()
        if isinstance(ok, Err):
            return ok
        return ensure_gh_auth(cwd=self._repo.path, env=self._gh_env)

    def create(
        self, source: TriggerSource, *, dry_run: bool = False
    ) -> Result[CreatedRelease, ServiceError]:
        ref = resolve_ref(source)
        tag = tag_name(ref)
        prerelease = is_prerelease(tag)

        if not self._repo.has_tag(tag):
            return Err(
                ServiceError(
                    kind="tag_missing",
                    message=f"tag not found in repository: {tag}",
                    hint="Sync tags first, or fetch tags into this checkout.",
                )
            )

        existing = view_release(cwd=self._repo.path, tag=tag, repo=self._slug, env=self._gh_env)
        if isinstance(existing, Err):
            return existing
        if existing.value is not None:
            return Err(
                ServiceError(
                    kind="release_exists",
                    message=f"release already exists: {tag}",
                    hint="Delete the existing release or skip this tag.",
                )
            )

        release_cfg = self._config.release
        title = release_cfg.title.replace("{tag}", tag)
        if dry_run:
            self._console.print(f"would create release {tag} ({title})", Style.DIM)
            return Ok(CreatedRelease(tag=tag, ref=ref, url=None, prerelease=prerelease))

        created = create_release(
            cwd=self._repo.path,
            tag=tag,
            title=title,
            notes=release_cfg.notes,
            prerelease=prerelease,
            draft=release_cfg.draft,
            repo=self._slug,
            env=self._gh_env,
        )
        if isinstance(created, Err):
            return created

        url = created.value or None
        self._console.success(f"release {tag} created" + (f": {url}" if url else ""))
        return Ok(CreatedRelease(tag=tag, ref=ref, url=url, prerelease=prerelease))

    def build(
        self,
        source: TriggerSource,
        *,
        target: str | None = None,
        all_hosts: bool = False,
        clobber: bool = False,
        checksum: bool = False,
        checkout: bool = True,
        dry_run: bool = False,
    ) -> Result[MatrixReport, ServiceError]:
        """Build, package and upload every selected matrix entry.

        Entries run one after another and never stop each other; the report
        records one result per matrix entry in matrix order.
        """
        ref = resolve_ref(source)
        tag = tag_name(ref)

        if target is not None and find_entry(target) is None:
            known = ", ".join(e.target for e in RELEASE_MATRIX)
            return Err(
                ServiceError(
                    kind="invalid_input",
                    message=f"unknown target: {target}",
                    hint=f"Known targets: {known}",
                )
            )

        release = view_release(cwd=self._repo.path, tag=tag, repo=self._slug, env=self._gh_env)
        if isinstance(release, Err):
            return release
        if release.value is None and not dry_run:
            return Err(
                ServiceError(
                    kind="release_failed",
                    message=f"no release for {tag}",
                    hint="Create it first: tagsync release create --tag " + tag,
                )
            )
        attached = release.value.asset_names if release.value is not None else frozenset()

        host = detect_host()
        selected, skipped = select_entries(host=host, target=target, all_hosts=all_hosts)

        by_target: dict[str, TargetResult] = {}
        for entry in skipped:
            reason = "not selected" if target is not None else f"built on {entry.host} hosts"
            by_target[entry.target] = TargetResult(entry=entry, status="skipped", reason=reason)

        for entry in selected:
            self._console.header(entry.target)
            result = self._build_one(
                entry,
                ref=ref,
                tag=tag,
                attached=attached,
                clobber=clobber,
                checksum=checksum,
                checkout=checkout,
                dry_run=dry_run,
            )
            self._report_target(result)
            by_target[entry.target] = result

        ordered = tuple(by_target[e.target] for e in RELEASE_MATRIX)
        return Ok(MatrixReport(tag=tag, results=ordered))

    def publish(
        self,
        source: TriggerSource,
        *,
        all_hosts: bool = False,
        checksum: bool = False,
        checkout: bool = True,
        dry_run: bool = False,
    ) -> Result[tuple[CreatedRelease, MatrixReport], ServiceError]:
        """Create the release, then run the matrix. No build runs if creation fails."""
        created = self.create(source, dry_run=dry_run)
        if isinstance(created, Err):
            return created

        report = self.build(
            source,
            all_hosts=all_hosts,
            checksum=checksum,
            checkout=checkout,
            dry_run=dry_run,
        )
        if isinstance(report, Err):
            return report
        return Ok((created.value, report.value))

    def _asset_names(self, entry: MatrixEntry, *, checksum: bool) -> tuple[str, ...]:
        name = archive_filename(self._config.release.archive_prefix, entry)
        if checksum:
            return (name, f"{name}.sha256")
        return (name,)

    def _build_one(
        self,
        entry: MatrixEntry,
        *,
        ref: str,
        tag: str,
        attached: frozenset[str],
        clobber: bool,
        checksum: bool,
        checkout: bool,
        dry_run: bool,
    ) -> TargetResult:
        names = self._asset_names(entry, checksum=checksum)
        if not clobber and names[0] in attached:
            return TargetResult(
                entry=entry,
                status="skipped",
                assets=names,
                reason="archive already attached",
            )

        if dry_run:
            self._console.print(f"would build and upload {', '.join(names)}", Style.DIM)
            return TargetResult(entry=entry, status="skipped", assets=names, reason="dry run")

        if checkout:
            checked_out = self._repo.checkout_detached(ref)
            if isinstance(checked_out, Err):
                error = ServiceError(
                    kind="git_failed",
                    message=f"failed to check out {ref}",
                    hint=checked_out.error.message,
                )
                return TargetResult(entry=entry, status="failed", error=error)

        release_cfg = self._config.release
        built = build_binaries(
            source_dir=self._repo.path,
            entry=entry,
            bins=release_cfg.bins,
            console=self._console,
        )
        if isinstance(built, Err):
            return TargetResult(entry=entry, status="failed", error=built.error)

        archive = package_archive(
            out_dir=self._out_dir,
            prefix=release_cfg.archive_prefix,
            entry=entry,
            binaries=built.value,
        )
        if isinstance(archive, Err):
            return TargetResult(entry=entry, status="failed", error=archive.error)

        files = [archive.value]
        if checksum:
            digest = write_checksum(archive.value)
            if isinstance(digest, Err):
                return TargetResult(
                    entry=entry, status="failed", archive=archive.value, error=digest.error
                )
            files.append(digest.value)

        uploaded = upload_release_assets(
            cwd=self._repo.path,
            tag=tag,
            files=files,
            clobber=clobber,
            repo=self._slug,
            env=self._gh_env,
        )
        if isinstance(uploaded, Err):
            return TargetResult(
                entry=entry, status="failed", archive=archive.value, error=uploaded.error
            )

        return TargetResult(
            entry=entry,
            status="success",
            archive=archive.value,
            assets=tuple(f.name for f in files),
        )

    def _report_target(self, result: TargetResult) -> None:
        target = result.entry.target
        match result.status:
            case "success":
                self._console.success(f"{target}: {', '.join(result.assets)}")
            case "skipped":
                self._console.print(f"{target}: skipped ({result.reason})", Style.DIM)
            case "failed":
                message = result.error.message if result.error else "failed"
                self._console.error(f"{target}: {message}")
                if result.error and result.error.hint:
                    self._console.print(f"hint: {result.error.hint}", Style.DIM)
