"""Release archive packaging.

Binaries go at the archive root, as the uv installers expect. Unix targets get
a ``.tar.gz`` that keeps the executable bit; Windows targets get a ``.zip``.
"""

from __future__ import annotations

import hashlib
import tarfile
from pathlib import Path
from zipfile import ZIP_DEFLATED, ZipFile

from tagsync.core.result import Err, Ok, Result
from tagsync.services.errors import ServiceError
from tagsync.services.publish.matrix import MatrixEntry, archive_filename


def _sha256_file(path: Path) -> str:
    h = hashlib.sha256()
    with path.open("rb") as f:
        for chunk in iter(lambda: f.read(1024 * 1024), b""):
            h.update(chunk)
    return h.hexdigest()


def _write_tar_gz(archive: Path, files: list[Path]) -> None:
    def _normalize(info: tarfile.TarInfo) -> tarfile.TarInfo:
        info.uid = info.gid = 0
        info.uname = info.gname = ""
        info.mode = 0o755
        return info

    with tarfile.open(archive, "w:gz") as tar:
        for src in files:
            tar.add(src, arcname=src.name, recursive=False, filter=_normalize)


def _write_zip(archive: Path, files: list[Path]) -> None:
    # Build outputs may carry mtime=0, which ZIP cannot represent (pre-1980).
    with ZipFile(archive, "w", compression=ZIP_DEFLATED, strict_timestamps=False) as zf:
        for src in files:
            zf.write(src, arcname=src.name)


def package_archive(
    *,
    out_dir: Path,
    prefix: str,
    entry: MatrixEntry,
    binaries: list[Path],
) -> Result[Path, ServiceError]:
    """Pack ``binaries`` into ``<out_dir>/<prefix>-<target><ext>``."""
    missing = [b for b in binaries if not b.is_file()]
    if missing:
        return Err(
            ServiceError(
                kind="archive_failed",
                message=f"built binary not found: {missing[0]}",
                hint=entry.target,
            )
        )

    archive = out_dir / archive_filename(prefix, entry)
    try:
        out_dir.mkdir(parents=True, exist_ok=True)
        if archive.exists():
            archive.unlink()
        if entry.is_windows:
            _write_zip(archive, binaries)
        else:
            _write_tar_gz(archive, binaries)
    except (OSError, tarfile.TarError) as e:
        return Err(
            ServiceError(
                kind="archive_failed",
                message=f"failed to write {archive.name}",
                hint=str(e),
            )
        )
    return Ok(archive)


def write_checksum(archive: Path) -> Result[Path, ServiceError]:
    """Write ``<archive>.sha256`` in ``sha256sum`` format."""
    out = archive.with_name(f"{archive.name}.sha256")
    try:
        out.write_text(f"{_sha256_file(archive)}  {archive.name}\n", encoding="utf-8")
    except OSError as e:
        return Err(
            ServiceError(
                kind="archive_failed",
                message=f"failed to write {out.name}",
                hint=str(e),
            )
        )
    return Ok(out)
