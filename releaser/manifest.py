"""Reading and rewriting ``package.json`` manifests."""

from __future__ import annotations

import collections.abc as cabc
import dataclasses as dc
import json
import logging
import os
import tempfile
import typing as typ
from contextlib import suppress
from pathlib import Path

from releaser.utils.process import DRY_RUN_PREFIX

MANIFEST_FILENAME = "package.json"

LOGGER = logging.getLogger(__name__)


class ManifestError(RuntimeError):
    """Base class for manifest failures."""


class ManifestIOError(ManifestError):
    """Raised when a manifest cannot be read or written."""


class ManifestParseError(ManifestError):
    """Raised when a manifest is not a well-formed package description."""


@dc.dataclass(frozen=True, slots=True)
class PackageManifest:
    """The subset of ``package.json`` the release pipeline relies on."""

    path: Path
    name: str
    version: str
    private: bool = False

    @property
    def package_dir(self) -> Path:
        """Return the directory that contains the manifest."""
        return self.path.parent


def manifest_path(package_dir: Path) -> Path:
    """Return the ``package.json`` location inside ``package_dir``."""
    return Path(package_dir) / MANIFEST_FILENAME


def _read_document(path: Path) -> dict[str, typ.Any]:
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        message = f"Package manifest not found at {path}"
        raise ManifestIOError(message) from exc
    except OSError as exc:
        message = f"Unable to read package manifest at {path}: {exc}"
        raise ManifestIOError(message) from exc
    try:
        document = json.loads(text)
    except json.JSONDecodeError as exc:
        message = f"Failed to parse package manifest {path}: {exc}"
        raise ManifestParseError(message) from exc
    if not isinstance(document, cabc.Mapping):
        message = f"Package manifest {path} must contain a JSON object."
        raise ManifestParseError(message)
    return dict(document)


def _require_string(document: cabc.Mapping[str, typ.Any], key: str, path: Path) -> str:
    value = document.get(key)
    if not isinstance(value, str) or not value:
        message = f"Package manifest {path} must define a string {key!r} field."
        raise ManifestParseError(message)
    return value


def _private_flag(document: cabc.Mapping[str, typ.Any], path: Path) -> bool:
    value = document.get("private", False)
    if not isinstance(value, bool):
        message = (
            f"Package manifest {path} field 'private' must be a boolean; "
            f"received {type(value).__name__}."
        )
        raise ManifestParseError(message)
    return value


def load_manifest(package_dir: Path) -> PackageManifest:
    """Load the manifest stored in ``package_dir``."""
    path = manifest_path(package_dir)
    document = _read_document(path)
    return PackageManifest(
        path=path,
        name=_require_string(document, "name", path),
        version=_require_string(document, "version", path),
        private=_private_flag(document, path),
    )


def render_manifest(document: cabc.Mapping[str, typ.Any]) -> str:
    """Serialise ``document`` the way npm writes ``package.json``."""
    return json.dumps(document, indent=2, ensure_ascii=False) + "\n"


def update_version(package_dir: Path, version: str, *, dry_run: bool = False) -> bool:
    """Set the manifest version in ``package_dir`` to ``version``.

    Keys keep their original order. Returns ``True`` when the manifest changed
    (or, under ``dry_run``, would have changed).
    """
    path = manifest_path(package_dir)
    if dry_run:
        LOGGER.info("%s modify %s version to [%s]", DRY_RUN_PREFIX, path, version)
        return True
    document = _read_document(path)
    _require_string(document, "version", path)
    if document["version"] == version:
        LOGGER.info("%s already at version %s", path, version)
        return False
    document["version"] = version
    _write_atomic_text(path, render_manifest(document))
    LOGGER.info("Updated %s to version %s", path, version)
    return True


def _write_atomic_text(file_path: Path, content: str) -> None:
    """Persist ``content`` to ``file_path`` atomically using UTF-8 encoding."""
    dirpath = file_path.parent
    existing_mode: int | None = None
    with suppress(FileNotFoundError):
        existing_mode = file_path.stat().st_mode
    try:
        fd, tmp_path = tempfile.mkstemp(
            dir=dirpath,
            prefix=f"{file_path.name}.",
            text=True,
        )
    except OSError as exc:
        message = f"Failed to write package manifest {file_path}: {exc}"
        raise ManifestIOError(message) from exc
    try:
        if existing_mode is not None:
            with suppress(AttributeError):
                os.fchmod(fd, existing_mode)  # not available on Windows
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as handle:
            handle.write(content)
        Path(tmp_path).replace(file_path)
    except OSError as exc:
        message = f"Failed to write package manifest {file_path}: {exc}"
        raise ManifestIOError(message) from exc
    finally:
        with suppress(FileNotFoundError):
            Path(tmp_path).unlink()


__all__ = [
    "MANIFEST_FILENAME",
    "ManifestError",
    "ManifestIOError",
    "ManifestParseError",
    "PackageManifest",
    "load_manifest",
    "manifest_path",
    "render_manifest",
    "update_version",
]
