"""Registry publication for release packages."""

from __future__ import annotations

import dataclasses as dc
import logging
import re
import typing as typ

from releaser.execution import CommandFailedError
from releaser.manifest import load_manifest

if typ.TYPE_CHECKING:
    from pathlib import Path

    from releaser.config import PublishAccess
    from releaser.execution import Executor
    from releaser.manifest import PackageManifest

LOGGER = logging.getLogger("releaser.commands.publish")

PublishOutcome = typ.Literal["published", "already-published", "private"]

# Channels inferred from the version string, checked in this order.
_CHANNEL_MARKERS: typ.Final[tuple[str, ...]] = ("alpha", "beta", "rc")

# npm reports re-publication of an existing version with this wording
# ("You cannot publish over the previously published versions"). The registry
# does not document it, so only ``is_already_published`` may match on it.
_ALREADY_PUBLISHED_PATTERN: typ.Final[re.Pattern[str]] = re.compile(
    r"previously published", re.IGNORECASE
)


class PublishFailedError(RuntimeError):
    """Raised when the registry rejects a package for any other reason."""


@dc.dataclass(frozen=True, slots=True)
class PublishReport:
    """Names of the packages handled by :func:`publish_packages`."""

    published: tuple[str, ...] = ()
    already_published: tuple[str, ...] = ()
    private: tuple[str, ...] = ()


def resolve_dist_tag(version: str, explicit_tag: str | None = None) -> str | None:
    """Return the distribution tag for ``version``.

    ``explicit_tag`` wins; otherwise pre-release channels are inferred from the
    version text. Stable releases get no tag so npm applies ``latest``.
    """
    if explicit_tag:
        return explicit_tag
    for marker in _CHANNEL_MARKERS:
        if marker in version:
            return marker
    return None


def is_already_published(diagnostic: str | None) -> bool:
    """Return ``True`` when ``diagnostic`` reports a duplicate version."""
    if not diagnostic:
        return False
    return _ALREADY_PUBLISHED_PATTERN.search(diagnostic) is not None


def build_publish_arguments(
    tag: str | None, access: PublishAccess = "public"
) -> tuple[str, ...]:
    """Return the ``npm`` arguments for publishing with ``tag``."""
    arguments = ["publish"]
    if tag:
        arguments.extend(("--tag", tag))
    arguments.extend(("--access", access))
    return tuple(arguments)


def publish_package(
    package_dir: Path,
    version: str,
    *,
    executor: Executor,
    tag: str | None = None,
    access: PublishAccess = "public",
) -> PublishOutcome:
    """Publish the package in ``package_dir`` and report what happened."""
    return _publish_manifest(
        load_manifest(package_dir), version, executor=executor, tag=tag, access=access
    )


def _publish_manifest(
    manifest: PackageManifest,
    version: str,
    *,
    executor: Executor,
    tag: str | None,
    access: PublishAccess,
) -> PublishOutcome:
    if manifest.private:
        LOGGER.info("Skipping private package %s", manifest.name)
        return "private"

    release_tag = resolve_dist_tag(version, tag)
    LOGGER.info("Publishing %s...", manifest.name)
    try:
        executor.run(
            "npm",
            build_publish_arguments(release_tag, access),
            cwd=manifest.package_dir,
            capture=True,
        )
    except CommandFailedError as exc:
        if is_already_published(exc.stderr) or is_already_published(exc.stdout):
            LOGGER.warning("Skipping already published: %s", manifest.name)
            return "already-published"
        message = f"Failed to publish {manifest.name}@{version}: {exc}"
        raise PublishFailedError(message) from exc
    LOGGER.info("Successfully published %s@%s", manifest.name, version)
    return "published"


def publish_packages(
    package_dirs: typ.Sequence[Path],
    version: str,
    *,
    executor: Executor,
    tag: str | None = None,
    access: PublishAccess = "public",
) -> PublishReport:
    """Publish every package in ``package_dirs`` in order."""
    buckets: dict[PublishOutcome, list[str]] = {
        "published": [],
        "already-published": [],
        "private": [],
    }
    for package_dir in package_dirs:
        manifest = load_manifest(package_dir)
        outcome = _publish_manifest(
            manifest, version, executor=executor, tag=tag, access=access
        )
        buckets[outcome].append(manifest.name)
    return PublishReport(
        published=tuple(buckets["published"]),
        already_published=tuple(buckets["already-published"]),
        private=tuple(buckets["private"]),
    )


__all__ = [
    "PublishFailedError",
    "PublishOutcome",
    "PublishReport",
    "build_publish_arguments",
    "is_already_published",
    "publish_package",
    "publish_packages",
    "resolve_dist_tag",
]
