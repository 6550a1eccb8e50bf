"""The release pipeline: version, verify, publish, tag.

Stages run strictly in order and each one must succeed before the next
starts. A failure stops the pipeline in the ``failed`` stage without undoing
earlier steps: manifests that were rewritten and commits that were made stay
in place, and re-running the same version is supported (already published
packages are skipped).
"""

from __future__ import annotations

import dataclasses as dc
import logging
import typing as typ

from releaser import config as config_module
from releaser import manifest as manifest_module
from releaser import versioning
from releaser.commands.publish import PublishReport, publish_packages
from releaser.execution import select_executor
from releaser.prompts import CUSTOM_CHOICE, ConsolePrompter
from releaser.utils import normalise_project_root, resolve_package_dir

if typ.TYPE_CHECKING:
    from pathlib import Path

    from releaser.config import ReleaserConfig
    from releaser.execution import Executor
    from releaser.prompts import Prompter

LOGGER = logging.getLogger("releaser.commands.release")

ReleaseStage = typ.Literal[
    "resolve-version",
    "confirm",
    "test",
    "mutate-manifests",
    "build",
    "changelog",
    "commit-if-dirty",
    "publish",
    "tag-and-push",
    "done",
    "declined",
    "failed",
]

COMMIT_MESSAGE_TEMPLATE = "release: v{version}"
TAG_TEMPLATE = "v{version}"


@dc.dataclass(frozen=True, slots=True)
class ReleaseConfig:
    """Per-run settings taken from the command line."""

    target_version: str | None = None
    preid: str | None = None
    dry_run: bool = False
    skip_tests: bool = False
    skip_build: bool = False
    skip_changelog: bool = False
    tag: str | None = None


@dc.dataclass(frozen=True, slots=True)
class ReleaseOptions:
    """Collaborators for a release run.

    Parameters
    ----------
    configuration:
        Optional :class:`~releaser.config.ReleaserConfig` to use instead of
        the active or on-disk configuration.
    executor:
        Optional executor used for every external command. Defaults to the
        implementation matching ``ReleaseConfig.dry_run``.
    prompter:
        Optional prompter for the version choice and confirmation. Defaults to
        :class:`~releaser.prompts.ConsolePrompter`.

    """

    configuration: ReleaserConfig | None = None
    executor: Executor | None = None
    prompter: Prompter | None = None


@dc.dataclass(frozen=True, slots=True)
class ReleaseOutcome:
    """Summary of a finished release run."""

    version: str | None
    stage: ReleaseStage
    dry_run: bool = False
    committed: bool = False
    publish: PublishReport | None = None


class ReleaseOrchestrator:
    """Drive one release through its stages."""

    def __init__(
        self,
        project_root: Path,
        release_config: ReleaseConfig,
        *,
        configuration: ReleaserConfig,
        executor: Executor,
        prompter: Prompter,
    ) -> None:
        self.project_root = project_root
        self.release_config = release_config
        self.configuration = configuration
        self.executor = executor
        self.prompter = prompter
        self.stage: ReleaseStage = "resolve-version"
        self.package_dirs = tuple(
            resolve_package_dir(project_root, entry)
            for entry in configuration.publish.packages
        )

    def run(self) -> ReleaseOutcome:
        """Execute every stage and return the outcome.

        Errors propagate after the orchestrator moves to the ``failed`` stage.
        """
        try:
            return self._run_stages()
        except Exception:
            LOGGER.error("Release failed during stage %r", self.stage)
            self.stage = "failed"
            raise

    def _run_stages(self) -> ReleaseOutcome:
        dry_run = self.release_config.dry_run
        self._enter("resolve-version")
        version = self._resolve_version()

        self._enter("confirm")
        if not self.prompter.confirm(f"Releasing v{version}. Confirm?"):
            self._enter("declined")
            LOGGER.info("Release of v%s cancelled; nothing was changed.", version)
            return ReleaseOutcome(version=version, stage="declined", dry_run=dry_run)

        self._enter("test")
        self._run_scripts(
            "Running tests...",
            self.configuration.scripts.test,
            skip=self.release_config.skip_tests,
            skipped_notice="(test skipped)",
        )

        self._enter("mutate-manifests")
        self._step("Updating package versions...")
        for package_dir in self.package_dirs:
            manifest_module.update_version(package_dir, version, dry_run=dry_run)

        self._enter("build")
        self._run_scripts(
            "Building all packages...",
            self.configuration.scripts.build,
            skip=self.release_config.skip_build,
            skipped_notice="(build skipped)",
        )

        self._enter("changelog")
        self._run_scripts(
            "Generating changelog...",
            self.configuration.scripts.changelog,
            skip=self.release_config.skip_changelog,
            skipped_notice="(changelog skipped)",
        )

        self._enter("commit-if-dirty")
        committed = self._commit_if_dirty(version)

        self._enter("publish")
        self._step("Publishing packages...")
        report = publish_packages(
            self.package_dirs,
            version,
            executor=self.executor,
            tag=self.release_config.tag,
            access=self.configuration.publish.access,
        )

        self._enter("tag-and-push")
        self._tag_and_push(version)

        self._enter("done")
        if dry_run:
            LOGGER.info("Dry run finished - run git diff to see package changes.")
        return ReleaseOutcome(
            version=version,
            stage="done",
            dry_run=dry_run,
            committed=committed,
            publish=report,
        )

    def _enter(self, stage: ReleaseStage) -> None:
        LOGGER.debug("Release stage: %s -> %s", self.stage, stage)
        self.stage = stage

    def _step(self, message: str) -> None:
        LOGGER.info(message)

    def _resolve_version(self) -> str:
        current = manifest_module.load_manifest(self.package_dirs[0]).version
        target = self.release_config.target_version
        if not target:
            target = self._select_version(current)
        return versioning.validate_target(target, current)

    def _select_version(self, current: str) -> str:
        preid = versioning.default_preid(current, self.release_config.preid)
        candidates = {
            f"{kind} ({candidate})": candidate
            for kind, candidate in versioning.describe_candidates(current, preid)
        }
        choice = self.prompter.select_release([*candidates, CUSTOM_CHOICE])
        if choice == CUSTOM_CHOICE:
            return self.prompter.input_version(current)
        try:
            return candidates[choice]
        except KeyError as exc:
            message = f"Unknown release selection: {choice!r}"
            raise versioning.InvalidVersionError(message) from exc

    def _run_scripts(
        self,
        banner: str,
        scripts: typ.Sequence[str],
        *,
        skip: bool,
        skipped_notice: str,
    ) -> None:
        self._step(banner)
        if skip:
            LOGGER.info(skipped_notice)
            return
        for script in scripts:
            self.executor.run("npm", ("run", script), cwd=self.project_root)

    def _commit_if_dirty(self, version: str) -> bool:
        diff = self.executor.run("git", ("diff",), cwd=self.project_root, capture=True)
        if not diff.stdout.strip():
            LOGGER.info("No changes to commit.")
            return False
        self._step("Committing changes...")
        self.executor.run("git", ("add", "-A"), cwd=self.project_root)
        self.executor.run(
            "git",
            ("commit", "-m", COMMIT_MESSAGE_TEMPLATE.format(version=version)),
            cwd=self.project_root,
        )
        return True

    def _tag_and_push(self, version: str) -> None:
        self._step("Pushing to remote...")
        tag = TAG_TEMPLATE.format(version=version)
        remote = self.configuration.git.remote
        self.executor.run("git", ("tag", tag), cwd=self.project_root)
        self.executor.run(
            "git", ("push", remote, f"refs/tags/{tag}"), cwd=self.project_root
        )
        self.executor.run("git", ("push",), cwd=self.project_root)


def _ensure_configuration(
    configuration: ReleaserConfig | None, project_root: Path
) -> ReleaserConfig:
    """Return the active configuration, loading it from disk when required."""
    if configuration is not None:
        return configuration

    try:
        return config_module.current_configuration()
    except config_module.ConfigurationNotLoadedError:
        return config_module.load_configuration(project_root)


def run(
    project_root: Path | str | None,
    release_config: ReleaseConfig | None = None,
    *,
    options: ReleaseOptions | None = None,
) -> ReleaseOutcome:
    """Run the release pipeline for the project in ``project_root``."""
    root_path = normalise_project_root(project_root)
    active_config = ReleaseConfig() if release_config is None else release_config
    effective_options = ReleaseOptions() if options is None else options
    orchestrator = ReleaseOrchestrator(
        root_path,
        active_config,
        configuration=_ensure_configuration(
            effective_options.configuration, root_path
        ),
        executor=effective_options.executor
        or select_executor(dry_run=active_config.dry_run),
        prompter=effective_options.prompter or ConsolePrompter(),
    )
    return orchestrator.run()


def format_outcome(outcome: ReleaseOutcome) -> str:
    """Return a one-line, human-readable summary of ``outcome``."""
    if outcome.stage == "declined":
        return f"Release of v{outcome.version} cancelled; no changes made."
    prefix = "Dry run of release" if outcome.dry_run else "Released"
    summary = f"{prefix} v{outcome.version}"
    report = outcome.publish
    if report is None:
        return summary
    details: list[str] = []
    if report.published:
        details.append(f"published: {', '.join(report.published)}")
    if report.already_published:
        details.append(f"already published: {', '.join(report.already_published)}")
    if report.private:
        details.append(f"private: {', '.join(report.private)}")
    if details:
        summary = f"{summary} ({'; '.join(details)})"
    return summary


__all__ = [
    "COMMIT_MESSAGE_TEMPLATE",
    "TAG_TEMPLATE",
    "ReleaseConfig",
    "ReleaseOptions",
    "ReleaseOrchestrator",
    "ReleaseOutcome",
    "ReleaseStage",
    "format_outcome",
    "run",
]
