"""Cuprum catalogue for releaser command execution.

Every external executable the release pipeline may spawn is registered here.
:class:`releaser.execution.LiveExecutor` refuses to run programs that the
catalogue does not allow, so adding a new pipeline step that shells out to a
different tool means registering the tool first.
"""

from __future__ import annotations

from cuprum import Program, ProgramCatalogue, ProjectSettings

NPM = Program("npm")
GIT = Program("git")

_RELEASER_PROJECT = ProjectSettings(
    name="releaser",
    programs=(NPM, GIT),
    documentation_locations=("DESIGN.md#commandrunner",),
    noise_rules=(),
)

# - npm: test/build/changelog scripts (``npm run``) and ``npm publish``.
# - git: dirty-tree probe, release commit, tag and push.
RELEASER_CATALOGUE = ProgramCatalogue(projects=(_RELEASER_PROJECT,))

__all__ = ["GIT", "NPM", "RELEASER_CATALOGUE"]
