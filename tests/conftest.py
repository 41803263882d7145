# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Shared pytest fixtures."""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime
from pathlib import Path
from textwrap import dedent

import pytest

CORE_DESCRIPTOR = """\
code: core
name: Core
version: 1.0.0
config:
  user_name:
    prompt: What should agents call you?
    default: Sam
  output_folder:
    prompt: Where should documents go?
    default: "{project-root}/docs"
"""

PLANNING_DESCRIPTOR = """\
code: planning
name: Planning
version: 2.1.0
config:
  project_name:
    prompt: Project name
    default: "{directory_name}"
  planning_artifacts:
    prompt: Planning folder
    default: "{output_folder}/planning"
  skill_level:
    single-select:
      - beginner
      - expert
    default: expert
"""

CORE_FILES: dict[str, str] = {
    "module.yaml": CORE_DESCRIPTOR,
    "workflows/brainstorm/workflow.yaml": "name: brainstorm\ndescription: Run a guided\n  brainstorming session\n",
    "workflows/brainstorm/instructions.md": "# Steps\n",
    "workflows/template/workflow.yaml": "name: '{workflow_name}'\ndescription: Template stub\n",
    "agents/helper.md": dedent(
        """\
        <agent id="helper" name="Hana" title="Assistant, Guide" icon="🤖">
          <persona>
            <role>Guide</role>
            <identity>Patient helper</identity>
          </persona>
        </agent>
        """,
    ),
    "tasks/review.xml": '<task id="review" name="Review Work">\n  <objective>Review the work</objective>\n</task>\n',
    "tasks/shard.xml": '<task id="shard" name="Shard" internal="true"></task>\n',
    "module-help.csv": dedent(
        """\
        module,phase,name,code,sequence,workflow-file,command,required,agent-name,options,description,output-location,outputs
        ,anytime,Brainstorm,BS,1,_kit/core/workflows/brainstorm/workflow.yaml,kit:brainstorm,,helper,,"Ideas, fast",,
        """,
    ),
}

PLANNING_FILES: dict[str, str] = {
    "module.yaml": PLANNING_DESCRIPTOR,
    "workflows/plan/workflow.md": "---\nname: plan\ndescription: Plan the work\n---\n\n# Plan\n",
    "workflows/hidden/workflow.md": "---\nname: hidden\ndescription: Internal step\nstandalone: false\n---\n",
    "tools/lint.md": "---\nname: lint\ndisplayName: Lint\ndescription: Lint docs\nstandalone: false\n---\n",
    "templates/prd.md": "# PRD\n",
    "module-help.csv": "module,phase,name,code,sequence,agent-name,description\n,2-planning,Plan,PL,10,,Make a plan\n",
}


def write_tree(root: Path, files: dict[str, str]) -> Path:
    """Write ``files`` (relative path to content) below ``root``."""

    for relative, content in files.items():
        target = root / relative
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content, encoding="utf-8")
    return root


@pytest.fixture
def source_dir(tmp_path: Path) -> Path:
    """Return a content source holding the ``core`` and ``planning`` modules."""

    source = tmp_path / "source"
    write_tree(source / "core", CORE_FILES)
    write_tree(source / "planning", PLANNING_FILES)
    return source


@pytest.fixture
def project_dir(tmp_path: Path) -> Path:
    """Return an empty project directory."""

    project = tmp_path / "acme-app"
    project.mkdir()
    return project


@pytest.fixture
def fixed_clock() -> Callable[[], datetime]:
    """Return a clock pinned to a fixed instant."""

    moment = datetime(2025, 3, 1, 12, 30, 0, 123000, tzinfo=UTC)
    return lambda: moment


@pytest.fixture
def ticking_clock() -> Callable[[], datetime]:
    """Return a clock that advances one day per call."""

    moments = iter(datetime(2025, 3, day, 9, 0, tzinfo=UTC) for day in range(1, 29))
    return lambda: next(moments)


@pytest.fixture
def tree_writer() -> Callable[[Path, dict[str, str]], Path]:
    """Return :func:`write_tree` for tests that add files to an installation."""

    return write_tree


@pytest.fixture
def core_files() -> dict[str, str]:
    """Return the files of the ``core`` module keyed by module-relative path."""

    return dict(CORE_FILES)


@pytest.fixture
def planning_files() -> dict[str, str]:
    """Return the files of the ``planning`` module keyed by module-relative path."""

    return dict(PLANNING_FILES)
