#!/usr/bin/env python3
"""Dry-run batch planning: print the plan for a project without saving state.

Usage:
  python3 scripts/plan_project.py /path/to/project

Uses the batching limits from config/default.toml (+ development.toml, env).
"""

import sys
from pathlib import Path

# Project root on sys.path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))


def main() -> None:
    from codebatch.api.container import Container
    from codebatch.domain.entities.batch import MultiBatch
    from codebatch.domain.errors import CodebatchError

    if len(sys.argv) != 2:
        print(__doc__.strip())
        sys.exit(2)
    project = Path(sys.argv[1]).expanduser().resolve()
    if not project.is_dir():
        print(f"Not a directory: {project}")
        sys.exit(1)

    planner = Container().planner
    try:
        files = planner.measure(str(project))
        plan = planner.plan(str(project), files)
    except CodebatchError as e:
        print(f"Planning failed: {e.message}")
        sys.exit(1)

    summary = plan.strategy_summary
    print(f"Project: {project}")
    print(f"Files: {len(files)} ({summary.small_files} small, {summary.medium_files} medium, {summary.large_files} large)")
    print(f"Tasks: {plan.total_tasks}\n")
    for batch in plan.batches:
        if isinstance(batch, MultiBatch):
            where = f"{batch.files[0].path} part {batch.part_index}/{batch.total_parts} lines {batch.start_line}-{batch.end_line}"
        else:
            where = ", ".join(batch.paths)
        print(f"  {batch.task_id:<12} {batch.strategy:<9} {batch.total_tokens:>7}  {where}")
    for warning in plan.warnings:
        print(f"\nWarning: {warning}")


if __name__ == "__main__":
    main()
