from __future__ import annotations

from pathlib import Path

import tomllib

import chromepipe


def main() -> None:
    pyproject = tomllib.loads(Path("pyproject.toml").read_text(encoding="utf-8"))
    project_version = pyproject.get("project", {}).get("version")
    if not isinstance(project_version, str) or not project_version:
        raise SystemExit("Could not find project.version in pyproject.toml")
    module_version = chromepipe.__version__

    if project_version != module_version:
        raise SystemExit(
            "Version mismatch: pyproject.toml project.version="
            f"{project_version} != chromepipe.__version__={module_version}"
        )

    print(f"Version check passed: {project_version}")


if __name__ == "__main__":
    main()
