"""
Pydantic v2 model for a named, reusable execution environment.
"""

import re
from pathlib import Path
from typing import Any, Literal

import yaml
from loguru import logger
from pydantic import BaseModel, Field, model_validator

PackageManager = Literal["conda", "pip"]

DEFAULT_INTERPRETER = "python"
# Exact pins only; ranges such as python>=3.8 stay in the package list
_PYTHON_PIN = re.compile(r"^python\s*==?\s*([0-9][0-9.*]*)$")


# DP-100: Environments - Declarative runtime (Python version + packages) reused across runs
class EnvironmentSpec(BaseModel):
    """
    Environment declaration: package manager, package lists and container base.

    With ``user_managed`` set the caller supplies its own interpreter and
    dependencies; package lists are then ignored by the workspace.
    """

    name: str = Field(..., min_length=1, description="Unique within a workspace")
    package_manager: PackageManager = "conda"
    packages: list[str] = Field(default_factory=list)
    pip_packages: list[str] = Field(default_factory=list, description="conda 'pip:' subsection")
    channels: list[str] = Field(default_factory=list)
    python_version: str | None = Field(None, description="Pinned as python=<version>")
    image: str | None = Field(None, description="Base container image")
    dockerfile: str | None = Field(None, description="Build context directory holding a Dockerfile")
    user_managed: bool = False
    interpreter_path: str | None = None
    description: str | None = None
    tags: dict[str, str] = Field(default_factory=dict)

    model_config = {"str_strip_whitespace": True, "extra": "forbid"}

    @model_validator(mode="after")
    def _check_dependencies(self) -> "EnvironmentSpec":
        if self.image and self.dockerfile:
            raise ValueError("image and dockerfile are mutually exclusive")
        if self.pip_packages and self.package_manager != "conda":
            raise ValueError("pip_packages only applies to the conda package manager")
        if self.interpreter_path and not self.user_managed:
            raise ValueError("interpreter_path requires user_managed dependencies")
        if self.user_managed:
            if self.interpreter_path is None:
                self.interpreter_path = DEFAULT_INTERPRETER
            return self
        if not self.has_packages and not self.dockerfile:
            raise ValueError(
                f"environment {self.name!r} declares no packages; "
                "set user_managed or provide a package list"
            )
        return self

    @property
    def has_packages(self) -> bool:
        return bool(self.packages or self.pip_packages)

    def effective_packages(self) -> tuple[list[str], list[str]]:
        """(conda dependencies, pip requirements) as the workspace will see them."""
        if self.user_managed:
            if self.has_packages:
                logger.warning(
                    "Environment {} is user-managed; ignoring {} declared packages",
                    self.name,
                    len(self.packages) + len(self.pip_packages),
                )
            return [], []
        if self.package_manager == "pip":
            return [], list(self.packages)
        return list(self.packages), list(self.pip_packages)

    def to_conda_dict(self) -> dict[str, Any] | None:
        """
        Conda specification for this environment, or None when there is nothing
        to install (user-managed, or dependencies come from a build context).
        """
        conda, pip = self.effective_packages()
        if not conda and not pip:
            return None

        dependencies: list[Any] = []
        if self.python_version:
            dependencies.append(f"python={self.python_version}")
        dependencies.extend(conda)
        if pip:
            if not any(_package_name(d) == "pip" for d in conda):
                dependencies.append("pip")
            dependencies.append({"pip": pip})

        out: dict[str, Any] = {"name": self.name}
        if self.channels:
            out["channels"] = list(self.channels)
        out["dependencies"] = dependencies
        return out

    def to_conda_yaml(self) -> str:
        """Conda specification serialized as YAML ("" when there is nothing to install)."""
        data = self.to_conda_dict()
        if data is None:
            return ""
        return yaml.safe_dump(data, sort_keys=False, default_flow_style=False)

    @classmethod
    def from_conda_file(cls, path: Path | str, name: str | None = None, **overrides: Any) -> "EnvironmentSpec":
        """
        Build a conda spec from a conda specification YAML file.

        Args:
            path: conda.yml path.
            name: Environment name; defaults to the file's ``name:`` entry.
            overrides: Extra EnvironmentSpec fields (image, description, tags...).
        """
        p = Path(path)
        with open(p, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValueError(f"{p} is not a conda specification mapping")

        packages: list[str] = []
        pip_packages: list[str] = []
        python_version: str | None = None
        for dep in data.get("dependencies") or []:
            if isinstance(dep, dict):
                pip_packages.extend(str(x) for x in dep.get("pip") or [])
                continue
            dep = str(dep).strip()
            pinned = _PYTHON_PIN.match(dep)
            if pinned:
                python_version = pinned.group(1)
                continue
            if dep == "pip":
                continue
            packages.append(dep)

        logger.debug("Parsed conda file {}: {} conda, {} pip packages", p, len(packages), len(pip_packages))
        return cls(
            name=name or data.get("name") or "",
            package_manager="conda",
            packages=packages,
            pip_packages=pip_packages,
            channels=list(data.get("channels") or []),
            python_version=python_version,
            **overrides,
        )

    @classmethod
    def from_requirements_file(cls, path: Path | str, name: str, **overrides: Any) -> "EnvironmentSpec":
        """Build a pip spec from a requirements.txt (comments and blank lines skipped)."""
        packages: list[str] = []
        with open(path, encoding="utf-8") as f:
            for line in f:
                line = line.split("#", 1)[0].strip()
                if not line:
                    continue
                if line.startswith("-"):
                    raise ValueError(f"{path}: pip option lines are not supported: {line!r}")
                packages.append(line)
        return cls(name=name, package_manager="pip", packages=packages, **overrides)


def _package_name(dep: str) -> str:
    """'python=3.10' -> 'python', 'numpy>=1.2' -> 'numpy'."""
    for sep in ("=", "<", ">", "!", " "):
        dep = dep.split(sep, 1)[0]
    return dep.strip().lower()
