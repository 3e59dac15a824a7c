"""
Algorithm loader - discovers and loads algorithm definitions.

Algorithms can come from:
1. Built-in library (shipped with package)
2. Project algorithms (user's project/algorithms directory)
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError

from chuk_mcp_tokens.constants import ScaleType
from chuk_mcp_tokens.models.algorithm import Algorithm

logger = logging.getLogger(__name__)


class AlgorithmMetadata(BaseModel):
    """Lightweight algorithm summary for listings."""

    id: str
    name: str
    file_name: str = Field(..., description="File stem the algorithm is addressed by")
    description: str = ""
    variable_count: int = 0
    formula_count: int = 0
    mode_based: bool = False
    scale_type: ScaleType | None = None

    @classmethod
    def from_algorithm(cls, algorithm: Algorithm, file_name: str) -> AlgorithmMetadata:
        generation = algorithm.token_generation
        return cls(
            id=algorithm.id,
            name=algorithm.name,
            file_name=file_name,
            description=algorithm.description,
            variable_count=len(algorithm.variables),
            formula_count=len(algorithm.formulas),
            mode_based=any(v.mode_based for v in algorithm.variables),
            scale_type=generation.logical_mapping.scale_type if generation else None,
        )


class AlgorithmLoader:
    """
    Discovers and loads algorithm definitions.

    Algorithms are loaded from YAML files in the library and project
    directories. Project algorithms override library algorithms with
    the same file name.
    """

    def __init__(
        self,
        library_path: Path | None = None,
        project_path: Path | None = None,
    ):
        """
        Initialize the algorithm loader.

        Args:
            library_path: Path to built-in algorithm library
            project_path: Path to project algorithms directory
        """
        self.library_path = library_path or (Path(__file__).parent / "library")
        self.project_path = project_path
        self._cache: dict[str, Algorithm] = {}

    def _search_paths(self) -> list[Path]:
        paths = [self.library_path]
        if self.project_path:
            paths.append(self.project_path)
        return [p for p in paths if p.exists()]

    def list_algorithms(self) -> list[AlgorithmMetadata]:
        """
        List all available algorithms.

        Returns algorithms from both library and project, with project
        algorithms taking precedence.
        """
        algorithms: dict[str, AlgorithmMetadata] = {}

        for directory in self._search_paths():
            for path in sorted(directory.glob("*.yaml")):
                algorithm = self._load_algorithm_file(path)
                if algorithm:
                    algorithms[path.stem] = AlgorithmMetadata.from_algorithm(algorithm, path.stem)

        return list(algorithms.values())

    def get_algorithm(self, name: str) -> Algorithm | None:
        """
        Get an algorithm by file name or id.

        Project algorithms take precedence over library algorithms.

        Args:
            name: File stem (e.g. "type-scale") or algorithm id

        Returns:
            Algorithm if found, None otherwise
        """
        if name in self._cache:
            return self._cache[name]

        # Try by file name, project first
        for directory in reversed(self._search_paths()):
            candidate = directory / f"{name}.yaml"
            if candidate.exists():
                algorithm = self._load_algorithm_file(candidate)
                if algorithm:
                    self._cache[name] = algorithm
                    return algorithm

        # Fall back to matching on id
        for directory in reversed(self._search_paths()):
            for path in sorted(directory.glob("*.yaml")):
                algorithm = self._load_algorithm_file(path)
                if algorithm and algorithm.id == name:
                    self._cache[name] = algorithm
                    return algorithm

        return None

    def load_file(self, path: Path) -> Algorithm:
        """
        Load an algorithm from a YAML file.

        Raises:
            OSError: If the file cannot be read
            yaml.YAMLError: If the file is not valid YAML
            pydantic.ValidationError: If the content is not a valid algorithm
        """
        with open(path) as f:
            data = yaml.safe_load(f)
        if not isinstance(data, dict):
            raise ValueError(f"Algorithm file must contain a mapping: {path}")
        return Algorithm.from_yaml_dict(data)

    def save_to_project(self, algorithm: Algorithm, name: str | None = None) -> Path:
        """
        Write an algorithm to the project directory as YAML.

        Args:
            algorithm: Algorithm to save
            name: File stem (defaults to the algorithm id)

        Returns:
            Path to the written file
        """
        if not self.project_path:
            raise ValueError("No project path configured")

        self.project_path.mkdir(parents=True, exist_ok=True)
        stem = name or algorithm.id
        dest_file = self.project_path / f"{stem}.yaml"
        with open(dest_file, "w") as f:
            yaml.safe_dump(algorithm.to_yaml_dict(), f, sort_keys=False)

        self._cache.pop(stem, None)
        self._cache.pop(algorithm.id, None)
        return dest_file

    def copy_to_project(self, name: str) -> Path | None:
        """
        Copy a library algorithm to the project for customization.

        Args:
            name: Algorithm file name

        Returns:
            Path to copied file, or None if not found
        """
        if not self.project_path:
            raise ValueError("No project path configured")

        library_file = self.library_path / f"{name}.yaml"
        if not library_file.exists():
            return None

        self.project_path.mkdir(parents=True, exist_ok=True)

        dest_file = self.project_path / f"{name}.yaml"
        if dest_file.exists():
            raise ValueError(f"Algorithm already exists in project: {name}")

        dest_file.write_text(library_file.read_text())
        self._cache.pop(name, None)

        return dest_file

    def _load_algorithm_file(self, path: Path) -> Algorithm | None:
        """Load an algorithm, logging and skipping files that fail to parse."""
        try:
            return self.load_file(path)
        except (OSError, yaml.YAMLError, ValidationError, ValueError) as e:
            logger.warning(f"Skipping algorithm file {path}: {e}")
            return None

    def clear_cache(self) -> None:
        """Clear the algorithm cache."""
        self._cache.clear()
