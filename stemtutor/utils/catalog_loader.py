"""
Catalog loader utility for STEM Tutor.

Loads YAML content catalogs from the data/ directory.
"""

from pathlib import Path
from typing import Any
import yaml

from stemtutor.schemas import Catalog


# Default catalog shipped with the package
DATA_DIR = Path(__file__).parent.parent / "data"
DEFAULT_CATALOG_PATH = DATA_DIR / "catalog.yaml"


def load_catalog_data(path: Path | None = None) -> dict[str, Any]:
    """
    Load raw catalog data from a YAML file.

    Args:
        path: Catalog file (default: the bundled data/catalog.yaml)

    Returns:
        Dict with keys: subjects, units, lessons, quizzes, meta

    Raises:
        FileNotFoundError: If the catalog file doesn't exist
        yaml.YAMLError: If YAML parsing fails
    """
    file_path = Path(path) if path else DEFAULT_CATALOG_PATH

    if not file_path.exists():
        raise FileNotFoundError(f"Catalog not found: {file_path}")

    with open(file_path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def load_catalog(path: Path | None = None) -> Catalog:
    """Load and validate a catalog file into a Catalog model."""
    return Catalog.model_validate(load_catalog_data(path))


def get_available_catalogs(data_dir: Path | None = None) -> list[str]:
    """
    List catalog files in a directory.

    Returns:
        List of catalog names (without .yaml extension)
    """
    dir_path = data_dir or DATA_DIR
    if not dir_path.exists():
        return []
    return sorted(p.stem for p in dir_path.glob("*.yaml"))
