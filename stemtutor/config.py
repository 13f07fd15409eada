"""
Runtime configuration for STEM Tutor.

Settings come from environment variables, optionally loaded from a .env
file in the working directory:

    STEMTUTOR_DATA_DIR   directory holding progress.db (default: ~/.stemtutor)
    STEMTUTOR_CATALOG    catalog YAML file (default: bundled catalog)
    STEMTUTOR_LEARNER    learner identifier (default: "default")
    STEMTUTOR_LOG_LEVEL  logging level name (default: INFO)
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from stemtutor.classroom import (
    ContentGraph,
    GatingResolver,
    ProgressStore,
    ProgressionEngine,
    SQLiteBackend,
    DEFAULT_PROGRESS_DIR,
)
from stemtutor.utils import DEFAULT_CATALOG_PATH


@dataclass
class Settings:
    data_dir: Path = DEFAULT_PROGRESS_DIR
    catalog_path: Path = DEFAULT_CATALOG_PATH
    learner_id: str = "default"
    log_level: str = "INFO"

    @property
    def progress_db(self) -> Path:
        return self.data_dir / "progress.db"

    @classmethod
    def from_env(cls, env_file: Optional[Path] = None) -> "Settings":
        """Build settings from the environment after loading a .env file."""
        load_dotenv(env_file)
        return cls(
            data_dir=Path(os.getenv("STEMTUTOR_DATA_DIR", str(DEFAULT_PROGRESS_DIR))).expanduser(),
            catalog_path=Path(os.getenv("STEMTUTOR_CATALOG", str(DEFAULT_CATALOG_PATH))).expanduser(),
            learner_id=os.getenv("STEMTUTOR_LEARNER", "default"),
            log_level=os.getenv("STEMTUTOR_LOG_LEVEL", "INFO").upper(),
        )

    def configure_logging(self):
        logging.basicConfig(
            level=getattr(logging, self.log_level, logging.INFO),
            format="%(asctime)s - %(levelname)s - %(message)s"
        )


@dataclass
class Classroom:
    """Wired-up core components for one learner."""
    graph: ContentGraph
    store: ProgressStore
    engine: ProgressionEngine
    resolver: GatingResolver


def open_classroom(settings: Optional[Settings] = None) -> Classroom:
    """Load the catalog and open the learner's progress store."""
    settings = settings or Settings.from_env()
    graph = ContentGraph.from_file(settings.catalog_path)
    store = ProgressStore(SQLiteBackend(settings.progress_db, learner_id=settings.learner_id))
    return Classroom(
        graph=graph,
        store=store,
        engine=ProgressionEngine(store, graph),
        resolver=GatingResolver(graph, store),
    )
