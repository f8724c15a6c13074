"""
Feed Fixtures - Deterministic synthetic affiliate feed fixtures.

Rewrites affiliate product feed CSVs with reproducible data-quality defects
in exact proportions and writes an expectations manifest describing how a
conformant ingestion pipeline must classify every row.
"""

from .config import FixtureConfig, load_config
from .errors import ConfigError, FeedFileError, FixtureError, ManifestWriteError
from .generator import FixtureGenerator, discover_feed_files, generate_file, run_batch
from .quotas import Archetype, DefectQuota, clamp_quotas, classify_archetype, plan_quotas
from .rng import SeededStream, seed_from_name
from .row_types import FailReason, RowLabel, build_row_types, fail_reason_for
from .writer import ExpectationRecord, ExpectationsManifest

__version__ = "0.1.0"

__all__ = [
    # Configuration
    "FixtureConfig",
    "load_config",
    # Errors
    "FixtureError",
    "FeedFileError",
    "ManifestWriteError",
    "ConfigError",
    # Generation
    "FixtureGenerator",
    "generate_file",
    "run_batch",
    "discover_feed_files",
    # Planning
    "Archetype",
    "DefectQuota",
    "classify_archetype",
    "plan_quotas",
    "clamp_quotas",
    # Randomness
    "SeededStream",
    "seed_from_name",
    # Row labels
    "RowLabel",
    "FailReason",
    "build_row_types",
    "fail_reason_for",
    # Output
    "ExpectationRecord",
    "ExpectationsManifest",
]
