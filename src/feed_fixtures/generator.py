"""
FixtureGenerator - regenerates every affiliate feed fixture in a directory.

Per file, strictly in this order:
1. Read the existing header and row count (schema)
2. Seed a stream from the file name
3. Classify the archetype and plan clamped defect quotas
4. Lay down and shuffle the row labels
5. For each row: synthesize a product, assign its identity, serialize and
   corrupt it against the file's actual headers
6. Rewrite the file and record its expectations

After the last file the expectations manifest is written once. Files are
processed sequentially in sorted name order; nothing is shared between them.

Usage:
    generator = FixtureGenerator(load_config())
    manifest = generator.generate_all()
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from .aliases import AliasTable
from .config import FixtureConfig
from .errors import FeedFileError
from .products import feed_domain, make_base_product
from .quotas import Archetype, plan_quotas
from .rng import SeededStream, seed_from_name
from .row_types import RowLabel, build_row_types, fail_reason_for
from .schema import FeedSchema, read_feed_schema
from .serializer import IdentityLedger, IdentityTriple, build_row
from .writer import ExpectationRecord, ExpectationsManifest, write_feed_file

FEED_SUFFIX = ".csv"
DELTA_SUFFIX = ".delta.csv"


@dataclass
class GeneratedFeed:
    """
    Everything produced for one feed file.

    Attributes:
        schema: Header and size baseline read from disk
        archetype: Defect profile the file was generated with
        labels: Row label per data row, in file order
        identities: Identity triple per data row, in file order
        rows: Serialized cell values per data row
        record: Expectations for the file
    """

    schema: FeedSchema
    archetype: Archetype
    labels: list[RowLabel]
    identities: list[IdentityTriple]
    rows: list[list[str]]
    record: ExpectationRecord


def discover_feed_files(feed_dir: Path) -> list[Path]:
    """
    List the fixture CSVs to regenerate, sorted by name.

    Delta feeds written by ``feed-fixtures-delta`` are skipped.
    """
    if not feed_dir.is_dir():
        raise FeedFileError(str(feed_dir), "feed directory not found")
    return sorted(
        path for path in feed_dir.iterdir()
        if path.is_file() and path.name.endswith(FEED_SUFFIX) and not path.name.endswith(DELTA_SUFFIX)
    )


def generate_file(
    path: Path,
    config: FixtureConfig | None = None,
    alias_table: AliasTable | None = None,
) -> GeneratedFeed:
    """
    Regenerate a single feed file in place.

    Args:
        path: Existing feed CSV (its header is kept)
        config: Generator configuration (defaults if None)
        alias_table: Pre-built alias table (built from config if None)

    Returns:
        GeneratedFeed with the rows written and the file's expectations

    Raises:
        FeedFileError: If the file cannot be read or written
    """
    config = config or FixtureConfig()
    alias_table = alias_table or config.alias_table()

    schema = read_feed_schema(path, config.default_row_counts)
    total = schema.total_rows
    archetype, quota = plan_quotas(schema.file_name, total)

    stream = SeededStream(seed_from_name(schema.file_name))
    domain = feed_domain(schema.file_name)
    columns = alias_table.resolve(schema.headers)

    labels = build_row_types(quota, total, stream)
    ledger = IdentityLedger()
    record = ExpectationRecord(file=schema.file_name, total_rows=total, quota=quota)
    rows: list[list[str]] = []

    for row_index, label in enumerate(labels):
        product = make_base_product(stream, row_index + 1, domain)
        identity = ledger.assign(row_index, label, stream)
        if label is RowLabel.FAIL:
            record.rejected_breakdown[fail_reason_for(row_index)] += 1
        rows.append(build_row(columns, product, identity, label, row_index, domain))

    write_feed_file(path, schema.headers, rows)

    return GeneratedFeed(
        schema=schema,
        archetype=archetype,
        labels=labels,
        identities=ledger.emitted,
        rows=rows,
        record=record,
    )


class FixtureGenerator:
    """
    Orchestrates a full regeneration batch.

    Attributes:
        config: Generator configuration
        quiet: Suppress progress output
    """

    def __init__(self, config: FixtureConfig | None = None, quiet: bool = False) -> None:
        self.config = config or FixtureConfig()
        self.quiet = quiet
        self.alias_table = self.config.alias_table()

    def _log(self, message: str) -> None:
        if not self.quiet:
            print(message)

    def generate_all(self, generated_at: datetime | None = None) -> ExpectationsManifest:
        """
        Regenerate every feed file, then write the manifest once.

        Any error aborts the remaining batch. Files rewritten before the
        failure stay valid; the previous manifest is left untouched.

        Args:
            generated_at: Manifest timestamp (now, UTC, if None)

        Returns:
            The manifest that was written
        """
        files = discover_feed_files(self.config.feed_dir)
        self._log(f"Regenerating {len(files)} feed fixtures in {self.config.feed_dir}")
        start = time.time()

        manifest = ExpectationsManifest()
        if generated_at is not None:
            manifest.generated_at = generated_at
        for path in files:
            feed = generate_file(path, self.config, self.alias_table)
            manifest.expectations.append(feed.record)
            quota = feed.record.quota
            self._log(
                f"  {path.name:<40} {feed.archetype.value:<17} {feed.schema.total_rows:>7,} rows"
                f"  (fail {quota.fail}, quarantine {quota.quarantine}, review {quota.review},"
                f" url-hash {quota.url_hash}, dup {quota.duplicate})"
            )

        manifest_path = self.config.manifest_path
        manifest.write(manifest_path)

        elapsed = time.time() - start
        self._log(f"Updated {len(files)} files in {elapsed:.2f}s. Expectations written to {manifest_path}")
        return manifest


def run_batch(
    config: FixtureConfig | None = None,
    generated_at: datetime | None = None,
    quiet: bool = False,
) -> ExpectationsManifest:
    """Regenerate all fixtures and the manifest; see FixtureGenerator.generate_all."""
    return FixtureGenerator(config, quiet=quiet).generate_all(generated_at)
