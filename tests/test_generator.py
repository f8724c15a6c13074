"""
End-to-end tests for fixture regeneration.

These run the whole pipeline against temporary feed directories and check
the properties the ingestion test suite relies on: exact row counts,
determinism, duplicate identities and manifest/quota agreement.
"""

import csv
import json
from collections import Counter
from datetime import datetime, timezone

import pytest

from feed_fixtures.aliases import AliasTable, SemanticField
from feed_fixtures.config import FixtureConfig
from feed_fixtures.errors import FeedFileError
from feed_fixtures.generator import FixtureGenerator, discover_feed_files, generate_file, run_batch
from feed_fixtures.quotas import Archetype, DefectQuota, plan_quotas
from feed_fixtures.row_types import FailReason, RowLabel, fail_reason_for
from feed_fixtures.serializer import MALFORMED_URL
from feed_fixtures.writer import format_feed, write_feed_file

from conftest import CJ_HEADERS, IMPACT_HEADERS

STAMP = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


def read_rows(path) -> tuple[list[str], list[list[str]]]:
    with open(path, encoding="utf-8", newline="") as f:
        parsed = list(csv.reader(f))
    return parsed[0], parsed[1:]


def column(headers, field):
    table = AliasTable()
    return [i for i, h in enumerate(headers) if table.lookup(h) is field]


class TestGenerateFile:
    """Single-file regeneration."""

    def test_row_count_matches_plan(self, make_feed, config):
        path = make_feed("test_feed_ammo_depot.csv", 250)
        feed = generate_file(path, config)
        headers, rows = read_rows(path)
        assert headers == IMPACT_HEADERS
        assert len(rows) == 250
        assert len(feed.rows) == 250
        assert feed.archetype is Archetype.DEFAULT

    def test_label_counts_match_quota(self, make_feed, config):
        path = make_feed("test_feed_quarantine_heavy.csv", 400)
        feed = generate_file(path, config)
        _, quota = plan_quotas(path.name, 400)
        counts = Counter(feed.labels)
        assert counts[RowLabel.FAIL] == quota.fail
        assert counts[RowLabel.QUARANTINE] == quota.quarantine
        assert counts[RowLabel.REVIEW] == quota.review
        assert counts[RowLabel.URL_HASH] == quota.url_hash
        assert counts[RowLabel.DUPLICATE] == quota.duplicate
        assert counts[RowLabel.NORMAL] == quota.normal_rows(400)

    def test_tiny_edge_case_scenario(self, make_feed, config):
        path = make_feed("test_feed_edge_cases.csv", 20)
        feed = generate_file(path, config)
        counts = Counter(feed.labels)
        assert feed.record.quota == DefectQuota(fail=2, quarantine=2, review=1, url_hash=1, duplicate=1)
        assert counts[RowLabel.NORMAL] == 13
        assert len(read_rows(path)[1]) == 20

    def test_zero_rows_header_only(self, make_feed, config):
        path = make_feed("test_feed_empty.csv", 0)
        feed = generate_file(path, config)
        assert path.read_text(encoding="utf-8") == ",".join(f'"{h}"' for h in IMPACT_HEADERS)
        record = feed.record.to_dict()
        assert record["totalRows"] == 0
        assert record["parsedRows"] == 0
        assert set(record["rejectedBreakdown"].values()) == {0}
        for key in ("rejectedRows", "quarantinedRows", "needsResolverRows",
                    "urlHashFallbackRows", "duplicateIdentityRows"):
            assert record[key] == 0

    def test_default_row_count_for_header_only_file(self, make_feed, feed_dir):
        path = make_feed("impact_large_messy.csv", 0)
        config = FixtureConfig(feed_dir=feed_dir, default_row_counts={"impact_large_messy.csv": 60})
        feed = generate_file(path, config)
        assert feed.schema.total_rows == 60
        assert len(read_rows(path)[1]) == 60

    def test_rerun_is_byte_identical(self, make_feed, config):
        path = make_feed("test_feed_ammo_depot.csv", 300)
        generate_file(path, config)
        first = path.read_bytes()
        generate_file(path, config)
        assert path.read_bytes() == first

    def test_same_start_same_output(self, feed_dir, make_feed, config, tmp_path):
        """Placeholder content is ignored: only header and row count matter."""
        path = make_feed("test_feed_ammo_depot.csv", 120)
        generate_file(path, config)
        expected = path.read_bytes()

        other_dir = tmp_path / "other"
        other_dir.mkdir()
        other = other_dir / path.name
        other.write_text(
            "\n".join([",".join(f'"{h}"' for h in IMPACT_HEADERS)] + ['"x"'] * 120),
            encoding="utf-8",
        )
        generate_file(other, FixtureConfig(feed_dir=other_dir))
        assert other.read_bytes() == expected

    def test_duplicates_copy_earlier_identity(self, make_feed, config):
        path = make_feed("test_feed_edge_cases.csv", 500)
        feed = generate_file(path, config)
        assert RowLabel.DUPLICATE in feed.labels

        for i, label in enumerate(feed.labels):
            if label is RowLabel.DUPLICATE:
                assert feed.identities[i] in feed.identities[:i]

        independent = [t for t, label in zip(feed.identities, feed.labels) if label is not RowLabel.DUPLICATE]
        assert len(set(independent)) == len(independent)

    def test_duplicates_visible_in_written_rows(self, make_feed, config):
        path = make_feed("test_feed_edge_cases.csv", 300)
        feed = generate_file(path, config)
        headers, rows = read_rows(path)
        sku_col = column(headers, SemanticField.MERCHANT_SKU)[0]
        for i, label in enumerate(feed.labels):
            if label is RowLabel.DUPLICATE:
                # The source row may itself have had its SKU blanked
                assert rows[i][sku_col] in {f"SKU-{j + 1:06d}" for j in range(i)}

    def test_fail_rows_violate_exactly_one_check(self, make_feed, config):
        path = make_feed("test_feed_edge_cases.csv", 400, CJ_HEADERS)
        feed = generate_file(path, config)
        headers, rows = read_rows(path)
        name_col = column(headers, SemanticField.NAME)[0]
        url_col = column(headers, SemanticField.URL)[0]
        price_col = column(headers, SemanticField.CURRENT_PRICE)[0]

        fail_rows = [i for i, label in enumerate(feed.labels) if label is RowLabel.FAIL]
        assert fail_rows
        for i in fail_rows:
            row = rows[i]
            violations = {
                FailReason.MISSING_NAME: row[name_col] == "",
                FailReason.MISSING_URL: row[url_col] == "",
                FailReason.INVALID_URL: row[url_col] == MALFORMED_URL,
                FailReason.INVALID_PRICE: float(row[price_col]) <= 0,
            }
            assert [reason for reason, hit in violations.items() if hit] == [fail_reason_for(i)]

    def test_normal_rows_fully_populated(self, make_feed, config):
        path = make_feed("test_feed_ammo_depot.csv", 200)
        feed = generate_file(path, config)
        headers, rows = read_rows(path)
        known = [i for i, h in enumerate(headers) if AliasTable().lookup(h) is not None]
        for label, row in zip(feed.labels, rows):
            if label is RowLabel.NORMAL:
                assert all(row[i] for i in known)
                assert row[headers.index("Notes")] == ""

    def test_breakdown_matches_positions(self, make_feed, config):
        path = make_feed("test_feed_edge_cases.csv", 400)
        feed = generate_file(path, config)
        expected = Counter(
            fail_reason_for(i) for i, label in enumerate(feed.labels) if label is RowLabel.FAIL
        )
        assert feed.record.rejected_breakdown == {reason: expected[reason] for reason in FailReason}
        assert sum(feed.record.rejected_breakdown.values()) == feed.record.quota.fail

    def test_missing_file_raises(self, feed_dir, config):
        with pytest.raises(FeedFileError, match="gone.csv"):
            generate_file(feed_dir / "gone.csv", config)

    def test_bom_header_survives_regeneration(self, feed_dir, config):
        """A leading BOM is dropped; headers and identity columns stay intact."""
        path = feed_dir / "test_feed_ammo_depot.csv"
        content = format_feed(IMPACT_HEADERS, [["old"] * len(IMPACT_HEADERS)] * 20)
        path.write_bytes(b"\xef\xbb\xbf" + content.encode("utf-8"))

        feed = generate_file(path, config)
        assert feed.schema.headers == tuple(IMPACT_HEADERS)
        generate_file(path, config)

        headers, rows = read_rows(path)
        assert headers == IMPACT_HEADERS
        assert feed.record.quota.total == 0
        id_col = IMPACT_HEADERS.index("CatalogItemId")
        assert all(row[id_col] for row in rows)


class TestRunBatch:
    """Whole-directory regeneration and the manifest."""

    def test_manifest_matches_quotas(self, make_feed, config):
        sizes = {
            "test_feed_ammo_depot.csv": 150,
            "test_feed_edge_cases.csv": 20,
            "test_feed_quarantine_heavy.csv": 80,
            "test_feed_empty.csv": 0,
        }
        for name, rows in sizes.items():
            make_feed(name, rows)

        manifest = run_batch(config, generated_at=STAMP, quiet=True)
        data = json.loads(config.manifest_path.read_text(encoding="utf-8"))

        assert data["generatedAt"] == STAMP.isoformat()
        assert [r["file"] for r in data["expectations"]] == sorted(sizes)
        for record in data["expectations"]:
            total = sizes[record["file"]]
            _, quota = plan_quotas(record["file"], total)
            assert record["totalRows"] == total
            assert record["rejectedRows"] == quota.fail
            assert record["parsedRows"] == total - quota.fail
            assert record["quarantinedRows"] == quota.quarantine
            assert record["needsResolverRows"] == quota.review
            assert record["urlHashFallbackRows"] == quota.url_hash
            assert record["duplicateIdentityRows"] == quota.duplicate
            assert sum(record["rejectedBreakdown"].values()) == quota.fail
        assert manifest.to_dict() == data

    def test_manifest_ignores_written_content(self, make_feed, config, monkeypatch):
        """Expectations come from the plan even if serialization changes."""
        make_feed("test_feed_ammo_depot.csv", 300)
        monkeypatch.setattr(
            "feed_fixtures.generator.build_row",
            lambda columns, *args: [""] * len(columns),
        )
        manifest = run_batch(config, generated_at=STAMP, quiet=True)
        _, quota = plan_quotas("test_feed_ammo_depot.csv", 300)
        assert manifest.expectations[0].quota == quota

    def test_rerun_identical_files_and_manifest(self, make_feed, config):
        make_feed("test_feed_ammo_depot.csv", 90)
        make_feed("test_feed_edge_cases.csv", 45, CJ_HEADERS)

        run_batch(config, generated_at=STAMP, quiet=True)
        first = {p.name: p.read_bytes() for p in config.feed_dir.iterdir()}
        run_batch(config, generated_at=STAMP, quiet=True)
        second = {p.name: p.read_bytes() for p in config.feed_dir.iterdir()}
        assert first == second

    def test_missing_directory(self, tmp_path):
        with pytest.raises(FeedFileError, match="feed directory not found"):
            run_batch(FixtureConfig(feed_dir=tmp_path / "nope"), quiet=True)

    def test_write_failure_keeps_old_manifest(self, make_feed, config, monkeypatch):
        make_feed("test_feed_a.csv", 10)
        make_feed("test_feed_b.csv", 10)
        config.manifest_path.write_text("previous", encoding="utf-8")

        def fail_on_b(path, headers, rows):
            if path.name == "test_feed_b.csv":
                raise FeedFileError(path.name, "cannot write file (disk full)")
            write_feed_file(path, headers, rows)

        monkeypatch.setattr("feed_fixtures.generator.write_feed_file", fail_on_b)
        with pytest.raises(FeedFileError, match="test_feed_b.csv"):
            run_batch(config, quiet=True)
        assert config.manifest_path.read_text(encoding="utf-8") == "previous"

    def test_progress_output(self, make_feed, config, capsys):
        make_feed("test_feed_ammo_depot.csv", 10)
        FixtureGenerator(config).generate_all(STAMP)
        out = capsys.readouterr().out
        assert "test_feed_ammo_depot.csv" in out
        assert "Expectations written to" in out

    def test_quiet(self, make_feed, config, capsys):
        make_feed("test_feed_ammo_depot.csv", 10)
        FixtureGenerator(config, quiet=True).generate_all(STAMP)
        assert capsys.readouterr().out == ""


class TestDiscoverFeedFiles:
    """Target discovery."""

    def test_sorted_csv_only(self, feed_dir, make_feed):
        make_feed("b.csv", 1)
        make_feed("a.csv", 1)
        make_feed("a.delta.csv", 1)
        (feed_dir / "expectations.json").write_text("{}", encoding="utf-8")
        (feed_dir / "notes.txt").write_text("", encoding="utf-8")
        assert [p.name for p in discover_feed_files(feed_dir)] == ["a.csv", "b.csv"]
