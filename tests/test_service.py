"""Tests for the SparseSequenceService facade.

Test suite covering:
- Validation, profiling, splicing and matching through the facade
- Running statistics
- SHA-256 provenance entries
- Prometheus metrics
- Health check and singleton access
"""

import re

import pytest

import gapseq
from gapseq.sparse_sequence import NAME, __version__, describe, get_version
from gapseq.sparse_sequence.config import SparseSequenceConfig, set_config
from gapseq.sparse_sequence.metrics import (
    PROMETHEUS_AVAILABLE,
    record_match,
    record_processing_duration,
    record_splice,
    record_splice_error,
    record_validation,
)
from gapseq.sparse_sequence.models import MatchOutcome, SequenceProfile, SpliceOutcome
from gapseq.sparse_sequence.setup import (
    SparseSequenceService,
    _sha256_of,
    get_service,
    reset_service,
)

_SHA256 = re.compile(r"^[0-9a-f]{64}$")


@pytest.fixture
def service():
    """A service with default configuration."""
    return SparseSequenceService()


def _sample(name, labels):
    from prometheus_client import REGISTRY

    return REGISTRY.get_sample_value(name, labels) or 0.0


# ==============================================================================
# Validation
# ==============================================================================

class TestValidation:
    """Tests for validate(), length() and profile()."""

    def test_validate(self, service, abc_row):
        """validate mirrors is_valid_sequence."""
        assert service.validate(abc_row)
        assert not service.validate({1: "a", 30: "b"})
        assert not service.validate("abc")

    def test_length(self, service, sparse_row):
        """length mirrors sequence_length."""
        assert service.length(sparse_row) == 5
        assert service.length({0: "x"}) is None

    def test_explicit_limits(self, service):
        """Per-call limits override the service configuration."""
        assert service.validate({1: "a", 30: "b"}, max_nil_gap=28, max_nil_ratio=1.0)

    def test_limits_from_service_config(self):
        """Defaults come from the config the service was built with."""
        svc = SparseSequenceService(SparseSequenceConfig(max_nil_gap=1))

        assert not svc.validate({1: "a", 4: "d"})

    def test_statistics(self, service):
        """Validations are counted and valid lengths averaged."""
        service.validate({1: "a", 2: "b"})
        service.validate({1: "a", 2: "b", 3: "c", 4: "d"})
        service.validate([])

        stats = service.get_statistics()
        assert stats.total_validations == 3
        assert stats.valid_sequences == 2
        assert stats.invalid_sequences == 1
        assert stats.avg_sequence_length == pytest.approx(3.0)

    def test_statistics_snapshot(self, service):
        """get_statistics returns a copy."""
        snapshot = service.get_statistics()
        service.validate({})

        assert snapshot.total_validations == 0
        assert service.get_statistics().total_validations == 1

    def test_profile(self, service, sparse_row):
        """profile returns a SequenceProfile."""
        profile = service.profile(sparse_row)

        assert isinstance(profile, SequenceProfile)
        assert profile.length == 5
        assert profile.max_nil_gap == 10

    def test_profile_unusual_values(self, service):
        """Profiling never fails on odd input."""
        profile = service.profile({1: object(), 2: [1, 2]})

        assert profile.is_valid
        assert service.provenance.entry_count == 1


# ==============================================================================
# Splicing
# ==============================================================================

class TestSplice:
    """Tests for splice()."""

    def test_successful_splice(self, service, abc_row):
        """Success mutates the row and reports both lengths."""
        outcome = service.splice(abc_row, 2, 2)

        assert isinstance(outcome, SpliceOutcome)
        assert outcome.success
        assert outcome.index == 2
        assert outcome.count == 2
        assert outcome.length_before == 3
        assert outcome.length_after == 5
        assert outcome.error_code is None
        assert _SHA256.match(outcome.provenance_hash)
        assert abc_row == {1: "a", 4: "b", 5: "c"}

    def test_failed_splice(self, service, sparse_row):
        """Failure is reported, not raised, and leaves the row unchanged."""
        outcome = service.splice(sparse_row, 2, -3)

        assert not outcome.success
        assert outcome.length_after is None
        assert outcome.error_code == "GS_SEQ_INSUFFICIENT_HOLES_ERROR"
        assert outcome.error_message == "not enough nils to remove"
        assert outcome.error_context["populated_index"] == 4
        assert sparse_row == {1: "a", 4: "d", 5: "e"}

    def test_bad_arguments(self, service, abc_row):
        """Non-integer arguments are reported by repr."""
        outcome = service.splice(abc_row, "x", 1)

        assert not outcome.success
        assert outcome.index == "'x'"
        assert outcome.error_code == "GS_SEQ_ARGUMENT_ERROR"

    def test_not_a_mapping(self, service):
        """Non-mappings are reported with no length."""
        outcome = service.splice([1, 2], 1, 1)

        assert not outcome.success
        assert outcome.length_before is None
        assert outcome.error_code == "GS_SEQ_SHAPE_ERROR"

    def test_splice_statistics(self, service):
        """Splices and failures are counted by exception type."""
        service.splice({1: "a"}, 1, 1)
        service.splice({1: "a"}, 1, -1)
        service.splice({1: "a"}, 0, 1)
        service.splice({1: "a"}, 1, -1)

        stats = service.get_statistics()
        assert stats.total_splices == 4
        assert stats.failed_splices == 3
        assert stats.errors_by_type == {
            "InsufficientHolesError": 2,
            "ArgumentError": 1,
        }

    def test_splice_limits_from_service_config(self, abc_row):
        """Splice defaults come from the service configuration."""
        svc = SparseSequenceService(SparseSequenceConfig(splice_max_nil_gap=1))
        outcome = svc.splice(abc_row, 2, 2)

        assert outcome.error_code == "GS_SEQ_GAP_VIOLATION_ERROR"
        assert outcome.error_message == "insert count exceeds maximum allowed gap"


# ==============================================================================
# Matching
# ==============================================================================

class TestMatch:
    """Tests for is_subsequence()."""

    def test_match(self, service, abc_row):
        """Outcome carries the result and both lengths."""
        outcome = service.is_subsequence(abc_row, {1: "c", 2: "a"})

        assert isinstance(outcome, MatchOutcome)
        assert outcome.matched
        assert not outcome.require_order
        assert outcome.haystack_length == 3
        assert outcome.needle_length == 2
        assert _SHA256.match(outcome.provenance_hash)

    def test_ordered_match(self, service, abc_row):
        """require_order is passed through."""
        outcome = service.is_subsequence(abc_row, {1: "c", 2: "a"}, require_order=True)

        assert not outcome.matched
        assert outcome.require_order

    def test_malformed_input(self, service):
        """Malformed input has no length."""
        outcome = service.is_subsequence("abc", {})

        assert not outcome.matched
        assert outcome.haystack_length is None
        assert outcome.needle_length == 0

    def test_match_statistics(self, service, abc_row):
        """Matches are counted."""
        service.is_subsequence(abc_row, {1: "a"})
        service.is_subsequence(abc_row, {1: "z"})

        stats = service.get_statistics()
        assert stats.total_matches == 2
        assert stats.positive_matches == 1


# ==============================================================================
# Provenance
# ==============================================================================

class TestProvenance:
    """Tests for provenance recording."""

    def test_every_operation_is_recorded(self, service, abc_row):
        """Each facade call adds one provenance entry."""
        service.validate(abc_row)
        service.profile(abc_row)
        service.splice(abc_row, 2, 1)
        service.is_subsequence(abc_row, {1: "a"})

        tracker = service.get_provenance()
        entries = tracker.entries
        assert tracker.entry_count == 4
        assert [e["action"] for e in entries] == ["validate", "profile", "insert", "match"]
        assert [e["entity_type"] for e in entries] == ["sequence", "sequence", "splice", "match"]
        for entry in entries:
            assert _SHA256.match(entry["entry_hash"])
            assert _SHA256.match(entry["data_hash"])

    def test_mixed_key_types_hash(self, service):
        """Mappings with mixed key types can be fingerprinted."""
        assert not service.validate({1: "a", "x": "b", (2,): "c"})
        assert service.provenance.entry_count == 1

    def test_same_input_same_data_hash(self, service):
        """Data hashes are deterministic."""
        service.validate({2: "b", 1: "a"})
        service.validate({1: "a", 2: "b"})

        first, second = service.provenance.entries
        assert first["data_hash"] == second["data_hash"]

    def test_trail_is_capped(self):
        """Only the newest entries are retained; entry_count keeps the total."""
        capped = SparseSequenceService(SparseSequenceConfig(provenance_max_entries=3))
        uncapped = SparseSequenceService(SparseSequenceConfig())
        rows = [{pos: "x"} for pos in range(1, 6)]

        for row in rows:
            capped.validate(row)
            uncapped.validate(row)

        kept = capped.provenance.entries
        assert len(kept) == 3
        assert capped.provenance.entry_count == 5
        assert capped.provenance.max_entries == 3
        assert [e["data_hash"] for e in kept] == [
            e["data_hash"] for e in uncapped.provenance.entries[-3:]
        ]
        health = capped.health_check()
        assert health["provenance_entries"] == 5
        assert health["provenance_retained"] == 3

    def test_cap_follows_global_config(self):
        """The global config sets the trail size."""
        set_config(SparseSequenceConfig(provenance_max_entries=2))

        svc = SparseSequenceService()
        for _ in range(4):
            svc.length({1: "a"})

        assert svc.provenance.max_entries == 2
        assert len(svc.provenance.entries) == 2
        assert svc.provenance.entry_count == 4

    def test_model_and_plain_payload_hash_alike(self):
        """A model hashes like its JSON dump; odd values hash by repr."""
        outcome = MatchOutcome(matched=True, require_order=False)

        assert _sha256_of(outcome) == _sha256_of(outcome.model_dump(mode="json"))
        assert _SHA256.match(_sha256_of({"token": object(), "when": {1, 2}}))


# ==============================================================================
# Metrics
# ==============================================================================

@pytest.mark.skipif(not PROMETHEUS_AVAILABLE, reason="prometheus_client not installed")
class TestMetrics:
    """Tests for Prometheus metrics recorded by the facade."""

    def test_validation_metrics(self, service):
        """Validations increment the labelled counter."""
        before = _sample("gs_seq_validations_total", {"result": "valid"})
        service.validate({1: "a"})

        assert _sample("gs_seq_validations_total", {"result": "valid"}) == before + 1

    def test_splice_metrics(self, service):
        """Splices increment outcome and error counters."""
        ok_before = _sample("gs_seq_splices_total", {"operation": "insert", "outcome": "success"})
        err_before = _sample(
            "gs_seq_splice_errors_total", {"error_type": "GS_SEQ_INSUFFICIENT_HOLES_ERROR"},
        )

        service.splice({1: "a"}, 1, 1)
        service.splice({1: "a"}, 1, -1)

        assert _sample(
            "gs_seq_splices_total", {"operation": "insert", "outcome": "success"},
        ) == ok_before + 1
        assert _sample(
            "gs_seq_splice_errors_total", {"error_type": "GS_SEQ_INSUFFICIENT_HOLES_ERROR"},
        ) == err_before + 1

    def test_match_metrics(self, service):
        """Matches increment the labelled counter."""
        before = _sample("gs_seq_matches_total", {"result": "no_match"})
        service.is_subsequence({1: "a"}, {1: "b"})

        assert _sample("gs_seq_matches_total", {"result": "no_match"}) == before + 1

    def test_metrics_can_be_disabled(self):
        """enable_metrics=False skips metric recording."""
        svc = SparseSequenceService(SparseSequenceConfig(enable_metrics=False))
        before = _sample("gs_seq_validations_total", {"result": "invalid"})

        svc.validate("abc")

        assert _sample("gs_seq_validations_total", {"result": "invalid"}) == before
        assert svc.get_statistics().invalid_sequences == 1

    def test_helpers_accept_all_labels(self):
        """Helper functions run for every documented label value."""
        record_validation(True, 3)
        record_validation(False)
        for operation in ("insert", "remove", "noop", "invalid"):
            record_splice(operation, "success")
            record_splice(operation, "failure")
        record_splice_error("GS_SEQ_SHAPE_ERROR")
        record_match(True)
        record_processing_duration("validate", 0.001)


# ==============================================================================
# Health and singleton
# ==============================================================================

class TestHealthAndSingleton:
    """Tests for health check and singleton access."""

    def test_health_check(self):
        """Health reports identity and counters."""
        svc = SparseSequenceService()
        assert svc.health_check()["status"] == "healthy"

        svc.validate({1: "a"})
        health = svc.health_check()

        assert health["status"] == "healthy"
        assert health["service"] == "sparse-sequence"
        assert health["version"] == "0.8.0"
        assert health["validations"] == 1
        assert health["provenance_entries"] == 1
        assert health["provenance_retained"] == 1
        assert "started" not in health
        assert health["prometheus_available"] == PROMETHEUS_AVAILABLE

    def test_uses_global_config(self):
        """Without an explicit config the global one is used."""
        cfg = SparseSequenceConfig(max_nil_gap=3)
        set_config(cfg)

        assert SparseSequenceService().config is cfg

    def test_singleton(self):
        """get_service returns one instance until reset."""
        first = get_service()
        assert get_service() is first

        reset_service()

        assert get_service() is not first


class TestPackage:
    """Tests for package identity helpers."""

    def test_version(self):
        """Version helpers agree."""
        assert NAME == "sparse_sequence"
        assert __version__ == "0.8.0"
        assert get_version() == "0.8.0"
        assert gapseq.__version__ == "0.8.0"

    def test_describe(self):
        """describe names the package and version."""
        assert describe() == "sparse_sequence version 0.8.0"
        assert gapseq.describe() == describe()
