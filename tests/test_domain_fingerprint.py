"""Regression tests for deterministic cache-key derivation."""

from __future__ import annotations

import json

from vyral_workers.domain import JobOutcome, domain_fingerprint
from vyral_workers.domain.fingerprint import domain_string_hash_base36


def test_domain_string_hash_matches_known_values() -> None:
    """Render the 31-multiplier hash of short strings in base 36.

    Returns:
        None: Assertions validate hash rendering.

    Raises:
        AssertionError: Raised when the hash differs from the reference values.
    """

    assert domain_string_hash_base36("") == "0"
    assert domain_string_hash_base36("a") == "2p"
    assert domain_string_hash_base36("ab") == "2e9"


def test_domain_fingerprint_ignores_key_order_at_every_level() -> None:
    """Produce equal fingerprints for equal mappings built in different orders.

    Returns:
        None: Assertions validate fingerprint determinism.

    Raises:
        AssertionError: Raised when key order changes the fingerprint.
    """

    first = domain_fingerprint(
        "strategy",
        "generate",
        {"transcript": "hello", "platform_preferences": {"primary": "tiktok", "secondary": "youtube"}},
    )
    second = domain_fingerprint(
        "strategy",
        "generate",
        {"platform_preferences": {"secondary": "youtube", "primary": "tiktok"}, "transcript": "hello"},
    )

    assert first == second


def test_domain_fingerprint_changes_when_a_value_changes() -> None:
    """Produce different fingerprints for different parameter values.

    Returns:
        None: Assertions validate fingerprint sensitivity.

    Raises:
        AssertionError: Raised when distinct values collide.
    """

    assert domain_fingerprint("strategy", "generate", {"a": 1}) != domain_fingerprint("strategy", "generate", {"a": 2})
    assert domain_fingerprint("vision", "generate", {}) != domain_fingerprint("script", "generate", {})


def test_domain_outcome_envelope_renders_result_or_error() -> None:
    """Render completed and failed outcomes in the caller-visible shape.

    Returns:
        None: Assertions validate envelope rendering.

    Raises:
        AssertionError: Raised when envelope keys are wrong.
    """

    completed = JobOutcome(status="completed", job_id="job-1", result={"ok": True})
    failed = JobOutcome(status="failed", job_id=None, error="boom", error_code="JOB_PROVIDER_FAILURE")

    assert completed.outcome_to_envelope() == {"job_id": "job-1", "status": "completed", "result": {"ok": True}}
    assert failed.outcome_to_envelope() == {"job_id": None, "status": "failed", "error": "boom"}


def test_domain_fingerprint_accepts_lone_surrogates() -> None:
    """Hash strings holding unpaired surrogates decoded from valid JSON.

    Returns:
        None: Assertions validate surrogate handling.

    Raises:
        AssertionError: Raised when a lone surrogate breaks hashing.
    """

    params = json.loads('{"transcript":"\\ud800"}')

    fingerprint = domain_fingerprint("strategy", "generate", params)

    assert fingerprint == domain_fingerprint("strategy", "generate", params)
    assert domain_string_hash_base36("\ud800") == "16o0"
