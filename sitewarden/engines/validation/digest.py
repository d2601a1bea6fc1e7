"""Stable fingerprint of a validation report."""

from __future__ import annotations

import hashlib
import json

from sitewarden.engines.validation.models import ValidationReport


def digest_payload(report: ValidationReport) -> dict:
    """Everything the digest covers: mode plus sorted presence/explain entries.

    Paths, URLs and record order never enter it.
    """
    entries = sorted(
        [r.key, r.explain.value, r.package is not None, r.dep_spec is not None]
        for r in report.records
    )
    return {"mode": report.config.mode.value, "records": entries}


def digest(report: ValidationReport) -> str:
    """Hex SHA-256 over the compact JSON of :func:`digest_payload`."""
    encoded = json.dumps(digest_payload(report), separators=(",", ":"), sort_keys=True)
    return hashlib.sha256(encoded.encode("utf-8")).hexdigest()
