# src/pq_guestbook/services/__init__.py
"""Admission services for the guestbook."""

from .ledger import MessageLedger
from .maintenance import SweepWorker
from .rate_limit import AdmissionLimiter
from .replay import ReplayGuard
from .signing import SignatureVerifier, Verification
from .submission import SubmissionPipeline, build_pipeline

__all__ = [
    "AdmissionLimiter",
    "MessageLedger",
    "ReplayGuard",
    "SignatureVerifier",
    "SubmissionPipeline",
    "SweepWorker",
    "Verification",
    "build_pipeline",
]
