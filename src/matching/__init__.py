"""Fingerprint matching and metadata reconciliation for packwiz packs."""

from .coordinator import SideEffectCoordinator
from .digest import DigestEngine, FingerprintIndex
from .pipeline import MODES, PackMatcher, PhaseReport, RunReport
from .reconciler import MetadataReconciler, MetadataRecord, infer_side
from .resolver import MatchResult, resolve_curseforge, resolve_modrinth

__all__ = [
    "SideEffectCoordinator",
    "DigestEngine",
    "FingerprintIndex",
    "MODES",
    "PackMatcher",
    "PhaseReport",
    "RunReport",
    "MetadataReconciler",
    "MetadataRecord",
    "infer_side",
    "MatchResult",
    "resolve_curseforge",
    "resolve_modrinth",
]
