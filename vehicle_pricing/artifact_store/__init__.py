"""Artifact store module for persisting and reloading pipeline outputs."""

from .artifact_store import ArtifactStore

__all__ = ["ArtifactStore"]
