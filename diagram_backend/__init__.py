"""HTTP service exposing the diagram pipeline."""
