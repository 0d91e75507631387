"""HTTP service exposing geotree conversion and a document registry."""
