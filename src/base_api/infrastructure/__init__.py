"""
Infrastructure layer: logging, metrics, tracing and version metadata.
"""
