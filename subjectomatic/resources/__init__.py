"""Packaged default configuration files (``default_roles.yaml``, ``default_pipeline.yaml``)."""
