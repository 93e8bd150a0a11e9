"""Serverless event pipeline: conditional resource graph plus its CDK rendering."""

__version__ = "0.1.0"
