"""Command-line interface for dvcache."""
