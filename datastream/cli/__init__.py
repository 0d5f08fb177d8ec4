"""Command-line front-end (``python -m datastream.cli``)."""
