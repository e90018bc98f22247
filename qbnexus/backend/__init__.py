"""Backend package - JavaScript runtime and emission helpers."""
