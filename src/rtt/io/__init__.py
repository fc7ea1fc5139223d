"""Config loading, matrix storage and the JSONL audit chain."""
