"""Internal parsing, extraction and discovery machinery."""
