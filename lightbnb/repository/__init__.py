"""Repository layer: DB access helpers (SQLite).

Keep functions thin and focused, so the query service avoids SQL strings.
"""
