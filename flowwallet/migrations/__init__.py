"""Ordered, reversible SQLite schema migrations and the runner that applies them."""