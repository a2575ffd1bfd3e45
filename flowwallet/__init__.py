"""Keys, signing, encryption, system settings, SQLite migrations and an ops worker pool for a custodial Flow wallet."""

__version__ = "0.9.0"