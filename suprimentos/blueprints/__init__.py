"""Blueprint packages, one per screen family. Each exposes its Blueprint from routes.py."""
