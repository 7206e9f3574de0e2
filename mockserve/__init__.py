"""HTTP mock server with request matching, static YAML mocks and closest-match verification."""

__version__ = "0.1.0"