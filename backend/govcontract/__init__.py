"""GovContract AI backend: opportunity discovery and application tooling for government contractors."""
