"""Specification-file parsers, auto-registered on import."""

from sitewarden.engines.depspec.parsers import (
    pyproject_toml,  # noqa: F401
    requirements_txt,  # noqa: F401
)
