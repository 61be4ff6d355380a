"""
Shared pytest fixtures and configuration for mathtree tests.

This module provides:
- Configuration fixtures (default, preview-friendly, on-disk YAML)
- Catalog fixtures
- Atom-stream fixtures written to temporary files
- Global pytest configuration
"""
from __future__ import annotations

import json

import pytest


# ==============================================================================
# Global pytest configuration
# ==============================================================================

def pytest_configure(config):
    """Global pytest configuration - runs once at test session start."""
    # Set matplotlib backend to non-interactive
    import matplotlib
    matplotlib.use('Agg')

    # Suppress warnings from dependencies
    import warnings
    warnings.filterwarnings('ignore', category=DeprecationWarning)
    warnings.filterwarnings('ignore', category=PendingDeprecationWarning)


@pytest.fixture(autouse=True)
def reset_matplotlib():
    """Reset matplotlib state between tests."""
    import matplotlib.pyplot as plt
    yield
    plt.close('all')


# ==============================================================================
# Configuration fixtures
# ==============================================================================

@pytest.fixture
def default_config():
    """Return default configuration."""
    from mathtree.config import Config
    return Config()


@pytest.fixture
def plain_format():
    """Return a FormatConfig without digit grouping, for exact string checks."""
    from mathtree.config import FormatConfig
    return FormatConfig(group_separator="")


@pytest.fixture
def small_preview():
    """Return a small, fast preview configuration."""
    from mathtree.config import PreviewConfig
    return PreviewConfig(font_size=20, dpi=72, padding=10, image_width=400)


@pytest.fixture
def temp_config(tmp_path):
    """Write a config file to a temporary location and return its path."""
    config_path = tmp_path / "config.yaml"
    config_path.write_text(
        "format:\n"
        "  group_separator: ','\n"
        "  precision: 8\n"
        "safety:\n"
        "  max_atoms: 500\n"
    )
    return config_path


# ==============================================================================
# Catalog fixtures
# ==============================================================================

@pytest.fixture
def catalog():
    """Return the built-in operator catalog."""
    from mathtree.catalog import DefaultCatalog
    return DefaultCatalog()


# ==============================================================================
# Atom-stream fixtures
# ==============================================================================

@pytest.fixture
def sum_atoms():
    """Return the atom payload for ``2+3`` as plain mappings."""
    return [
        {"type": "mord", "value": "2"},
        {"type": "mbin", "value": "+"},
        {"type": "mord", "value": "3"},
    ]


@pytest.fixture
def atoms_json(tmp_path, sum_atoms):
    """Write the ``2+3`` atom payload as JSON and return the path."""
    path = tmp_path / "atoms.json"
    path.write_text(json.dumps(sum_atoms))
    return path


@pytest.fixture
def atoms_yaml(tmp_path):
    """Write an atom payload for ``x^2`` as YAML and return the path."""
    path = tmp_path / "atoms.yaml"
    path.write_text(
        "atoms:\n"
        "  - type: mord\n"
        "    value: x\n"
        "    superscript:\n"
        "      - type: mord\n"
        "        value: '2'\n"
    )
    return path
