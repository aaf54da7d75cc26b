# Sphinx configuration for the phenoyield documentation.
# https://www.sphinx-doc.org/en/master/usage/configuration.html

import os
import sys

# Build from a source checkout without installing the package.
sys.path.insert(0, os.path.abspath("../.."))

import phenoyield  # noqa: E402

# -- Project information -----------------------------------------------------

project = "phenoyield"
copyright = "2025, Jeronimo Fotinos"
author = "Jeronimo Fotinos"
release = phenoyield.__version__

# -- General configuration ---------------------------------------------------

extensions = [
    "sphinx.ext.autodoc",
    "sphinx.ext.napoleon",  # NumPy docstrings
    "sphinx.ext.autosummary",  # api.rst module tables
    "sphinx.ext.doctest",  # docstring examples
    "sphinx.ext.intersphinx",
    "sphinx.ext.viewcode",
    "sphinx_autodoc_typehints",
    "sphinx_copybutton",
]

autosummary_generate = True

autodoc_default_options = {
    "members": True,
    "member-order": "bysource",
    "undoc-members": False,
    "show-inheritance": True,
    # the package __init__ re-exports the core API
    "imported-members": False,
}

# Attributes sections of the containers are the source of truth
napoleon_numpy_docstring = True
napoleon_google_docstring = False
napoleon_attr_annotations = False
napoleon_use_ivar = True

autodoc_typehints = "description"

intersphinx_mapping = {
    "python": ("https://docs.python.org/3", None),
    "numpy": ("https://numpy.org/doc/stable/", None),
    "pandas": ("https://pandas.pydata.org/docs/", None),
}

exclude_patterns = []

# -- HTML output -------------------------------------------------------------

html_theme = "pydata_sphinx_theme"
html_theme_options = {
    "show_nav_level": 2,
    "navigation_depth": 4,
    "secondary_sidebar_items": ["page-toc"],
    "show_prev_next": True,
}
html_static_path = ["_static"]
