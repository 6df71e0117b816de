# Configuration file for the Sphinx documentation builder.
#
# For the full list of built-in configuration values, see the documentation:
# https://www.sphinx-doc.org/en/master/usage/configuration.html

import os
import sys
sys.path.insert(0, os.path.abspath('..'))

import texref

project = 'texref'
copyright = '2026, texref developers'
author = 'texref developers'
release = texref.__version__

extensions = [
    'sphinx.ext.autodoc',  # For Python docstrings
    'sphinx.ext.napoleon', # To support Google/Numpy style docstrings
]

# Keep the documented signatures short, every public name lives at the package root.
add_module_names = False

templates_path = ['_templates']
exclude_patterns = ['_build', 'Thumbs.db', '.DS_Store']

html_theme = 'alabaster'
html_static_path = ['_static']
