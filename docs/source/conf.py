# Configuration file for the Sphinx documentation builder.

import os
import sys
from datetime import date

import sphinx_rtd_theme  # noqa: F401

sys.path.insert(0, os.path.abspath('../..'))

# -- Project information

project = 'corpusstats'
copyright = f'{date.today().year}, David Brown'
author = 'David Brown'

# -- General configuration ---------------------------------------------------

extensions = [
    'sphinx.ext.autodoc',
    'sphinx_rtd_theme'
]

templates_path = ['_templates']

exclude_patterns = ['**.ipynb_checkpoints']

# If true, '()' will be appended to :func: etc. cross-reference text.
add_function_parentheses = False

# If true, the current module name will be prepended to all description
# unit titles (such as .. function::).
add_module_names = True

# type hints
autodoc_typehints = 'description'
autodoc_typehints_format = 'short'

# spaCy is heavy to import on the docs builder
autodoc_mock_imports = ['spacy']

pygments_style = 'sphinx'

# -- Options for HTML output

html_theme = 'sphinx_rtd_theme'

# -- Options for EPUB output
epub_show_urls = 'footnote'
