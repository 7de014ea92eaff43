"""Sphinx configuration for district-enclaves documentation"""

import os
import sys
from datetime import datetime

# Make the src/ package importable for autodoc
sys.path.insert(0, os.path.abspath('../src'))

# Project information
project = 'district-enclaves'
copyright = f'{datetime.now().year}, District Enclaves Team'
author = 'District Enclaves Team'
release = '0.1.0'

# Extensions
extensions = [
    'sphinx.ext.autodoc',
    'sphinx.ext.napoleon',
    'sphinx.ext.viewcode',
    'sphinx.ext.intersphinx',
]

master_doc = 'index'

# Google style docstrings (Args/Returns sections)
napoleon_google_docstring = True
napoleon_numpy_docstring = False
napoleon_include_init_with_doc = True

autodoc_default_options = {
    'members': True,
    'member-order': 'bysource',
    'undoc-members': True,
}
autodoc_mock_imports = ['matplotlib']

intersphinx_mapping = {
    'python': ('https://docs.python.org/3', None),
    'pandas': ('https://pandas.pydata.org/docs/', None),
    'geopandas': ('https://geopandas.org/en/stable/', None),
    'shapely': ('https://shapely.readthedocs.io/en/stable/', None),
}

html_theme = 'sphinx_rtd_theme'
html_theme_options = {
    'navigation_depth': 3,
    'collapse_navigation': False,
}

pygments_style = 'sphinx'
exclude_patterns = ['_build', 'Thumbs.db', '.DS_Store']
