"""Report rendering"""

from .report import Reporter, DistrictReport, compactness_bar, AREA_UNITS, REPORT_FORMATS
from .plots import render_thumbnail, render_choropleth

__all__ = [
    'Reporter',
    'DistrictReport',
    'compactness_bar',
    'AREA_UNITS',
    'REPORT_FORMATS',
    'render_thumbnail',
    'render_choropleth'
]
