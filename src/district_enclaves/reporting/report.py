"""Join metrics onto districts, rank them and render the summary table"""

import base64
import html
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Union

import numpy as np
import pandas as pd
import geopandas as gpd

from ..algorithms.compactness import ensure_projected
from ..algorithms.metrics import MetricsResult
from ..models.geography import JOIN_KEYS
from .plots import render_thumbnail, render_choropleth


logger = logging.getLogger(__name__)

REPORT_KEYS = ['district_id'] + JOIN_KEYS

# Square CRS units (metres) per display unit
AREA_UNITS = {
    'sq_mi': (2_589_988.110336, 'sq mi'),
    'sq_km': (1_000_000.0, 'sq km'),
}

REPORT_FORMATS = ('html', 'markdown', 'text')
FILE_SUFFIXES = {'html': 'html', 'markdown': 'md', 'text': 'txt'}


@dataclass
class DistrictReport:
    """Rendered report plus the tables behind it"""
    table: pd.DataFrame
    full_table: pd.DataFrame
    content: str
    format: str
    files: List[Path] = field(default_factory=list)

    @property
    def unavailable_count(self) -> int:
        return int((~self.full_table['metrics_available']).sum())


def compactness_bar(value: float, width: int = 10) -> str:
    """Text bar for a 0-1 score, e.g. ``███████░░░``"""
    if value is None or pd.isna(value):
        return "n/a"
    filled = int(round(min(max(value, 0.0), 1.0) * width))
    return "█" * filled + "░" * (width - filled)


class Reporter:
    """
    Build the ranked district table

    The join of metrics onto districts is a left join: a district missing a
    metric stays in the table with ``metrics_available`` False and the names
    of the missing metrics in ``missing_metrics``.
    """

    def __init__(self,
                 top_n: int = 20,
                 area_unit: str = 'sq_mi',
                 report_format: str = 'html',
                 area_crs: str = "EPSG:5070",
                 bar_width: int = 10):
        if area_unit not in AREA_UNITS:
            raise ValueError(f"Unknown area unit: {area_unit}")
        if report_format not in REPORT_FORMATS:
            raise ValueError(f"Unknown report format: {report_format}")
        if top_n <= 0:
            raise ValueError("top_n must be positive")

        self.top_n = top_n
        self.area_unit = area_unit
        self.report_format = report_format
        self.area_crs = area_crs
        self.bar_width = bar_width

    def join_metrics(self, districts: gpd.GeoDataFrame, metrics: MetricsResult) -> pd.DataFrame:
        """Left-join every metric output onto the loader output"""
        base_cols = REPORT_KEYS + [c for c in ['region_name', 'variant'] if c in districts.columns]
        table = pd.DataFrame(districts[base_cols]).reset_index(drop=True)

        metric_frames = {
            'compactness': metrics.compactness[REPORT_KEYS + ['compactness']],
            'parcels': metrics.parcels[REPORT_KEYS + ['parcel_count']],
            'areas': metrics.areas[REPORT_KEYS + ['area', 'enclave_count',
                                                  'enclave_area', 'enclave_ratio']],
        }
        sentinel = {'compactness': 'compactness', 'parcels': 'parcel_count', 'areas': 'area'}

        for frame in metric_frames.values():
            table = table.merge(frame, on=REPORT_KEYS, how='left')

        missing = pd.DataFrame({
            name: table[col].isna() for name, col in sentinel.items()
        })
        table['missing_metrics'] = missing.apply(
            lambda row: ", ".join(name for name, flag in row.items() if flag), axis=1
        ) if len(table) else pd.Series(dtype=str)
        table['metrics_available'] = ~missing.any(axis=1)

        for row in table[~table['metrics_available']].itertuples(index=False):
            logger.warning(
                f"District {row.district_id} ({row.name}, {row.region_code}) "
                f"lacks metrics: {row.missing_metrics}"
            )

        return table

    def rank(self, table: pd.DataFrame) -> pd.DataFrame:
        """Top N districts by enclave count; unavailable metrics sort last"""
        ranked = table.sort_values('enclave_count', ascending=False, na_position='last',
                                   kind='mergesort')
        ranked = ranked.head(self.top_n).reset_index(drop=True)

        factor, _ = AREA_UNITS[self.area_unit]
        ranked['area_display'] = ranked['area'] / factor
        ranked['enclave_pct'] = ranked['enclave_ratio'] * 100
        ranked['compactness_bar'] = ranked['compactness'].apply(
            lambda v: compactness_bar(v, self.bar_width)
        )
        ranked.index = np.arange(1, len(ranked) + 1)
        ranked.index.name = 'rank'
        return ranked

    def build_thumbnails(self, ranked: pd.DataFrame, preview: gpd.GeoDataFrame,
                         relations: gpd.GeoDataFrame) -> Dict[str, bytes]:
        """One PNG per ranked district, drawn from preview geometry"""
        preview = ensure_projected(preview, self.area_crs)
        thumbnails = {}

        for district_id in ranked['district_id']:
            shape = preview[preview['district_id'] == district_id]
            if len(shape) == 0:
                continue
            enclaves = relations[relations['enclosing_id'] == district_id]
            thumbnails[district_id] = render_thumbnail(shape, enclaves)

        return thumbnails

    def render(self,
               districts: gpd.GeoDataFrame,
               metrics: MetricsResult,
               preview: Optional[gpd.GeoDataFrame] = None,
               output_dir: Optional[Union[str, Path]] = None,
               plots: bool = True) -> DistrictReport:
        """
        Join, rank and render

        Args:
            districts: Loader output
            metrics: Metrics engine output
            preview: Simplified districts for plotting; originals when omitted
            output_dir: Where to write the report and plots
            plots: Whether to draw thumbnails and the choropleth

        Returns:
            DistrictReport
        """
        full_table = self.join_metrics(districts, metrics)
        ranked = self.rank(full_table)

        thumbnails = {}
        if plots and len(ranked) > 0:
            thumbnails = self.build_thumbnails(
                ranked, preview if preview is not None else districts, metrics.enclaves
            )

        files = []
        thumbnail_paths = {}
        if output_dir is not None:
            output_dir = Path(output_dir)
            output_dir.mkdir(parents=True, exist_ok=True)

            if thumbnails:
                thumb_dir = output_dir / 'thumbnails'
                thumb_dir.mkdir(exist_ok=True)
                for district_id, png in thumbnails.items():
                    path = thumb_dir / f"{district_id}.png"
                    path.write_bytes(png)
                    thumbnail_paths[district_id] = f"thumbnails/{district_id}.png"
                    files.append(path)

            if plots and len(full_table) > 0:
                source = ensure_projected(preview if preview is not None else districts,
                                          self.area_crs)
                choropleth_path = output_dir / 'compactness.png'
                render_choropleth(source, full_table, 'compactness', choropleth_path,
                                  title='Convex-hull compactness')
                files.append(choropleth_path)

        if self.report_format == 'html':
            content = self.format_html(ranked, thumbnails)
        elif self.report_format == 'markdown':
            content = self.format_markdown(ranked, thumbnail_paths)
        else:
            content = self.format_text(ranked)

        if output_dir is not None:
            report_path = output_dir / f"report.{FILE_SUFFIXES[self.report_format]}"
            report_path.write_text(content, encoding='utf-8')
            files.append(report_path)
            logger.info(f"Report saved to {report_path}")

        return DistrictReport(
            table=ranked,
            full_table=full_table,
            content=content,
            format=self.report_format,
            files=files
        )

    def _cells(self, row) -> Dict[str, str]:
        """Display strings for one ranked row"""
        _, unit_label = AREA_UNITS[self.area_unit]
        available = bool(row['metrics_available'])

        def fmt(value, pattern):
            return "n/a" if pd.isna(value) else pattern.format(value)

        return {
            'name': str(row['name']),
            'region': str(row['region_name']) if pd.notna(row.get('region_name')) else str(row['region_code']),
            'area': fmt(row['area_display'], "{:,.1f} " + unit_label),
            'enclaves': fmt(row['enclave_count'], "{:,.0f}"),
            'enclave_pct': fmt(row['enclave_pct'], "{:.2f}%"),
            'compactness': row['compactness_bar'],
            'compactness_value': fmt(row['compactness'], "{:.2f}"),
            'note': "" if available else f"missing: {row['missing_metrics']}",
        }

    def format_text(self, ranked: pd.DataFrame) -> str:
        """Format ranked table as plain text"""
        lines = [
            "School Districts by Enclave Count",
            "=" * 50,
        ]

        for rank, row in ranked.iterrows():
            cells = self._cells(row)
            lines.extend([
                f"{rank}. {cells['name']} ({cells['region']})",
                f"   Area: {cells['area']}",
                f"   Enclaves: {cells['enclaves']} ({cells['enclave_pct']} of area)",
                f"   Compactness: {cells['compactness']} {cells['compactness_value']}",
            ])
            if cells['note']:
                lines.append(f"   Note: {cells['note']}")

        if len(ranked) == 0:
            lines.append("No districts to report.")

        return "\n".join(lines)

    def format_markdown(self, ranked: pd.DataFrame,
                        thumbnail_paths: Optional[Dict[str, str]] = None) -> str:
        """Format ranked table as a Markdown table"""
        thumbnail_paths = thumbnail_paths or {}
        lines = [
            "| | District | State | Area | Enclaves | Enclave area | Compactness |",
            "|---|---|---|---:|---:|---:|---|",
        ]

        for _, row in ranked.iterrows():
            cells = self._cells(row)
            thumb = thumbnail_paths.get(row['district_id'])
            image = f"![]({thumb})" if thumb else ""
            name = cells['name'].replace("|", "\\|")
            if cells['note']:
                name += f" ({cells['note']})"
            lines.append(
                f"| {image} | {name} | {cells['region']} | {cells['area']} | "
                f"{cells['enclaves']} | {cells['enclave_pct']} | "
                f"{cells['compactness']} {cells['compactness_value']} |"
            )

        return "\n".join(lines) + "\n"

    def format_html(self, ranked: pd.DataFrame,
                    thumbnails: Optional[Dict[str, bytes]] = None) -> str:
        """Format ranked table as a standalone HTML document"""
        thumbnails = thumbnails or {}

        html_doc = """
    <!DOCTYPE html>
    <html>
    <head>
        <title>School Districts by Enclave Count</title>
        <style>
            body { font-family: Arial, sans-serif; margin: 20px; }
            h1 { color: #333; }
            table { border-collapse: collapse; width: 100%; margin: 20px 0; }
            th, td { border-bottom: 1px solid #ddd; padding: 8px; text-align: left; }
            th { background-color: #f2f2f2; }
            td.num { text-align: right; }
            .bar { background: #e4e7eb; width: 100px; height: 10px; display: inline-block; }
            .bar span { background: #2f6690; height: 10px; display: block; }
            .note { color: #999; font-size: 0.85em; }
        </style>
    </head>
    <body>
        <h1>School Districts by Enclave Count</h1>
        <table>
            <tr><th></th><th>District</th><th>State</th><th>Area</th><th>Enclaves</th><th>Enclave area</th><th>Compactness</th></tr>
    """

        for _, row in ranked.iterrows():
            cells = self._cells(row)
            png = thumbnails.get(row['district_id'])
            image = ""
            if png:
                encoded = base64.b64encode(png).decode('ascii')
                image = f'<img src="data:image/png;base64,{encoded}" alt="">'

            if pd.isna(row['compactness']):
                bar = "n/a"
            else:
                width = int(round(float(row['compactness']) * 100))
                bar = (f'<span class="bar" title="{cells["compactness_value"]}">'
                       f'<span style="width: {width}%"></span></span>')

            note = f'<div class="note">{html.escape(cells["note"])}</div>' if cells['note'] else ""
            html_doc += (
                f"<tr><td>{image}</td>"
                f"<td>{html.escape(cells['name'])}{note}</td>"
                f"<td>{html.escape(cells['region'])}</td>"
                f"<td class=\"num\">{cells['area']}</td>"
                f"<td class=\"num\">{cells['enclaves']}</td>"
                f"<td class=\"num\">{cells['enclave_pct']}</td>"
                f"<td>{bar}</td></tr>\n"
            )

        html_doc += """
        </table>
    </body>
    </html>
    """

        return html_doc
