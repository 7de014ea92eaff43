"""Thumbnail and choropleth plots"""

import io
from pathlib import Path
from typing import Optional, Tuple, Union

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import pandas as pd
import geopandas as gpd


DISTRICT_COLOR = "#9aa5b1"
ENCLAVE_COLOR = "#d64545"


def render_thumbnail(district: gpd.GeoDataFrame,
                     enclaves: Optional[gpd.GeoDataFrame] = None,
                     size: Tuple[float, float] = (1.5, 1.5),
                     dpi: int = 80) -> bytes:
    """
    Draw one district with its enclaves highlighted

    Args:
        district: Single-row frame with the (preview) district geometry
        enclaves: Enclave parts enclosed by this district
        size: Figure size in inches
        dpi: Output resolution

    Returns:
        PNG bytes
    """
    fig, ax = plt.subplots(figsize=size)
    try:
        district.plot(ax=ax, color=DISTRICT_COLOR, edgecolor="white", linewidth=0.3)

        if enclaves is not None and len(enclaves) > 0:
            if district.crs is not None and enclaves.crs is not None and enclaves.crs != district.crs:
                enclaves = enclaves.to_crs(district.crs)
            enclaves.plot(ax=ax, color=ENCLAVE_COLOR, edgecolor="none")

        ax.set_axis_off()
        ax.set_aspect("equal")

        buffer = io.BytesIO()
        fig.savefig(buffer, format="png", dpi=dpi, bbox_inches="tight", pad_inches=0.02,
                    transparent=True)
        return buffer.getvalue()
    finally:
        plt.close(fig)


def render_choropleth(preview: gpd.GeoDataFrame,
                      values: pd.DataFrame,
                      column: str = "compactness",
                      path: Optional[Union[str, Path]] = None,
                      title: Optional[str] = None,
                      cmap: str = "viridis") -> bytes:
    """
    Draw every district coloured by one metric

    Args:
        preview: Simplified district frame
        values: Frame with district_id and ``column``
        column: Metric to colour by
        path: Optional file to write the PNG to
        title: Plot title
        cmap: Matplotlib colormap name

    Returns:
        PNG bytes
    """
    data = preview.merge(values[['district_id', column]], on='district_id', how='left')

    fig, ax = plt.subplots(figsize=(10, 6))
    try:
        if data[column].notna().any():
            data.plot(
                ax=ax,
                column=column,
                cmap=cmap,
                legend=True,
                linewidth=0.1,
                edgecolor="white",
                missing_kwds={"color": "lightgrey", "label": "Unavailable"}
            )
        else:
            data.plot(ax=ax, color="lightgrey", linewidth=0.1, edgecolor="white")
        ax.set_axis_off()
        ax.set_title(title or column.replace("_", " ").title())

        buffer = io.BytesIO()
        fig.savefig(buffer, format="png", dpi=120, bbox_inches="tight")
        png = buffer.getvalue()
    finally:
        plt.close(fig)

    if path is not None:
        Path(path).write_bytes(png)

    return png
