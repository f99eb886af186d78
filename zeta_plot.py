#!/usr/bin/env python3
"""
Z(t) Plot Export
================

Render a sampled Z(t) curve as a standalone HTML page drawn with D3.js,
with an optional red marker at a found zero. The page loads D3 from its
CDN; nothing else is needed to view it.

Usage:
------
    from siegel_z import sample_range
    from zeta_plot import write_html

    samples = sample_range(13.0, 15.0, 200)
    write_html("zeta_plot.html", samples, zero=14.134725)
"""

import json
import logging
from pathlib import Path
from string import Template


logger = logging.getLogger(__name__)

DEFAULT_PLOT_PATH = "zeta_plot.html"

# Vertical headroom above and below the sampled extrema.
Y_PADDING = 0.1

_PAGE = Template("""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>$title</title>
    <script src="https://d3js.org/d3.v7.min.js"></script>
    <style>
        .chart { margin: 20px; }
        .axis path, .axis line { stroke: #000; shape-rendering: crispEdges; }
        .line { fill: none; stroke: steelblue; stroke-width: 1.5px; }
        .zero { stroke: red; stroke-width: 2px; }
    </style>
</head>
<body>
    <div class="chart">
        <svg width="800" height="500"></svg>
    </div>
    <script>
        const data = $data;
        const zero = $zero;

        const svg = d3.select("svg");
        const margin = { top: 20, right: 20, bottom: 30, left: 50 };
        const width = +svg.attr("width") - margin.left - margin.right;
        const height = +svg.attr("height") - margin.top - margin.bottom;

        const g = svg.append("g")
            .attr("transform", `translate($${margin.left},$${margin.top})`);

        const x = d3.scaleLinear().domain([$x_min, $x_max]).range([0, width]);
        const y = d3.scaleLinear().domain([$y_min, $y_max]).range([height, 0]);

        g.append("g")
            .attr("class", "axis axis--x")
            .attr("transform", `translate(0,$${height})`)
            .call(d3.axisBottom(x));

        g.append("g")
            .attr("class", "axis axis--y")
            .call(d3.axisLeft(y));

        const line = d3.line().x(d => x(d.t)).y(d => y(d.z));

        g.append("path")
            .datum(data)
            .attr("class", "line")
            .attr("d", line);

        if (zero !== null) {
            g.append("line")
                .attr("class", "zero")
                .attr("x1", x(zero)).attr("y1", 0)
                .attr("x2", x(zero)).attr("y2", height);
        }
    </script>
</body>
</html>
""")


def render_html(samples, zero=None, title="Riemann Zeta Z(t) Plot"):
    """Build the HTML page for a sequence of (t, z) samples.

    Args:
        samples: Non-empty sequence of SamplePoint (or (t, z) pairs), ascending t
        zero: Optional t of a zero to highlight
        title: Page title

    Returns:
        HTML document as a string
    """
    points = [(float(t), float(z)) for t, z in samples]
    if not points:
        raise ValueError("cannot plot an empty sample sequence")

    zs = [z for _, z in points]
    z_min, z_max = min(zs), max(zs)
    pad = Y_PADDING * (z_max - z_min) or 1.0

    return _PAGE.substitute(
        title=title,
        data=json.dumps([{"t": t, "z": z} for t, z in points]),
        zero=json.dumps(None if zero is None else float(zero)),
        x_min=repr(points[0][0]),
        x_max=repr(points[-1][0]),
        y_min=repr(z_min - pad),
        y_max=repr(z_max + pad),
    )


def write_html(path, samples, zero=None, title="Riemann Zeta Z(t) Plot"):
    """Write render_html() output to `path`; returns the Path written."""
    path = Path(path)
    path.write_text(render_html(samples, zero=zero, title=title), encoding="utf-8")
    logger.info("wrote %d-point plot to %s", len(samples), path)
    return path
