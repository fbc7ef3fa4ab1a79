# utils/plotting.py

import logging

import numpy as np
import plotly.express as px
import plotly.graph_objects as go

from models import TAX_CATEGORIES, ProjectionResult
from projections.spending_comparison import SpendingComparison

logger = logging.getLogger(__name__)

CATEGORY_LABELS = {
    "tax_deferred": "Tax-Deferred",
    "tax_free": "Tax-Free",
    "taxable": "Taxable",
}


def _empty_figure(title, message="No data available", height=500):
    fig = go.Figure()
    fig.add_annotation(
        text=message,
        xref="paper", yref="paper", x=0.5, y=0.5,
        showarrow=False, font_size=20
    )
    fig.update_layout(title=title, height=height, template="plotly_white")
    return fig


# ------------------------------------------------------------------
# Stacked area: end-of-year balance by tax category
# ------------------------------------------------------------------
def create_balance_by_type_figure(result: ProjectionResult, title="Projected Balance by Account Type"):
    if result is None or not result.records:
        logger.debug("Balance figure requested for an empty projection")
        return _empty_figure(title)

    df = result.to_dataframe()
    colors = px.colors.qualitative.Plotly
    fig = go.Figure()

    for idx, category in enumerate(TAX_CATEGORIES):
        label = CATEGORY_LABELS[category]
        fig.add_trace(go.Scatter(
            x=df.index,
            y=df[f"balance_{category}"],
            mode='lines',
            line=dict(width=0),
            fillcolor=colors[idx % len(colors)],
            stackgroup='one',
            name=label,
            hovertemplate=f'<b>{label}</b><br>Age: %{{x}}<br>Balance: $%{{y:,.0f}}<extra></extra>'
        ))

    depletion_age = result.summary.depletion_age
    if depletion_age is not None:
        fig.add_vline(x=depletion_age, line_dash="dash", line_color="firebrick",
                      annotation_text=f"Depleted at {depletion_age}")

    fig.update_layout(
        title=title,
        xaxis_title="Age",
        yaxis_title="Balance ($)",
        template="plotly_white",
        hovermode="x unified",
        height=500,
        legend=dict(x=1, y=1, xanchor="right", yanchor="top", bgcolor="rgba(255,255,255,0.9)")
    )
    return fig


# ------------------------------------------------------------------
# Flat vs phased spending, yearly and cumulative
# ------------------------------------------------------------------
def create_spending_comparison_figure(comparison: SpendingComparison, cumulative=False,
                                      title="Flat vs Phased Spending"):
    if comparison is None or not comparison.flat_spending.yearly_spending:
        logger.debug("Spending comparison figure requested with no retirement years")
        return _empty_figure(title, height=400)

    fig = go.Figure()
    series = (
        ("Flat", comparison.flat_spending.yearly_spending, dict(width=2, dash="dot")),
        ("Phased", comparison.phased_spending.yearly_spending, dict(width=3)),
    )
    for label, yearly, line in series:
        ages = [y.age for y in yearly]
        amounts = np.array([y.amount for y in yearly], dtype=float)
        if cumulative:
            amounts = np.cumsum(amounts)
        phases = [y.phase or "" for y in yearly]

        fig.add_trace(go.Scatter(
            x=ages,
            y=amounts,
            mode='lines',
            name=label,
            line=line,
            customdata=phases,
            hovertemplate=f'<b>{label}</b> %{{customdata}}<br>Age: %{{x}}<br>Spending: $%{{y:,.0f}}<extra></extra>'
        ))

    if cumulative and comparison.break_even_age is not None:
        fig.add_vline(x=comparison.break_even_age, line_dash="dash", line_color="gray",
                      annotation_text=f"Break-even {comparison.break_even_age}")

    fig.update_layout(
        title=title + (" (Cumulative)" if cumulative else ""),
        xaxis_title="Age",
        yaxis_title="Spending ($)",
        template="plotly_white",
        hovermode="x unified",
        height=400,
    )
    return fig
