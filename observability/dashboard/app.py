#!/usr/bin/env python3
"""
Gap Analyzer Dashboard
======================
Dash + Plotly front end for the opening-gap statistics.

The page renders the same payload /api/gaps serves: summary cards, the
bin / side / weekday tables, cumulative Fade vs Follow, a gap-size
histogram and the 0-15 minute section.

Usage:
    python scripts/run_gap_dashboard.py --apikey ... --port 8083

Then open http://localhost:8083 in your browser.
"""

import sys
from pathlib import Path

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

import logging
from typing import Any, Dict, List, Optional, Sequence

import numpy as np
import plotly.graph_objects as go
from dash import Dash, html, dcc, dash_table, Output, Input, State
import dash_bootstrap_components as dbc

from config import AppConfig, GAP_ANALYSIS, parse_analysis_params
from observability.dashboard.api import register_api_routes
from observability.dashboard.health_endpoint import register_health_endpoint
from research.gap_analyzer import GapAnalyzer
from utils.errors import DataFetchError, GapAnalyzerError, ValidationError
from utils.timezone import now_eastern

logger = logging.getLogger(__name__)

COLOR_FADE = '#e74c3c'
COLOR_FOLLOW = '#00bc8c'
HISTOGRAM_BIN_WIDTH = 0.25   # percent

GROUP_COLUMNS = [
    {"name": "Group", "id": "label"},
    {"name": "Count", "id": "count", "type": "numeric"},
    {"name": "Continuation %", "id": "continuation_rate", "type": "numeric",
     "format": {"specifier": ".1f"}},
    {"name": "Gap Fill %", "id": "gap_fill_rate", "type": "numeric",
     "format": {"specifier": ".1f"}},
    {"name": "Fade Avg %", "id": "fade_avg", "type": "numeric",
     "format": {"specifier": "+.3f"}},
    {"name": "Follow Avg %", "id": "follow_avg", "type": "numeric",
     "format": {"specifier": "+.3f"}},
    {"name": "Recommendation", "id": "recommendation"},
]

TABLE_STYLE = dict(
    style_table={'overflowX': 'auto'},
    style_cell={
        'backgroundColor': '#303030',
        'color': 'white',
        'textAlign': 'right',
        'padding': '8px',
    },
    style_header={
        'backgroundColor': '#444',
        'fontWeight': 'bold',
        'textAlign': 'center',
    },
    style_data_conditional=[
        {
            'if': {'filter_query': '{recommendation} = "FOLLOW"'},
            'color': COLOR_FOLLOW,
        },
        {
            'if': {'filter_query': '{recommendation} = "FADE"'},
            'color': COLOR_FADE,
        },
    ],
)


# ============================================================================
# Payload -> components
# ============================================================================

def group_rows(groups: Sequence[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Table rows for a list of group records (bins, sides or weekdays)."""
    return [{column["id"]: group.get(column["id"]) for column in GROUP_COLUMNS}
            for group in groups]


def side_rows(record: Dict[str, Any]) -> List[Dict[str, Any]]:
    return group_rows([record["gap_up"], record["gap_down"]])


def weekday_rows(record: Dict[str, Any]) -> List[Dict[str, Any]]:
    # by_dow is already Mon..Fri
    return group_rows(list(record["by_dow"].values()))


def _stat(value: str, label: str, color: Optional[str] = None):
    return dbc.Col([
        html.H4(value, className="mb-0", style={'color': color} if color else None),
        html.Small(label, className="text-muted"),
    ], width=2)


def summary_cards(summary: Dict[str, Any]):
    """Headline numbers for one layer."""
    best = summary["best_strategy"]
    best_color = {'FOLLOW': COLOR_FOLLOW, 'FADE': COLOR_FADE}.get(best)
    return html.Div([
        dbc.Row([
            _stat(f"{summary['sessions']}", "Gap Sessions"),
            _stat(f"{summary['continuation_rate']:.1f}%", "Continuation"),
            _stat(f"{summary.get('gap_fill_rate', 0.0):.1f}%", "Gap Filled"),
            _stat(f"{summary['gap_ups']} / {summary['gap_downs']}", "Up / Down"),
            _stat(f"{summary['mean_gap']:.2f}%", "Mean |Gap|"),
            _stat(f"{summary['max_gap_up']:+.2f} / {summary['max_gap_down']:+.2f}", "Max Up / Down"),
        ], className="mb-3"),
        dbc.Row([
            _stat(f"{summary['fade_avg']:+.3f}%", "Fade Avg", COLOR_FADE),
            _stat(f"{summary['follow_avg']:+.3f}%", "Follow Avg", COLOR_FOLLOW),
            _stat(best, "Best Strategy", best_color),
            _stat(f"{summary['expected_return']:+.3f}%", "Expected / Session"),
        ]),
    ])


def _empty_figure(text: str) -> go.Figure:
    fig = go.Figure()
    fig.add_annotation(
        text=text,
        xref="paper", yref="paper",
        x=0.5, y=0.5, showarrow=False,
        font=dict(size=14, color="gray"),
    )
    fig.update_layout(
        template='plotly_dark',
        paper_bgcolor='rgba(0,0,0,0)',
        plot_bgcolor='rgba(0,0,0,0)',
    )
    return fig


def cumulative_figure(record: Dict[str, Any], title: str = "") -> go.Figure:
    """Running Fade vs Follow totals (simple sums, percent)."""
    dates = record.get("cum_dates") or []
    if not dates:
        return _empty_figure("No gap sessions")

    fig = go.Figure()
    fig.add_trace(go.Scatter(
        x=dates, y=record["cum_fade"], mode='lines', name='Fade',
        line=dict(color=COLOR_FADE, width=2),
    ))
    fig.add_trace(go.Scatter(
        x=dates, y=record["cum_follow"], mode='lines', name='Follow',
        line=dict(color=COLOR_FOLLOW, width=2),
    ))
    fig.update_layout(
        template='plotly_dark',
        paper_bgcolor='rgba(0,0,0,0)',
        plot_bgcolor='rgba(0,0,0,0)',
        margin=dict(l=40, r=20, t=40 if title else 20, b=40),
        xaxis=dict(showgrid=False),
        yaxis=dict(showgrid=True, gridcolor='rgba(255,255,255,0.1)', ticksuffix='%'),
        legend=dict(orientation='h', y=1.02, x=0),
    )
    if title:
        fig.update_layout(title=title)
    return fig


def gap_histogram(events: Sequence[Dict[str, Any]],
                  bin_width: float = HISTOGRAM_BIN_WIDTH) -> go.Figure:
    """Distribution of signed gap sizes, gap ups and gap downs coloured apart."""
    gaps = np.array([e["gap_pct"] for e in events], dtype=float)
    if gaps.size == 0:
        return _empty_figure("No gap sessions")

    low = np.floor(gaps.min() / bin_width) * bin_width
    n_bins = max(1, int(np.ceil((gaps.max() - low) / bin_width)))
    edges = low + bin_width * np.arange(n_bins + 1)
    # Outer edges must cover the data exactly despite float steps
    edges[0] = min(edges[0], gaps.min())
    edges[-1] = max(edges[-1], gaps.max())
    counts, edges = np.histogram(gaps, bins=edges)
    centers = (edges[:-1] + edges[1:]) / 2

    fig = go.Figure(go.Bar(
        x=centers, y=counts, width=bin_width * 0.9,
        marker_color=[COLOR_FOLLOW if c > 0 else COLOR_FADE for c in centers],
        name='Sessions',
    ))
    fig.update_layout(
        template='plotly_dark',
        paper_bgcolor='rgba(0,0,0,0)',
        plot_bgcolor='rgba(0,0,0,0)',
        margin=dict(l=40, r=20, t=20, b=40),
        xaxis=dict(title='Gap %', showgrid=False),
        yaxis=dict(title='Sessions', showgrid=True, gridcolor='rgba(255,255,255,0.1)'),
        showlegend=False,
        bargap=0.05,
    )
    return fig


def _table(table_id: str, rows=None):
    return dash_table.DataTable(id=table_id, columns=GROUP_COLUMNS, data=rows or [],
                                **TABLE_STYLE)


def intraday_section(intraday: Optional[Dict[str, Any]]):
    """0-15 minute block: disabled notice, error annotation, or full statistics."""
    if not intraday or not intraday.get("enabled"):
        return html.Div("0-15m overlay disabled", className="text-muted")
    if intraday.get("error"):
        return dbc.Alert(intraday["error"], color="warning", className="py-2")
    if "summary" not in intraday:
        return html.Div("No opening-window data", className="text-muted")

    return html.Div([
        html.Small(f"{intraday['sessions']} sessions with 09:30-09:45 ET bars",
                   className="text-muted"),
        html.Hr(className="my-2"),
        summary_cards(intraday["summary"]),
        html.H6("By Gap Size (0-15m)", className="text-muted mt-3"),
        _table('intraday-bins-table', group_rows(intraday["bins"])),
        html.H6("By Direction (0-15m)", className="text-muted mt-3"),
        _table('intraday-sides-table', side_rows(intraday)),
        html.H6("By Weekday (0-15m)", className="text-muted mt-3"),
        _table('intraday-dow-table', weekday_rows(intraday)),
        dcc.Graph(figure=cumulative_figure(intraday, "Cumulative 0-15m Fade vs Follow"),
                  style={'height': '300px'}),
    ])


# ============================================================================
# Layout
# ============================================================================

def _card(title: str, body, card_id: Optional[str] = None):
    return dbc.Card([
        dbc.CardHeader(html.H5(title, className="mb-0")),
        dbc.CardBody(body, id=card_id) if card_id else dbc.CardBody(body),
    ], className="mb-3")


def create_controls(config: AppConfig):
    return dbc.Card(dbc.CardBody(dbc.Row([
        dbc.Col([
            dbc.Label("Ticker"),
            dbc.Input(id="ticker-input", type="text", value="SPY", debounce=True),
        ], width=3),
        dbc.Col([
            dbc.Label("Years"),
            dbc.Input(id="years-input", type="number", value=GAP_ANALYSIS["default_years"],
                      min=GAP_ANALYSIS["min_years"], max=GAP_ANALYSIS["max_years"], step=1),
        ], width=2),
        dbc.Col([
            dbc.Label("Min Gap %"),
            dbc.Input(id="mingap-input", type="number", value=GAP_ANALYSIS["default_min_gap"],
                      min=0.01, max=GAP_ANALYSIS["max_min_gap"], step=0.05),
        ], width=2),
        dbc.Col([
            dbc.Label("Opening Window"),
            dbc.Checklist(
                id="intraday-switch",
                options=[{"label": "0-15m overlay", "value": "intraday"}],
                value=["intraday"] if config.intraday_enabled else [],
                switch=True,
            ),
        ], width=3),
        dbc.Col([
            dbc.Button("Analyze", id="analyze-btn", color="primary", className="mt-4 w-100"),
        ], width=2),
    ])), className="mb-3")


def create_layout(config: AppConfig):
    return dbc.Container([
        # Header
        dbc.Row([
            dbc.Col([
                html.H2("Opening Gap Analyzer", className="text-primary mb-0"),
                html.Small(f"Bars: {config.provider}", className="text-muted"),
            ], width=8),
            dbc.Col([
                html.Small(id="last-updated", className="text-muted float-end"),
            ], width=4),
        ], className="mb-4 mt-3"),

        create_controls(config),
        html.Div(id="status-alert"),

        dcc.Loading([
            _card("Summary", html.Div("Run an analysis", className="text-muted"), "summary-cards"),
            dbc.Row([
                dbc.Col(_card("By Gap Size", _table('bins-table')), width=7),
                dbc.Col(_card("By Direction", _table('sides-table')), width=5),
            ]),
            dbc.Row([
                dbc.Col(_card("By Weekday", _table('dow-table')), width=7),
                dbc.Col(_card("Gap Size Distribution",
                              dcc.Graph(id='histogram-chart', style={'height': '300px'})), width=5),
            ]),
            _card("Cumulative Fade vs Follow (no compounding, no costs)",
                  dcc.Graph(id='cumulative-chart', style={'height': '350px'})),
            _card("First 15 Minutes (09:30-09:45 ET)", html.Div(), "intraday-section"),
        ]),
    ], fluid=True)


# ============================================================================
# Callbacks
# ============================================================================

def render_payload(payload: Dict[str, Any]):
    """Map a success payload onto the dashboard outputs."""
    return (
        None,
        summary_cards(payload["summary"]),
        group_rows(payload["bins"]),
        side_rows(payload),
        weekday_rows(payload),
        cumulative_figure(payload),
        gap_histogram(payload["data"]),
        intraday_section(payload.get("intraday")),
    )


def render_error(message: str, color: str = "danger"):
    empty = _empty_figure("No data")
    return (
        dbc.Alert(message, color=color, className="py-2"),
        html.Div("No results", className="text-muted"),
        [], [], [],
        empty, empty,
        html.Div(),
    )


def register_callbacks(app: Dash, analyzer: GapAnalyzer):

    @app.callback(
        [
            Output('status-alert', 'children'),
            Output('summary-cards', 'children'),
            Output('bins-table', 'data'),
            Output('sides-table', 'data'),
            Output('dow-table', 'data'),
            Output('cumulative-chart', 'figure'),
            Output('histogram-chart', 'figure'),
            Output('intraday-section', 'children'),
            Output('last-updated', 'children'),
        ],
        [
            Input('analyze-btn', 'n_clicks'),
            Input('ticker-input', 'n_submit'),
        ],
        [
            State('ticker-input', 'value'),
            State('years-input', 'value'),
            State('mingap-input', 'value'),
            State('intraday-switch', 'value'),
        ],
        prevent_initial_call=True,
    )
    def run_analysis(n_clicks, n_submit, ticker, years, min_gap, intraday):
        stamp = f"Updated {now_eastern().strftime('%Y-%m-%d %H:%M:%S')} ET"
        query = {
            "ticker": ticker or "",
            "years": "" if years is None else str(years),
            "minGap": "" if min_gap is None else str(min_gap),
            "intraday": "1" if intraday else "0",
        }
        try:
            params = parse_analysis_params(query)
            payload = analyzer.analyze(params).to_dict()
        except ValidationError as e:
            return render_error(e.message, "warning") + (stamp,)
        except DataFetchError as e:
            return render_error(f"Data provider error: {e.message}") + (stamp,)
        except GapAnalyzerError as e:
            logger.error(f"Dashboard analysis failed: {e}")
            return render_error(e.message) + (stamp,)

        if not payload["success"]:
            return render_error(payload["error"], "warning") + (stamp,)
        return render_payload(payload) + (stamp,)


# ============================================================================
# App factory
# ============================================================================

def create_app(config: AppConfig, analyzer: Optional[GapAnalyzer] = None) -> Dash:
    """
    Build the Dash app with /api/gaps and /health on its Flask server.

    Args:
        config: Runtime configuration
        analyzer: Analysis service (default: wired from config)
    """
    analyzer = analyzer or GapAnalyzer.from_config(config)

    app = Dash(
        __name__,
        external_stylesheets=[dbc.themes.DARKLY],
        title="Gap Analyzer",
        suppress_callback_exceptions=True,
    )
    app.layout = create_layout(config)

    register_callbacks(app, analyzer)
    register_api_routes(app, analyzer, config)
    register_health_endpoint(app, config)

    logger.info(f"Dashboard ready (provider={config.provider}, "
                f"intraday={'on' if config.intraday_enabled else 'off'})")
    return app
