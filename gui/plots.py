"""Real-time plotting of simulation snapshots using Viser and Plotly."""

import plotly.graph_objects as go
from collections import deque
from dataclasses import dataclass, field
from typing import Deque, Dict, List, Tuple

from sandbox.simulation import Snapshot
from sandbox.state import CartPoleState


# (figure title, y label, [(series key, legend name, color)])
CARTPOLE_PLOTS = [
    ("Pole Angle", "Degrees", [("theta", "Theta", "#ff6b6b")]),
    ("Cart", "m, m/s", [("x", "X", "#4ecdc4"), ("dx", "dX", "#ffe66d")]),
    ("Control Force", "N", [("force", "Force", "#ff6b6b")]),
]

DRONE_PLOTS = [
    ("Position", "px", [("x", "X", "#ff6b6b"), ("y", "Altitude", "#4ecdc4")]),
    ("Rotation", "Degrees", [("rotation", "Rotation", "#ffe66d")]),
    ("Thrust", "N", [("left", "Left", "#ff6b6b"), ("right", "Right", "#4ecdc4")]),
]


@dataclass
class PlotData:
    """Recent history of the plotted signals. Kept in memory only."""
    max_length: int = 500
    time: Deque[float] = field(default_factory=deque)
    series: Dict[str, Deque[float]] = field(default_factory=dict)

    def __post_init__(self):
        self.time = deque(maxlen=self.max_length)

    def append(self, t: float, values: Dict[str, float]):
        self.time.append(t)
        for key, value in values.items():
            if key not in self.series:
                self.series[key] = deque(maxlen=self.max_length)
            self.series[key].append(value)

    def clear(self):
        """Clear all plot data."""
        self.time.clear()
        for values in self.series.values():
            values.clear()


def snapshot_values(snapshot: Snapshot) -> Dict[str, float]:
    """Flatten a snapshot into the plotted signals."""
    state = snapshot.state
    if isinstance(state, CartPoleState):
        return {
            "theta": state.theta_deg,
            "x": state.x,
            "dx": state.dx,
            "force": snapshot.actuation,
        }
    left, right = snapshot.actuation
    return {
        "x": state.x,
        "y": state.y,
        "rotation": state.rotation_deg,
        "left": left,
        "right": right,
    }


class PlotManager:
    """
    Manages real-time plots for the playground.

    Uses Plotly to generate interactive plots displayed in Viser.
    """

    def __init__(self, server, plot_data: PlotData, layout: List[Tuple[str, str, list]]):
        """
        Initialize the plot manager.

        Args:
            server: Viser server instance
            plot_data: PlotData instance with time series data
            layout: Figure definitions, CARTPOLE_PLOTS or DRONE_PLOTS
        """
        self.server = server
        self.plot_data = plot_data
        self.layout = layout
        self.figures = []
        self.handles = []

        self._setup_plots()

    def _create_empty_figure(self, title: str, y_label: str = "") -> go.Figure:
        """Create an empty Plotly figure with dark theme."""
        fig = go.Figure()
        fig.update_layout(
            title=dict(text=title, font=dict(size=12, color="#ccc")),
            paper_bgcolor="#1a1a2e",
            plot_bgcolor="#16213e",
            font=dict(color="#ccc", size=10),
            xaxis=dict(title="Time [s]", gridcolor="#2a2a4e", zerolinecolor="#3a3a5e"),
            yaxis=dict(title=y_label, gridcolor="#2a2a4e", zerolinecolor="#3a3a5e"),
            legend=dict(
                orientation="h",
                yanchor="bottom",
                y=1.02,
                xanchor="right",
                x=1,
                font=dict(size=9),
            ),
            margin=dict(l=50, r=20, t=40, b=40),
            height=180,
        )
        return fig

    def _setup_plots(self):
        """Setup the plot display in Viser GUI."""
        with self.server.gui.add_folder("Plots"):
            for title, y_label, _ in self.layout:
                fig = self._create_empty_figure(title, y_label)
                self.figures.append(fig)
                self.handles.append(self.server.gui.add_plotly(fig))

    def update(self):
        """Update all plots with current data."""
        if len(self.plot_data.time) < 2:
            return

        time_array = list(self.plot_data.time)
        for fig, handle, (_, _, traces) in zip(self.figures, self.handles, self.layout):
            fig.data = []
            for key, name, color in traces:
                fig.add_trace(go.Scatter(
                    x=time_array,
                    y=list(self.plot_data.series.get(key, [])),
                    name=name,
                    mode="lines",
                    line=dict(color=color, width=2),
                ))
            handle.figure = fig
