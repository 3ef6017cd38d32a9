"""Turns session snapshots into the strings and flags the widgets show.

Kept free of GTK so it can be tested directly.
"""

from dataclasses import dataclass
from typing import Optional

from core.playback_session import SessionSnapshot, SessionState


PAUSE_LABEL = "⏸ Pause"
RESUME_LABEL = "▶ Resume"
REPLAY_LABEL = "↻ Replay"


@dataclass(frozen=True)
class ControlsView:
    """Everything PlayerControls renders for one refresh tick."""

    visible: bool
    title: str
    pause_label: str
    can_prev: bool
    can_next: bool
    progress: Optional[float]
    time_text: str


def format_time(seconds: Optional[float]) -> str:
    """Format time in seconds to MM:SS."""
    if seconds is None or seconds < 0:
        seconds = 0
    minutes = int(seconds // 60)
    secs = int(seconds % 60)
    return f"{minutes:02d}:{secs:02d}"


def present_controls(snapshot: SessionSnapshot) -> ControlsView:
    """Build the controls view; hidden until a track has been loaded."""
    if not snapshot.is_loaded:
        return ControlsView(
            visible=False,
            title="",
            pause_label=PAUSE_LABEL,
            can_prev=False,
            can_next=False,
            progress=None,
            time_text="",
        )

    if snapshot.state == SessionState.PAUSED:
        label = RESUME_LABEL
    elif snapshot.state == SessionState.ENDED:
        label = REPLAY_LABEL
    else:
        label = PAUSE_LABEL

    # Unknown duration: show elapsed only, progress is indeterminate
    if snapshot.total is None:
        time_text = format_time(snapshot.elapsed)
    else:
        time_text = f"{format_time(snapshot.elapsed)} / {format_time(snapshot.total)}"

    return ControlsView(
        visible=True,
        title=snapshot.current_name or "",
        pause_label=label,
        can_prev=snapshot.has_previous,
        can_next=snapshot.has_next,
        progress=snapshot.progress,
        time_text=time_text,
    )
