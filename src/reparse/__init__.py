"""Background reparsing of an edited document."""

from reparse.document_snapshot import DocumentSnapshot
from reparse.editor_session import EditorSession, HighlightView
from reparse.reparse_exceptions import ReparseError
from reparse.reparse_pass import HighlightPassResult, run_highlight_pass
from reparse.reparse_scheduler import ReparseScheduler, SchedulerState


__all__ = [
    "DocumentSnapshot",
    "EditorSession",
    "HighlightPassResult",
    "HighlightView",
    "ReparseError",
    "ReparseScheduler",
    "SchedulerState",
    "run_highlight_pass"
]
