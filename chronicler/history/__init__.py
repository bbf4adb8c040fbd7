"""Ordered chat history: records, the per-scope log and its persistence."""

from chronicler.history.log import HistoryLog
from chronicler.history.manager import HistoryManager
from chronicler.history.record import Reaction, Record, ReplyRef
from chronicler.history.render import render_history

__all__ = ["HistoryLog", "HistoryManager", "Reaction", "Record", "ReplyRef", "render_history"]
