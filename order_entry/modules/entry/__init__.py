"""
Entry module package exports.

- EntryController: launcher page hosted by the main window
- LineEntryForm: the order grid (purchase return / quotation / sale)
- BatchPickerDialog: keyboard-driven batch choice
"""

from .controller import EntryController, EntryView
from .form import LineEntryForm, MODES
from .batch_dialog import BatchPickerDialog

__all__ = [
    "EntryController",
    "EntryView",
    "LineEntryForm",
    "MODES",
    "BatchPickerDialog",
]
