from PySide6.QtCore import QObject
from PySide6.QtWidgets import QWidget


class BaseModule(QObject):
    """A page hosted by the main window: owns its widget and the dialogs it opens."""

    def get_widget(self) -> QWidget:
        raise NotImplementedError
