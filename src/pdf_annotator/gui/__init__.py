"""PySide6 host for the annotator: page overlay widget and main window."""
