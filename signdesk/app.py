import sys

from PyQt5.QtWidgets import QApplication

from signdesk.config import get_settings
from signdesk.ui import AnnotationEditor
from signdesk.utils.log import configure_logging


def main():
    """
    Run the markup editor.
    An optional PDF path may be passed as the first command-line argument.
    """
    settings = get_settings()
    configure_logging(settings.log_level)

    app = QApplication(sys.argv)
    app.setApplicationName(settings.app_name)

    file_path = None
    if len(sys.argv) > 1:
        file_path = sys.argv[1]

    window = AnnotationEditor(file_path, settings=settings)
    window.showMaximized()
    sys.exit(app.exec_())
